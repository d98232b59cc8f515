"""
Project model - an isolated workspace holding streams, deliverables and tracks
"""
from sqlalchemy import Column, Integer, String, Text, Date, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from aligned_execution.database import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    # Milestone dates drive the schedule timeline
    kickoff_date = Column(Date, nullable=True)
    go_live_date = Column(Date, nullable=True)
    helpdesk_handoff_date = Column(Date, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Children are removed by ON DELETE CASCADE
    streams = relationship("Stream", back_populates="project", cascade="all, delete-orphan", passive_deletes=True)
    deliverables = relationship("Deliverable", back_populates="project", cascade="all, delete-orphan", passive_deletes=True)
    tracks = relationship("ExecutionTrack", cascade="all, delete-orphan", passive_deletes=True)
    notes = relationship("WhiteboardNote", cascade="all, delete-orphan", passive_deletes=True)
    members = relationship("TeamMember", cascade="all, delete-orphan", passive_deletes=True)
