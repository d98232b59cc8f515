"""
Stream model - a named, colored grouping of deliverables on the program board
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum
from aligned_execution.database import Base


class StreamStatus(str, Enum):
    ACTIVE = "active"
    COMPLETE = "complete"
    ARCHIVED = "archived"


STREAM_COLORS = [
    {"name": "OHCA Blue", "value": "#3B82F6"},
    {"name": "DMHSAS Purple", "value": "#8B5CF6"},
    {"name": "Security Red", "value": "#EF4444"},
    {"name": "Infrastructure Green", "value": "#10B981"},
    {"name": "Compliance Orange", "value": "#F59E0B"},
    {"name": "Analytics Teal", "value": "#14B8A6"},
    {"name": "Operations Indigo", "value": "#6366F1"},
    {"name": "Quality Pink", "value": "#EC4899"},
    {"name": "Finance Emerald", "value": "#059669"},
    {"name": "Legal Slate", "value": "#64748B"},
]


class Stream(Base):
    __tablename__ = "streams"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    color = Column(String, nullable=False, default=STREAM_COLORS[0]["value"])
    description = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=StreamStatus.ACTIVE.value)
    position = Column(Integer, nullable=False, default=0)

    # Archive bookkeeping
    archived_at = Column(DateTime, nullable=True)
    archived_by = Column(String, nullable=True)
    archive_metrics = Column(JSON, nullable=True)  # {"total_deliverables": 4, "total_recommits": 2, ...}

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    project = relationship("Project", back_populates="streams")
    deliverables = relationship("Deliverable", back_populates="stream", cascade="all, delete-orphan", passive_deletes=True)

    __mapper_args__ = {"version_id_col": version}
