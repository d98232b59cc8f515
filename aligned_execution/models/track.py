"""
Execution track model - vendor-level work under a deliverable, or an
"outside" track with no deliverable
"""
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Boolean, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum
from aligned_execution.database import Base


class TrackHealth(str, Enum):
    ON_TRACK = "on_track"
    LATE = "late"
    COMPLETE = "complete"


class ExecutionTrack(Base):
    __tablename__ = "execution_tracks"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    deliverable_id = Column(Integer, ForeignKey("deliverables.id", ondelete="CASCADE"), nullable=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    vendor = Column(String, nullable=False, default="Unassigned")
    target_date = Column(Date, nullable=True)
    health = Column(String, nullable=False, default=TrackHealth.ON_TRACK.value)
    is_outside_track = Column(Boolean, nullable=False, default=False)

    recommit_count = Column(Integer, nullable=False, default=0)
    recommit_history = Column(JSON, nullable=False, default=list)  # [{"old_date", "new_date", "recommit_at"}]

    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    deliverable = relationship("Deliverable", back_populates="tracks")
