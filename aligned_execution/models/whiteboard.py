"""
Whiteboard note model - loose ideas that can be promoted to deliverables
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean, JSON
from datetime import datetime
from aligned_execution.database import Base


class WhiteboardNote(Base):
    __tablename__ = "whiteboard_notes"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    stream_id = Column(Integer, ForeignKey("streams.id", ondelete="SET NULL"), nullable=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    promoted = Column(Boolean, nullable=False, default=False)
    promoted_at = Column(DateTime, nullable=True)
    promoted_to_deliverable_id = Column(Integer, nullable=True)  # cleared when the deliverable is deleted

    created_at = Column(DateTime, default=datetime.utcnow)
