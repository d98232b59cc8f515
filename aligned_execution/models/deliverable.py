"""
Deliverable models - functional deliverables with their date audit trail,
checklist and comments
"""
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Boolean, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum
from aligned_execution.database import Base


class DeliverableStatus(str, Enum):
    PLANNING = "planning"
    ALIGNMENT = "alignment"
    READY = "ready"
    EXECUTING = "executing"
    BLOCKED = "blocked"
    REVIEW = "review"
    COMPLETE = "complete"


# Reasons offered when recommitting; free text is accepted as well
RECOMMIT_REASONS = [
    "Scope Change",
    "Dependency Delay",
    "Resource Constraint",
    "Technical Complexity",
    "External Factor",
]


class Deliverable(Base):
    __tablename__ = "deliverables"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    stream_id = Column(Integer, ForeignKey("streams.id", ondelete="CASCADE"), nullable=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=DeliverableStatus.PLANNING.value)
    position = Column(Integer, nullable=False, default=0)

    # Ownership
    owner_name = Column(String, nullable=True)
    owner_email = Column(String, nullable=True)
    assigned_member_id = Column(Integer, ForeignKey("team_members.id", ondelete="SET NULL"), nullable=True)
    promoted_from_note_id = Column(Integer, ForeignKey("whiteboard_notes.id", ondelete="SET NULL"), nullable=True)

    # Audit trail - original_date is the immutable baseline
    target_date = Column(Date, nullable=True)
    original_date = Column(Date, nullable=True)
    recommit_reasons = Column(JSON, nullable=False, default=list)
    recommit_count = Column(Integer, nullable=False, default=0)
    planning_accuracy_score = Column(Integer, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    # Ids of deliverables this one depends on
    dependencies = Column(JSON, nullable=False, default=list)

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    project = relationship("Project", back_populates="deliverables")
    stream = relationship("Stream", back_populates="deliverables")
    date_history = relationship(
        "DateChange", back_populates="deliverable", order_by="DateChange.id",
        cascade="all, delete-orphan", passive_deletes=True, lazy="selectin",
    )
    checklist = relationship(
        "ChecklistItem", back_populates="deliverable", order_by=lambda: [ChecklistItem.position, ChecklistItem.id],
        cascade="all, delete-orphan", passive_deletes=True, lazy="selectin",
    )
    comments = relationship(
        "DeliverableComment", back_populates="deliverable", order_by="DeliverableComment.id",
        cascade="all, delete-orphan", passive_deletes=True, lazy="selectin",
    )
    tracks = relationship("ExecutionTrack", back_populates="deliverable", cascade="all, delete-orphan", passive_deletes=True)

    __mapper_args__ = {"version_id_col": version}


class DateChange(Base):
    """One target date recommit - rows are only ever appended"""
    __tablename__ = "deliverable_date_changes"

    id = Column(Integer, primary_key=True, index=True)
    deliverable_id = Column(Integer, ForeignKey("deliverables.id", ondelete="CASCADE"), nullable=False, index=True)
    old_date = Column(Date, nullable=True)
    new_date = Column(Date, nullable=True)
    reason = Column(String, nullable=False)
    explanation = Column(Text, nullable=True)
    changed_by = Column(String, nullable=False)
    changed_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    deliverable = relationship("Deliverable", back_populates="date_history")


class ChecklistItem(Base):
    __tablename__ = "checklist_items"

    id = Column(Integer, primary_key=True, index=True)
    deliverable_id = Column(Integer, ForeignKey("deliverables.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    done = Column(Boolean, nullable=False, default=False)
    done_at = Column(DateTime, nullable=True)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    deliverable = relationship("Deliverable", back_populates="checklist")


class DeliverableComment(Base):
    __tablename__ = "deliverable_comments"

    id = Column(Integer, primary_key=True, index=True)
    deliverable_id = Column(Integer, ForeignKey("deliverables.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    author = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)

    deliverable = relationship("Deliverable", back_populates="comments")
