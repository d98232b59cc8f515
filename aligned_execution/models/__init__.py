from aligned_execution.models.project import Project
from aligned_execution.models.stream import Stream, StreamStatus, STREAM_COLORS
from aligned_execution.models.team import TeamMember
from aligned_execution.models.whiteboard import WhiteboardNote
from aligned_execution.models.deliverable import (
    Deliverable,
    DeliverableStatus,
    DateChange,
    ChecklistItem,
    DeliverableComment,
)
from aligned_execution.models.track import ExecutionTrack, TrackHealth

__all__ = [
    "Project",
    "Stream",
    "StreamStatus",
    "STREAM_COLORS",
    "TeamMember",
    "WhiteboardNote",
    "Deliverable",
    "DeliverableStatus",
    "DateChange",
    "ChecklistItem",
    "DeliverableComment",
    "ExecutionTrack",
    "TrackHealth",
]
