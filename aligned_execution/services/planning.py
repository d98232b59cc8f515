"""
Planning audit trail for deliverables.

Every change to a committed target date is a *recommit*: it is appended to the
deliverable's date history together with the reason given, and the planning
accuracy score is recomputed from scratch. The first committed date is kept as
``original_date`` and never changes again; slip is always measured against it,
not against the current target.

All functions here mutate the object they are given and return it. They do no
I/O; callers pass ``now`` / ``as_of`` explicitly where time matters and persist
the result themselves.
"""
import math
from datetime import date, datetime
from typing import Optional, Union

from aligned_execution.models.deliverable import Deliverable, DateChange, DeliverableStatus
from aligned_execution.models.track import ExecutionTrack, TrackHealth

RECOMMIT_PENALTY = 10  # points per recommit
SLIP_DAY_PENALTY = 2  # points per day completed past the baseline

DateLike = Union[date, datetime]


class RecommitRequired(ValueError):
    """Raised when an existing target date is changed without a recommit"""


def to_datetime(value: DateLike) -> datetime:
    """Dates are treated as midnight of that day"""
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def days_between(start: DateLike, end: DateLike) -> float:
    """Fractional days from start to end (negative when end is earlier)"""
    return (to_datetime(end) - to_datetime(start)).total_seconds() / 86400


def is_complete(item) -> bool:
    return item.status == DeliverableStatus.COMPLETE.value


def new_deliverable(
    title: str,
    project_id: Optional[int] = None,
    stream_id: Optional[int] = None,
    description: Optional[str] = None,
    status: str = DeliverableStatus.PLANNING.value,
    target_date: Optional[date] = None,
    now: Optional[datetime] = None,
    **fields,
) -> Deliverable:
    """Build a deliverable whose baseline is its initial target date"""
    item = Deliverable(
        title=title,
        project_id=project_id,
        stream_id=stream_id,
        description=description,
        status=status,
        target_date=target_date,
        original_date=target_date,
        recommit_reasons=[],
        recommit_count=0,
        dependencies=list(fields.pop("dependencies", None) or []),
        date_history=[],
        checklist=[],
        comments=[],
        **fields,
    )
    if status == DeliverableStatus.COMPLETE.value:
        item.completed_at = now or datetime.utcnow()
    recompute_planning_accuracy_score(item)
    return item


def recompute_planning_accuracy_score(item) -> Optional[int]:
    """Score 0-100: 10 points off per recommit, 2 per day completed late"""
    if item.original_date is None:
        item.planning_accuracy_score = None
        return None

    score = 100 - RECOMMIT_PENALTY * (item.recommit_count or 0)

    if is_complete(item) and item.completed_at is not None:
        slip_days = max(0, math.ceil(days_between(item.original_date, item.completed_at)))
        score -= SLIP_DAY_PENALTY * slip_days

    item.planning_accuracy_score = max(0, score)
    return item.planning_accuracy_score


def record_date_change(
    item,
    new_date: Optional[date],
    reason: str,
    explanation: str = "",
    changed_by: str = "System",
    now: Optional[datetime] = None,
):
    """Recommit the target date and append the change to the audit trail.

    When the item has no baseline yet, the pre-change target date becomes the
    baseline; if there was no target date at all, the new date does (so the
    first ever commitment is never lost).
    """
    now = now or datetime.utcnow()
    old_date = item.target_date

    if item.original_date is None:
        item.original_date = old_date if old_date is not None else new_date

    item.date_history.append(DateChange(
        old_date=old_date,
        new_date=new_date,
        reason=reason,
        explanation=explanation or "",
        changed_by=changed_by,
        changed_at=now,
    ))
    # Reassign so the JSON column is flagged dirty
    item.recommit_reasons = list(item.recommit_reasons or []) + [reason]
    item.recommit_count = len(item.date_history)
    item.target_date = new_date

    recompute_planning_accuracy_score(item)
    return item


def assign_target_date(item, target_date: Optional[date]):
    """Set a target date directly - only allowed on a never-dated item"""
    if target_date == item.target_date:
        return item
    if item.target_date is not None or item.original_date is not None or item.date_history:
        committed = item.target_date.isoformat() if item.target_date else "cleared by a recommit"
        raise RecommitRequired(
            f"Target date is already committed ({committed}); "
            "changing it requires a recommit with a reason"
        )

    item.target_date = target_date
    if item.original_date is None:
        item.original_date = target_date
    recompute_planning_accuracy_score(item)
    return item


def mark_complete(item, now: Optional[datetime] = None):
    """Complete the item; completed_at is only ever set once"""
    item.status = DeliverableStatus.COMPLETE.value
    if item.completed_at is None:
        item.completed_at = now or datetime.utcnow()
    recompute_planning_accuracy_score(item)
    return item


def change_status(item, status: str, now: Optional[datetime] = None):
    """Any status may follow any other; completion goes through mark_complete"""
    status = DeliverableStatus(status).value
    if status == DeliverableStatus.COMPLETE.value:
        return mark_complete(item, now=now)

    item.status = status
    recompute_planning_accuracy_score(item)
    return item


def current_slip_days(item, as_of: Optional[DateLike] = None) -> int:
    """Days past the original baseline, as of now or the completion time"""
    if item.original_date is None:
        return 0

    if is_complete(item) and item.completed_at is not None:
        compare = item.completed_at
    else:
        compare = as_of or datetime.utcnow()

    elapsed = days_between(item.original_date, compare)
    if elapsed > 0:
        return math.ceil(elapsed)
    return 0


# --- Execution tracks ---

def recommit_track(track: ExecutionTrack, new_date: Optional[date], now: Optional[datetime] = None) -> ExecutionTrack:
    now = now or datetime.utcnow()
    entry = {
        "old_date": track.target_date.isoformat() if track.target_date else None,
        "new_date": new_date.isoformat() if new_date else None,
        "recommit_at": now.isoformat(),
    }
    track.recommit_history = list(track.recommit_history or []) + [entry]
    track.recommit_count = (track.recommit_count or 0) + 1
    track.target_date = new_date
    return track


def complete_track(track: ExecutionTrack, now: Optional[datetime] = None) -> ExecutionTrack:
    track.health = TrackHealth.COMPLETE.value
    if track.completed_at is None:
        track.completed_at = now or datetime.utcnow()
    return track
