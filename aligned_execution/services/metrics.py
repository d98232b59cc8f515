"""
Board metrics - health classification and stream/program aggregation.

Pure folds over deliverables already loaded by the caller. Items whose
stream_id does not match one of the streams passed in are left out of the
aggregation rather than reported as errors.
"""
import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, Iterable, List, Optional

from aligned_execution.models.deliverable import RECOMMIT_REASONS
from aligned_execution.models.stream import StreamStatus
from aligned_execution.services.planning import (
    DateLike,
    current_slip_days,
    days_between,
    is_complete,
    to_datetime,
)


class Health(str, Enum):
    COMPLETE = "complete"
    ON_TRACK = "on_track"
    LATE = "late"


def round_half_up(value: float, ndigits: int = 0):
    """Round .5 away from zero (round() would use banker's rounding)"""
    quantum = Decimal(1).scaleb(-ndigits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if ndigits == 0 else float(rounded)


def is_overdue(item, as_of: Optional[DateLike] = None) -> bool:
    if item.target_date is None or is_complete(item):
        return False
    as_of = as_of or datetime.utcnow()
    return to_datetime(item.target_date) < to_datetime(as_of)


def classify_health(item, as_of: Optional[DateLike] = None) -> Health:
    """Recommitted or overdue items are late, regardless of how far out the new date is"""
    if is_complete(item):
        return Health.COMPLETE
    if (item.recommit_count or 0) > 0 or is_overdue(item, as_of):
        return Health.LATE
    return Health.ON_TRACK


def aggregate_stream(items: Iterable, as_of: Optional[DateLike] = None) -> dict:
    items = list(items)
    total = len(items)
    as_of = as_of or datetime.utcnow()

    counts = {Health.COMPLETE: 0, Health.ON_TRACK: 0, Health.LATE: 0}
    for item in items:
        counts[classify_health(item, as_of)] += 1

    total_slip_days = sum(current_slip_days(i, as_of) for i in items if not is_complete(i))
    total_recommits = sum(i.recommit_count or 0 for i in items)

    return {
        "total": total,
        "complete": counts[Health.COMPLETE],
        "on_track": counts[Health.ON_TRACK],
        "late": counts[Health.LATE],
        "completion_rate_pct": round_half_up(100 * counts[Health.COMPLETE] / total) if total else 0,
        "total_slip_days": total_slip_days,
        "avg_slip_days": round_half_up(total_slip_days / total, 1) if total else 0,
        "total_recommits": total_recommits,
        "avg_recommits": round_half_up(total_recommits / total, 1) if total else 0,
    }


def program_accuracy_contribution(item, as_of: Optional[DateLike] = None) -> Optional[int]:
    """Program-level accuracy for one item: 100 unless overdue, then 10 off per day late.

    Deliberately not the same as the item's planning_accuracy_score; this one
    only looks at where the current target sits relative to today.
    """
    if item.target_date is None:
        return None
    if is_complete(item):
        return 100

    as_of = as_of or datetime.utcnow()
    if to_datetime(item.target_date) >= to_datetime(as_of):
        return 100

    days_late = math.ceil(days_between(item.target_date, as_of))
    return max(0, 100 - min(days_late * 10, 100))


def program_planning_accuracy(items: Iterable, as_of: Optional[DateLike] = None) -> int:
    scores = [
        s for s in (program_accuracy_contribution(i, as_of) for i in items)
        if s is not None
    ]
    if not scores:
        return 0
    return round_half_up(sum(scores) / len(scores))


def recommit_reason_breakdown(items: Iterable) -> List[dict]:
    """Recommits per reason, with each reason's share of all recommits.

    The standard reasons are always listed, zero or not; any other reason
    follows in order of first use.
    """
    items = list(items)
    counts: Dict[str, int] = {reason: 0 for reason in RECOMMIT_REASONS}
    for item in items:
        for reason in item.recommit_reasons or []:
            counts[reason] = counts.get(reason, 0) + 1

    total_recommits = sum(i.recommit_count or 0 for i in items)
    return [
        {
            "reason": reason,
            "count": count,
            "pct": round_half_up(100 * count / total_recommits) if total_recommits else 0,
        }
        for reason, count in counts.items()
    ]


def is_active_stream(stream) -> bool:
    return stream.status not in (StreamStatus.ARCHIVED.value, StreamStatus.COMPLETE.value)


def aggregate_program(
    streams: Iterable,
    items: Iterable,
    tracks: Iterable = (),
    as_of: Optional[DateLike] = None,
) -> dict:
    """Executive summary over active streams plus per-stream performance"""
    as_of = as_of or datetime.utcnow()
    streams = sorted((s for s in streams if is_active_stream(s)), key=lambda s: (s.position or 0, s.id or 0))
    items = list(items)
    tracks = list(tracks)

    by_stream: Dict[int, List] = {s.id: [] for s in streams}
    for item in items:
        if item.stream_id in by_stream:
            by_stream[item.stream_id].append(item)
    active_items = [i for s in streams for i in by_stream[s.id]]
    active_ids = {i.id for i in active_items}

    stream_performance = []
    for stream in streams:
        stream_items = by_stream[stream.id]
        if not stream_items:
            continue
        stream_item_ids = {i.id for i in stream_items}
        stream_performance.append({
            "stream_id": stream.id,
            "name": stream.name,
            "color": stream.color,
            "status": stream.status,
            "track_count": sum(1 for t in tracks if t.deliverable_id in stream_item_ids),
            **aggregate_stream(stream_items, as_of),
        })

    overall = aggregate_stream(active_items, as_of)
    return {
        "as_of": to_datetime(as_of),
        "active_streams": len(stream_performance),
        "deliverable_count": overall["total"],
        "track_count": sum(1 for t in tracks if t.deliverable_id in active_ids or t.is_outside_track),
        "program_completion_pct": overall["completion_rate_pct"],
        "total_slip_days": overall["total_slip_days"],
        "total_recommits": overall["total_recommits"],
        "avg_recommits": overall["avg_recommits"],
        "avg_planning_accuracy": program_planning_accuracy(active_items, as_of),
        "health": {
            "complete": overall["complete"],
            "on_track": overall["on_track"],
            "late": overall["late"],
        },
        "recommit_reasons": recommit_reason_breakdown(active_items),
        "streams": stream_performance,
    }


def archive_snapshot(items: Iterable) -> dict:
    """Metrics frozen onto a stream when it is archived"""
    items = list(items)
    total_slip_days = 0
    for item in items:
        if item.original_date and item.target_date:
            total_slip_days += max(0, math.ceil(days_between(item.original_date, item.target_date)))

    return {
        "total_deliverables": len(items),
        "completed_deliverables": sum(1 for i in items if is_complete(i)),
        "total_recommits": sum(i.recommit_count or 0 for i in items),
        "total_slip_days": total_slip_days,
    }
