"""
Schedule view - stream date ranges and the timeline they are drawn on
"""
from datetime import date
from typing import Iterable, List, Optional, Tuple

TIME_SCALES = ("monthly", "quarterly")
DEFAULT_SPAN_MONTHS = 18


def add_months(d: date, months: int) -> date:
    """First day of the month ``months`` away from d's month"""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def stream_date_range(items: Iterable) -> Tuple[Optional[date], Optional[date]]:
    dates = [i.target_date for i in items if i.target_date is not None]
    if not dates:
        return None, None
    return min(dates), max(dates)


def timeline_periods(milestones: Iterable[Optional[date]], scale: str = "monthly", today: Optional[date] = None) -> List[dict]:
    """Month or quarter columns spanning the project milestones.

    One month of padding before the earliest milestone and two after the
    latest; with no milestones the timeline runs 18 months from today.
    """
    if scale not in TIME_SCALES:
        raise ValueError(f"Invalid time scale '{scale}'. Must be one of: {TIME_SCALES}")

    dates = [d for d in milestones if d is not None]
    if dates:
        start = add_months(min(dates), -1)
        end = add_months(max(dates), 2)
    else:
        today = today or date.today()
        start = add_months(today, 0)
        end = add_months(today, DEFAULT_SPAN_MONTHS)

    step = 3 if scale == "quarterly" else 1
    periods = []
    current = start
    while current <= end:
        if scale == "quarterly":
            label = f"Q{(current.month - 1) // 3 + 1} {current.strftime('%y')}"
        else:
            label = current.strftime("%b %y")
        periods.append({"label": label, "start": current, "is_quarter": scale == "quarterly"})
        current = add_months(current, step)
    return periods
