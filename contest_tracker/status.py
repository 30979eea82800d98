"""Lifecycle phase and duration text for contests. Pure functions, no I/O."""
from datetime import datetime

UPCOMING = "upcoming"
ONGOING = "ongoing"
COMPLETED = "completed"
STATUSES = (UPCOMING, ONGOING, COMPLETED)


def contest_status(start_date: datetime, end_date: datetime, now: datetime) -> str:
    if now < start_date:
        return UPCOMING
    if now <= end_date:
        return ONGOING
    return COMPLETED


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_duration(start_date: datetime, end_date: datetime) -> str:
    """Human readable span, e.g. ``"2 days 3 hours"`` or ``"5 hours"``.

    Hours are floored. The hour part is dropped from the day form when it is 0.
    """
    total_hours = max(int((end_date - start_date).total_seconds() // 3600), 0)
    days, hours = divmod(total_hours, 24)
    if days >= 1:
        text = _plural(days, "day")
        if hours > 0:
            text += " " + _plural(hours, "hour")
        return text
    return _plural(hours, "hour")


def resolve_duration(duration: str | None, start_date: datetime, end_date: datetime) -> str:
    if duration:
        return duration
    return format_duration(start_date, end_date)
