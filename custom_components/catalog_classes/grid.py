"""Time grid and session block layout for the class calendar.

The week view is a fixed column of hourly slots. A session block is placed by
its raw start offset and sized by its duration; blocks are never packed into
lanes, so two overlapping sessions share the same horizontal space.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Any, Final

from homeassistant.util import dt as dt_util

from .util import parse_catalog_datetime, parse_hhmm

if TYPE_CHECKING:
    from .models import CalendarSession

TIME_SLOTS: Final[list[str]] = [f"{hour:02d}:00" for hour in range(6, 19)]
SLOT_HEIGHT: Final = 80
BLOCK_GUTTER: Final = 12
MIN_BLOCK_HEIGHT: Final = 32

DAYS_IN_WEEK: Final = 7


@dataclass(frozen=True, slots=True)
class SessionLayout:
    """Vertical placement of a session block inside a day column."""

    top: float
    raw_height: float
    height: float
    duration_hours: float
    is_short: bool
    show_room: bool
    show_instructor: bool


def start_of_week(value: date | datetime) -> datetime:
    """Return Sunday 00:00 of the week containing `value`."""
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min, tzinfo=dt_util.DEFAULT_TIME_ZONE)
    # weekday() is 0 for Monday; weeks start on Sunday
    days_since_sunday = (value.weekday() + 1) % DAYS_IN_WEEK
    start = value - timedelta(days=days_since_sunday)
    return start.replace(hour=0, minute=0, second=0, microsecond=0)


def add_days(value: datetime, days: int) -> datetime:
    """Return `value` shifted by whole days."""
    return value + timedelta(days=days)


def week_days(week_start: datetime) -> list[datetime]:
    """Return the seven consecutive days starting at `week_start`."""
    return [add_days(week_start, offset) for offset in range(DAYS_IN_WEEK)]


def end_of_day(value: datetime) -> datetime:
    """Return the last representable moment of the day of `value`."""
    return value.replace(hour=23, minute=59, second=59, microsecond=999000)


def to_date_string(value: datetime) -> str:
    """Local `YYYY-MM-DD` bucket for a timestamp."""
    return dt_util.as_local(value).date().isoformat()


def to_time_string(value: datetime) -> str:
    """Local `HH:MM` bucket for a timestamp."""
    return dt_util.as_local(value).strftime("%H:%M")


def format_time_label(value: str) -> str:
    """Format `17:00` as `5:00 PM`."""
    hour, minute = parse_hhmm(value)
    display_hour = 12 if hour % 12 == 0 else hour % 12
    suffix = "PM" if hour >= 12 else "AM"
    return f"{display_hour}:{minute:02d} {suffix}"


def format_time_range(start_time: str, end_time: str) -> str:
    """Format a pair of `HH:MM` strings as `9:00 AM – 10:30 AM`."""
    return f"{format_time_label(start_time)} – {format_time_label(end_time)}"


def format_date_label(value: str | date | datetime) -> str:
    """Format a timestamp or date as `Monday, May 5`."""
    if isinstance(value, str):
        parsed = parse_catalog_datetime(value)
        if parsed is None:
            return value
        value = dt_util.as_local(parsed)
    return f"{value.strftime('%A, %B')} {value.day}"


def column_height(slots: list[str] = TIME_SLOTS) -> int:
    """Total pixel height of a day column."""
    return len(slots) * SLOT_HEIGHT


def session_layout(
    start_time: str,
    end_time: str,
    slots: list[str] = TIME_SLOTS,
) -> SessionLayout:
    """Compute offset and height of a session block from its `HH:MM` times."""
    start_hour, start_minutes = parse_hhmm(start_time)
    end_hour, end_minutes = parse_hhmm(end_time)
    total_minutes = (end_hour * 60 + end_minutes) - (start_hour * 60 + start_minutes)
    duration_hours = total_minutes / 60
    first_slot_hour, _ = parse_hhmm(slots[0])

    top = (start_hour - first_slot_hour + start_minutes / 60) * SLOT_HEIGHT
    raw_height = duration_hours * SLOT_HEIGHT
    height = max(raw_height - BLOCK_GUTTER, MIN_BLOCK_HEIGHT)

    return SessionLayout(
        top=top,
        raw_height=raw_height,
        height=height,
        duration_hours=duration_hours,
        is_short=duration_hours <= 1,
        show_room=duration_hours >= 1.25,
        show_instructor=duration_hours >= 1.5,
    )


def is_over_capacity(registered_count: int, max_participants: int) -> bool:
    """Flag a roster that exceeds capacity; a full roster is not flagged."""
    return registered_count > max_participants


def sessions_by_date(
    sessions: Iterable[CalendarSession],
) -> dict[str, list[CalendarSession]]:
    """Bucket sessions by their local date string, keeping their order."""
    buckets: dict[str, list[CalendarSession]] = {}
    for session in sessions:
        buckets.setdefault(session.date, []).append(session)
    return buckets


def _capacity(session: CalendarSession) -> dict[str, Any]:
    return {
        "registered_count": session.registered_count,
        "max_participants": session.max_participants,
        "capacity": f"{session.registered_count} / {session.max_participants}",
        "over_capacity": session.over_capacity,
    }


def session_block(session: CalendarSession) -> dict[str, Any]:
    """Display model for a session inside the week grid."""
    layout = session_layout(session.start_time, session.end_time)
    return {
        "id": session.id,
        "name": session.name,
        "start_time": session.start_time,
        "end_time": session.end_time,
        "time_label": format_time_range(session.start_time, session.end_time),
        "room": session.room if layout.show_room else None,
        "instructor": session.instructor_name if layout.show_instructor else None,
        "cancelled": session.cancelled,
        "compact": layout.is_short,
        "top": layout.top,
        "height": layout.height,
        **_capacity(session),
    }


def build_week_grid(
    week_start: datetime,
    sessions: Iterable[CalendarSession],
) -> list[dict[str, Any]]:
    """Return one column per day with its positioned session blocks."""
    buckets = sessions_by_date(sessions)
    columns: list[dict[str, Any]] = []
    for day in week_days(week_start):
        iso = day.date().isoformat()
        columns.append(
            {
                "date": iso,
                "weekday": day.strftime("%a"),
                "label": f"{day.strftime('%b')} {day.day}",
                "sessions": [session_block(item) for item in buckets.get(iso, [])],
            }
        )
    return columns


def build_day_view(
    day: datetime,
    sessions: Iterable[CalendarSession],
) -> dict[str, Any]:
    """Return the list model for a single day."""
    iso = day.date().isoformat()
    day_sessions = sessions_by_date(sessions).get(iso, [])
    return {
        "date": iso,
        "label": format_date_label(day),
        "session_count": len(day_sessions),
        "sessions": [
            {
                "id": session.id,
                "name": session.name,
                "time_label": format_time_range(session.start_time, session.end_time),
                "room": session.room,
                "instructor": session.instructor_name,
                "cancelled": session.cancelled,
                **_capacity(session),
            }
            for session in day_sessions
        ],
    }
