"""Helpers for the Catalog Classes integration."""

from __future__ import annotations

from datetime import datetime

from homeassistant.util import dt as dt_util


def parse_catalog_datetime(value: str | None) -> datetime | None:
    """Parse Catalog API timestamps and return them in UTC.

    The API returns ISO 8601 strings such as `2025-05-05T17:00:00.000Z`.
    Naive values are interpreted in the Home Assistant default timezone before
    converting to UTC.
    """
    if not value or not isinstance(value, str):
        return None

    parsed = dt_util.parse_datetime(value)
    if parsed is None:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt_util.DEFAULT_TIME_ZONE)

    return dt_util.as_utc(parsed)


def parse_hhmm(value: str) -> tuple[int, int]:
    """Split an `HH:MM` string into hours and minutes."""
    hour_str, _, minute_str = value.partition(":")
    return int(hour_str), int(minute_str or 0)
