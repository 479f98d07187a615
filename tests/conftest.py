"""Shared fixtures for the Catalog Classes tests."""

from copy import deepcopy
from typing import Any

import pytest

from homeassistant.util import dt as dt_util

SESSION_ITEM: dict[str, Any] = {
    "id": "sess-1",
    "templateId": "tmpl-1",
    "organizationId": "org-1",
    "locationId": "loc-1",
    "startDateTime": "2025-05-05T09:00:00.000Z",
    "endDateTime": "2025-05-05T10:30:00.000Z",
    "maxParticipants": 10,
    "status": "SCHEDULED",
    "template": {
        "id": "tmpl-1",
        "name": "Vinyasa Flow",
        "program": "Yoga",
        "skillLevel": "ALL_LEVELS",
        "accessType": "INCLUDED_IN_MEMBERSHIP",
    },
    "location": {"id": "loc-1", "name": "Downtown"},
    "room": "Studio A",
    "instructorDisplayName": "Dana Lee",
    "_count": {"rosterEntries": 4},
}


def roster_entry(entry_id: str, customer_id: str, first: str, last: str) -> dict:
    """Build a roster entry as returned by the session detail endpoint."""
    return {
        "id": entry_id,
        "sessionId": "sess-1",
        "customerProfileId": customer_id,
        "status": "REGISTERED",
        "note": None,
        "createdAt": "2025-05-01T12:00:00.000Z",
        "updatedAt": "2025-05-01T12:00:00.000Z",
        "customerProfile": {
            "id": customer_id,
            "firstName": first,
            "lastName": last,
            "primaryEmail": f"{first.lower()}@example.com",
            "primaryPhone": None,
        },
    }


@pytest.fixture(autouse=True)
def utc_time_zone():
    """Run every test with UTC as the local time zone."""
    original = dt_util.DEFAULT_TIME_ZONE
    dt_util.set_default_time_zone(dt_util.UTC)
    yield
    dt_util.set_default_time_zone(original)


@pytest.fixture
def session_item():
    """Factory for session list items with overrides."""

    def _make(**overrides: Any) -> dict[str, Any]:
        item = deepcopy(SESSION_ITEM)
        item.update(overrides)
        return item

    return _make


@pytest.fixture
def session_detail(session_item):
    """Factory for session details carrying a roster."""

    def _make(roster: list[dict] | None = None, **overrides: Any) -> dict[str, Any]:
        detail = session_item(**overrides)
        detail.pop("_count", None)
        detail["rosterEntries"] = list(roster or [])
        return detail

    return _make


@pytest.fixture
def new_york_time_zone():
    """Use a local zone behind UTC for the duration of a test."""
    dt_util.set_default_time_zone(dt_util.get_time_zone("America/New_York"))
    yield
    dt_util.set_default_time_zone(dt_util.UTC)
