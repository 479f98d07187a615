"""Tests for config entry diagnostics."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from custom_components.catalog_classes.coordinator import CalendarView
from custom_components.catalog_classes.diagnostics import (
    async_get_config_entry_diagnostics,
)
from custom_components.catalog_classes.filters import CalendarFilters
from custom_components.catalog_classes.grid import start_of_week
from custom_components.catalog_classes.models import (
    CatalogScheduleData,
    map_api_session,
)


@pytest.fixture
def mock_entry():
    entry = MagicMock()
    entry.as_dict.return_value = {
        "entry_id": "abc",
        "data": {
            "base_url": "https://catalog.test",
            "organization": "acme",
            "api_token": "secret",
        },
    }
    return entry


@pytest.mark.asyncio
async def test_diagnostics_redacts_token(mock_entry, session_item):
    view = CalendarView(week_start=start_of_week(date(2025, 5, 5)))
    filters = CalendarFilters()
    filters.toggle("rooms", "Studio A")

    coordinator = MagicMock()
    coordinator.view = view
    coordinator.filters = filters
    coordinator.data = CatalogScheduleData(
        sessions=[
            map_api_session(session_item()),
            map_api_session(
                session_item(
                    id="sess-2", maxParticipants=1, _count={"rosterEntries": 2}
                )
            ),
        ],
        range_start=view.range_start,
        range_end=view.range_end,
        lookups={"rooms": ["Studio A", "Studio B"]},
    )

    runtime_data = MagicMock()
    runtime_data.coordinator = coordinator
    runtime_data.roster.selected_session_id = None
    runtime_data.roster.last_error = "Failed to add participant."
    runtime_data.customer_search.last_error = None
    runtime_data.client.base_url = "https://catalog.test"
    runtime_data.client.organization = "acme"
    mock_entry.runtime_data = runtime_data

    result = await async_get_config_entry_diagnostics(MagicMock(), mock_entry)

    assert result["entry"]["data"]["api_token"] == "**REDACTED**"
    assert result["entry"]["data"]["organization"] == "acme"
    assert result["coordinator_data"]["sessions_count"] == 2
    assert result["coordinator_data"]["over_capacity_count"] == 1
    assert result["coordinator_data"]["lookup_counts"] == {"rooms": 2}
    assert result["coordinator_state"]["view_mode"] == "WEEK"
    assert result["coordinator_state"]["filters"]["rooms"] == ["Studio A"]
    assert result["roster"]["last_error"] == "Failed to add participant."
    assert result["client"] == {
        "base_url": "https://catalog.test",
        "organization": "acme",
    }


@pytest.mark.asyncio
async def test_diagnostics_before_setup(mock_entry):
    mock_entry.runtime_data = None

    result = await async_get_config_entry_diagnostics(MagicMock(), mock_entry)

    assert result["coordinator_data"] is None
    assert result["client"] is None
