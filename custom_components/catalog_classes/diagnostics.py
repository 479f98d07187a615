"""Diagnostics support for the Catalog Classes integration."""

from __future__ import annotations

from typing import Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.core import HomeAssistant

from .const import TO_REDACT
from .models import CatalogClassesConfigEntry


async def async_get_config_entry_diagnostics(
    _hass: HomeAssistant,
    entry: CatalogClassesConfigEntry,
) -> dict[str, Any]:
    """Return diagnostics data for a config entry."""
    runtime_data = getattr(entry, "runtime_data", None)

    diagnostics: dict[str, Any] = {
        "entry": async_redact_data(entry.as_dict(), TO_REDACT),
    }

    if runtime_data is None:
        diagnostics["coordinator_data"] = None
        diagnostics["client"] = None
        return diagnostics

    coordinator = runtime_data.coordinator
    data = coordinator.data
    diagnostics["coordinator_data"] = (
        {
            "sessions_count": len(data.sessions),
            "over_capacity_count": sum(
                1 for session in data.sessions if session.over_capacity
            ),
            "range_start": data.range_start.isoformat(),
            "range_end": data.range_end.isoformat(),
            "lookup_counts": {key: len(value) for key, value in data.lookups.items()},
            "templates_count": len(data.templates),
        }
        if data is not None
        else None
    )
    diagnostics["coordinator_state"] = {
        "last_update_success": coordinator.last_update_success,
        "last_update_success_time": coordinator.last_update_success_time,
        "view_mode": coordinator.view.mode,
        "week_start": coordinator.view.week_start.isoformat(),
        "filters": coordinator.filters.as_options(),
    }
    diagnostics["roster"] = {
        "selected_session_id": runtime_data.roster.selected_session_id,
        "last_error": runtime_data.roster.last_error,
        "search_last_error": runtime_data.customer_search.last_error,
    }
    diagnostics["client"] = {
        "base_url": runtime_data.client.base_url,
        "organization": runtime_data.client.organization,
    }

    return diagnostics
