"""Calendar entity for Catalog class sessions."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
from typing import Any

from homeassistant.components.calendar import CalendarEntity, CalendarEvent
from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity
from homeassistant.util import dt as dt_util

from .const import DOMAIN
from .coordinator import CatalogClassesCoordinator
from .grid import format_time_range
from .models import (
    ACCESS_TYPE_TEXT,
    CalendarSession,
    CatalogClassesConfigEntry,
    CatalogClassesRuntimeData,
)

PARALLEL_UPDATES = 0


def session_to_event(session: CalendarSession) -> CalendarEvent:
    """Build a calendar event from a session."""
    summary = session.name
    if session.cancelled:
        summary = f"[Cancelled] {summary}"

    location = session.location_name
    if session.room:
        location = f"{location} · {session.room}"

    lines = [format_time_range(session.start_time, session.end_time)]
    if session.instructor_name:
        lines.append(f"Instructor: {session.instructor_name}")
    lines.append(f"Capacity: {session.registered_count} / {session.max_participants}")
    if session.over_capacity:
        lines.append("Over capacity – review roster")
    if access := ACCESS_TYPE_TEXT.get(session.access_type):
        lines.append(access)

    return CalendarEvent(
        start=session.start,
        end=session.end,
        summary=summary,
        description="\n".join(lines),
        location=location,
        uid=session.id,
    )


async def async_setup_entry(
    _hass: HomeAssistant,
    entry: CatalogClassesConfigEntry,
    async_add_entities,
) -> None:
    """Set up the Catalog Classes calendar entity."""
    runtime_data: CatalogClassesRuntimeData | None = entry.runtime_data
    if runtime_data is None:
        raise HomeAssistantError("Catalog Classes runtime data is not available")

    async_add_entities(
        [
            CatalogClassesCalendarEntity(
                coordinator=runtime_data.coordinator,
                config_entry=entry,
            )
        ]
    )


class CatalogClassesCalendarEntity(
    CoordinatorEntity[CatalogClassesCoordinator],
    CalendarEntity,
):
    """Calendar entity showing the sessions of the visible week or day."""

    _attr_has_entity_name = True
    _attr_name = "Class schedule"

    def __init__(
        self,
        coordinator: CatalogClassesCoordinator,
        config_entry: CatalogClassesConfigEntry,
    ) -> None:
        """Initialize the calendar entity."""
        super().__init__(coordinator)
        self._config_entry = config_entry
        self._attr_unique_id = f"{config_entry.entry_id}_calendar"

    @property
    def device_info(self) -> DeviceInfo:
        """Group all entities of the organization under one service device."""
        return DeviceInfo(
            identifiers={(DOMAIN, self._config_entry.entry_id)},
            name=self._config_entry.title,
            entry_type=DeviceEntryType.SERVICE,
        )

    @property
    def event(self) -> CalendarEvent | None:
        """Return the current or next upcoming session."""
        now = dt_util.utcnow()
        for ev in sorted(self._build_events(), key=lambda ev: ev.start):
            if ev.start <= now < ev.end or ev.start >= now:
                return ev
        return None

    async def async_get_events(
        self,
        hass: HomeAssistant,
        start_date: datetime,
        end_date: datetime,
    ) -> list[CalendarEvent]:
        """Return sessions overlapping a datetime range.

        Only the range loaded by the coordinator is available; use the
        `set_view` service to move the calendar to another week.
        """
        return [
            ev
            for ev in self._build_events()
            if ev.end > start_date and ev.start < end_date
        ]

    async def async_create_event(self, **kwargs: Any) -> None:
        """Disallow creating events via Home Assistant."""
        raise HomeAssistantError("Class sessions are generated from templates")

    async def async_delete_event(
        self,
        uid: str,
        recurrence_id: str | None = None,
        recurrence_range: str | None = None,
    ) -> None:
        """Disallow deleting events via Home Assistant."""
        raise HomeAssistantError("Use the cancel_session service instead")

    async def async_update_event(
        self,
        uid: str,
        event: dict[str, Any],
        recurrence_id: str | None = None,
        recurrence_range: str | None = None,
    ) -> None:
        """Disallow updating events via Home Assistant."""
        raise HomeAssistantError("Catalog class calendar is read-only")

    def _build_events(self) -> Iterator[CalendarEvent]:
        """Build CalendarEvent objects from coordinator data."""
        if self.coordinator.data is None:
            return
        for session in self.coordinator.data.sessions:
            yield session_to_event(session)

    @callback
    def _handle_coordinator_update(self) -> None:
        """Handle updated data from the coordinator."""
        self.async_write_ha_state()
