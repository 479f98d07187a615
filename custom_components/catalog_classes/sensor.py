"""Sensor entities for the Catalog Classes integration."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from homeassistant.components.sensor import SensorDeviceClass, SensorEntity
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity
from homeassistant.util import dt as dt_util

from .const import DOMAIN, VIEW_DAY
from .coordinator import CatalogClassesCoordinator
from .grid import (
    TIME_SLOTS,
    build_day_view,
    build_week_grid,
    column_height,
    format_time_label,
    start_of_week,
)
from .models import (
    CalendarSession,
    CatalogClassesConfigEntry,
    CatalogClassesRuntimeData,
)

PARALLEL_UPDATES = 0


async def async_setup_entry(
    _hass: HomeAssistant,
    entry: CatalogClassesConfigEntry,
    async_add_entities,
) -> None:
    """Set up Catalog Classes sensor entities."""
    runtime_data: CatalogClassesRuntimeData | None = entry.runtime_data
    if runtime_data is None:
        raise RuntimeError("Catalog Classes runtime data is not available")
    coordinator = runtime_data.coordinator

    async_add_entities(
        [
            CatalogSessionCountSensor(coordinator, entry),
            CatalogOverCapacitySensor(coordinator, entry),
            CatalogNextSessionSensor(coordinator, entry),
            CatalogWeekScheduleSensor(coordinator, entry),
            CatalogTemplatesSensor(coordinator, entry),
        ]
    )


class BaseCatalogClassesSensor(
    CoordinatorEntity[CatalogClassesCoordinator],
    SensorEntity,
):
    """Shared plumbing for sensors backed by the schedule coordinator."""

    _attr_has_entity_name = True
    _key: str

    def __init__(
        self,
        coordinator: CatalogClassesCoordinator,
        config_entry: CatalogClassesConfigEntry,
    ) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator)
        self._config_entry = config_entry
        self._attr_unique_id = f"{config_entry.entry_id}_{self._key}"
        self._attr_translation_key = self._key

    @property
    def device_info(self) -> DeviceInfo:
        """Group all sensors under the organization service."""
        return DeviceInfo(
            identifiers={(DOMAIN, self._config_entry.entry_id)},
            name=self._config_entry.title,
            entry_type=DeviceEntryType.SERVICE,
        )

    @property
    def _sessions(self) -> list[CalendarSession]:
        """Sessions of the visible range."""
        if self.coordinator.data is None:
            return []
        return self.coordinator.data.sessions

    @callback
    def _handle_coordinator_update(self) -> None:
        """Handle updated data from the coordinator."""
        self.async_write_ha_state()


class CatalogSessionCountSensor(BaseCatalogClassesSensor):
    """Number of sessions in the visible range."""

    _key = "sessions_in_view"
    _attr_native_unit_of_measurement = "sessions"

    @property
    def native_value(self) -> int:
        """Count scheduled and cancelled sessions alike."""
        return len(self._sessions)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Expose the range and the active filters."""
        data = self.coordinator.data
        return {
            "range_start": data.range_start.isoformat() if data else None,
            "range_end": data.range_end.isoformat() if data else None,
            "cancelled": sum(1 for session in self._sessions if session.cancelled),
            "filters": self.coordinator.filters.as_options(),
        }


class CatalogOverCapacitySensor(BaseCatalogClassesSensor):
    """Number of sessions whose roster exceeds capacity."""

    _key = "over_capacity"
    _attr_native_unit_of_measurement = "sessions"

    def _over_capacity(self) -> list[CalendarSession]:
        return [session for session in self._sessions if session.over_capacity]

    @property
    def native_value(self) -> int:
        """Count sessions with more registrations than places."""
        return len(self._over_capacity())

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """List the sessions that need their roster reviewed."""
        return {
            "sessions": [
                {
                    "id": session.id,
                    "name": session.name,
                    "date": session.date,
                    "start_time": session.start_time,
                    "capacity": f"{session.registered_count} / {session.max_participants}",
                }
                for session in self._over_capacity()
            ]
        }


class CatalogNextSessionSensor(BaseCatalogClassesSensor):
    """Start of the next scheduled session."""

    _key = "next_session"
    _attr_device_class = SensorDeviceClass.TIMESTAMP

    def _next(self) -> CalendarSession | None:
        now = dt_util.utcnow()
        upcoming = [
            session
            for session in self._sessions
            if not session.cancelled and session.start >= now
        ]
        return min(upcoming, key=lambda session: session.start, default=None)

    @property
    def native_value(self) -> datetime | None:
        """Start time of the next session."""
        session = self._next()
        return session.start if session else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Details of the next session."""
        session = self._next()
        if session is None:
            return {}
        return {
            "id": session.id,
            "name": session.name,
            "location": session.location_name,
            "room": session.room,
            "instructor": session.instructor_name,
            "registered_count": session.registered_count,
            "max_participants": session.max_participants,
        }


class CatalogWeekScheduleSensor(BaseCatalogClassesSensor):
    """Time grid of the fetched week, laid out for dashboard cards.

    State is the number of sessions in view. In week mode the `days`
    attribute holds one column per day with each session's pixel offset and
    height; in day mode `day` holds the list for the selected day. Columns
    follow the range of the loaded data, not a pending view change.
    """

    _key = "week_schedule"

    @property
    def native_value(self) -> int:
        """Number of sessions in view."""
        return len(self._sessions)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Grid geometry plus the positioned session blocks."""
        attributes: dict[str, Any] = {
            "time_slots": [format_time_label(slot) for slot in TIME_SLOTS],
            "column_height": column_height(),
        }
        data = self.coordinator.data
        if data is None:
            return attributes

        first_day = dt_util.as_local(data.range_start)
        week_start = start_of_week(first_day)
        attributes["view_mode"] = data.view_mode
        attributes["week_start"] = week_start.date().isoformat()
        if data.view_mode == VIEW_DAY:
            attributes["day"] = build_day_view(first_day, data.sessions)
        else:
            attributes["days"] = build_week_grid(week_start, data.sessions)
        return attributes


class CatalogTemplatesSensor(BaseCatalogClassesSensor):
    """Number of active class templates."""

    _key = "active_templates"
    _attr_native_unit_of_measurement = "classes"

    @property
    def native_value(self) -> int | None:
        """Count of active templates."""
        if self.coordinator.data is None:
            return None
        return len(self.coordinator.data.templates)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Name and weekly pattern per template."""
        if self.coordinator.data is None:
            return {}
        return {
            "templates": [
                {
                    "id": template.get("id"),
                    "name": template.get("name"),
                    "days_of_week": template.get("daysOfWeek", []),
                    "start_time": template.get("startTime"),
                    "end_time": template.get("endTime"),
                    "max_participants": template.get("maxParticipants"),
                }
                for template in self.coordinator.data.templates
            ]
        }
