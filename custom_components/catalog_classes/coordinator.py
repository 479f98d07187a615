"""Data update coordinator for the Catalog Classes integration."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryAuthFailed
from homeassistant.helpers.update_coordinator import (
    TimestampDataUpdateCoordinator,
    UpdateFailed,
)
from homeassistant.util import dt as dt_util

from .client import (
    CatalogClassesAuthError,
    CatalogClassesClient,
    CatalogClassesError,
)
from .const import DOMAIN, LOGGER, UPDATE_INTERVAL, VIEW_DAY, VIEW_MODES, VIEW_WEEK
from .filters import CalendarFilters
from .grid import DAYS_IN_WEEK, add_days, end_of_day, start_of_week
from .models import (
    CalendarSession,
    CatalogClassTemplate,
    CatalogLookups,
    CatalogScheduleData,
    map_api_session,
)


@dataclass
class CalendarView:
    """Which week, and which day of it, the calendar shows."""

    mode: str = VIEW_WEEK
    week_start: datetime = field(
        default_factory=lambda: start_of_week(dt_util.now())
    )
    selected_day_index: int = 0

    @property
    def selected_day(self) -> datetime:
        """Day shown in day mode."""
        return add_days(self.week_start, self.selected_day_index)

    @property
    def range_start(self) -> datetime:
        """First moment requested from the sessions endpoint."""
        if self.mode == VIEW_DAY:
            return self.selected_day
        return self.week_start

    @property
    def range_end(self) -> datetime:
        """Last moment requested from the sessions endpoint."""
        if self.mode == VIEW_DAY:
            return end_of_day(self.selected_day)
        return end_of_day(add_days(self.week_start, DAYS_IN_WEEK - 1))

    def show(self, mode: str | None = None, day: date | datetime | None = None) -> None:
        """Switch view mode and/or jump to the week containing `day`."""
        if mode is not None:
            if mode not in VIEW_MODES:
                raise ValueError(f"Unknown view mode: {mode}")
            self.mode = mode
        if day is not None:
            self.week_start = start_of_week(day)
            self.selected_day_index = (day.weekday() + 1) % DAYS_IN_WEEK

    def shift_week(self, weeks: int) -> None:
        """Move the visible week forwards or backwards."""
        self.week_start = add_days(self.week_start, weeks * DAYS_IN_WEEK)


async def async_fetch_sessions(
    client: CatalogClassesClient,
    filters: CalendarFilters,
    view: CalendarView,
) -> list[CalendarSession]:
    """Fetch and map the sessions visible in the current view."""
    raw_sessions = await client.async_get_sessions(
        start=view.range_start,
        end=view.range_end,
        **filters.to_query_params(),
    )

    sessions: list[CalendarSession] = []
    for item in raw_sessions or []:
        if not isinstance(item, dict):
            continue
        try:
            sessions.append(map_api_session(item))
        except (KeyError, TypeError, ValueError):
            LOGGER.debug("Skipping malformed session %s", item, exc_info=True)
    return sessions


async def async_fetch_lookups(client: CatalogClassesClient) -> CatalogLookups:
    """Fetch the option lists used by the calendar filters."""
    locations, instructors, programs, rooms = await asyncio.gather(
        client.async_get_locations(),
        client.async_get_instructors(),
        client.async_get_programs(),
        client.async_get_rooms(),
    )
    return CatalogLookups(
        locations=locations or [],
        instructors=instructors or [],
        programs=programs or [],
        rooms=rooms or [],
    )


class CatalogClassesCoordinator(
    TimestampDataUpdateCoordinator[CatalogScheduleData],
):
    """Coordinator that fetches the sessions shown by the class calendar."""

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        client: CatalogClassesClient,
        filters: CalendarFilters | None = None,
        view: CalendarView | None = None,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(
            hass=hass,
            logger=LOGGER,
            name=f"{DOMAIN} schedule",
            config_entry=config_entry,
            update_interval=UPDATE_INTERVAL,
        )
        self.client = client
        self.filters = filters or CalendarFilters()
        self.view = view or CalendarView()
        self._lookups: CatalogLookups = CatalogLookups()
        self._templates: list[CatalogClassTemplate] = []

    async def _async_update_data(self) -> CatalogScheduleData:
        """Fetch sessions for the current view, then refresh the lookups."""
        LOGGER.debug(
            "CatalogClassesCoordinator: fetching sessions mode=%s start=%s end=%s",
            self.view.mode,
            self.view.range_start,
            self.view.range_end,
        )

        try:
            sessions = await async_fetch_sessions(self.client, self.filters, self.view)

        except CatalogClassesAuthError as err:
            raise ConfigEntryAuthFailed from err

        except CatalogClassesError as err:
            raise UpdateFailed(f"Failed to load sessions: {err}") from err

        except Exception as err:
            LOGGER.exception("Unexpected error in CatalogClassesCoordinator")
            raise UpdateFailed("Unexpected error") from err

        await self._async_refresh_lookups()

        return CatalogScheduleData(
            sessions=sessions,
            range_start=self.view.range_start,
            range_end=self.view.range_end,
            view_mode=self.view.mode,
            lookups=self._lookups,
            templates=self._templates,
        )

    async def _async_refresh_lookups(self) -> None:
        """Reload lookups and templates; failures keep the previous values."""
        try:
            self._lookups = await async_fetch_lookups(self.client)
        except CatalogClassesError as err:
            LOGGER.debug("Could not load calendar lookups: %s", err)

        try:
            self._templates = await self.client.async_get_templates(is_active=True)
        except CatalogClassesError as err:
            LOGGER.debug("Could not load class templates: %s", err)

    # ---------- local state changes ----------

    async def async_toggle_filter(self, key: str, value: str) -> None:
        """Toggle a filter value and re-fetch the sessions."""
        self.filters.toggle(key, value)
        await self.async_request_refresh()

    async def async_clear_filters(self) -> None:
        """Clear all filters and re-fetch the sessions."""
        self.filters.clear()
        await self.async_request_refresh()

    async def async_set_view(
        self, mode: str | None = None, day: date | datetime | None = None
    ) -> None:
        """Change view mode or date and re-fetch the sessions."""
        self.view.show(mode=mode, day=day)
        await self.async_request_refresh()

    async def async_shift_week(self, weeks: int) -> None:
        """Move to a previous or next week and re-fetch the sessions."""
        self.view.shift_week(weeks)
        await self.async_request_refresh()

    def update_registered_count(self, session_id: str, count: int) -> None:
        """Sync a cached session's roster size with a freshly loaded detail.

        The cached session is patched in place and listeners are notified;
        a refresh waiting in the debouncer cooldown still runs.
        """
        if self.data is None:
            return
        for session in self.data.sessions:
            if session.id == session_id:
                session.registered_count = count
        self.async_update_listeners()
