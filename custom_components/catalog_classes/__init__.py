"""Catalog Classes integration setup."""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Any

import voluptuous as vol

from homeassistant.config_entries import ConfigEntryState
from homeassistant.const import ATTR_CONFIG_ENTRY_ID, CONF_API_TOKEN
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.exceptions import HomeAssistantError, ServiceValidationError
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.typing import ConfigType

from .client import (
    CatalogClassesAuthError,
    CatalogClassesClient,
    CatalogClassesError,
    CatalogClassesValidationError,
)
from .const import (
    ATTENDANCE_STATUSES,
    CONF_BASE_URL,
    CONF_ORGANIZATION,
    CONF_VIEW_MODE,
    DOMAIN,
    LOGGER,
    PLATFORMS,
    VIEW_MODES,
    VIEW_WEEK,
)
from .coordinator import CalendarView, CatalogClassesCoordinator
from .filters import FILTER_KEYS, CalendarFilters
from .models import (
    CatalogClassesConfigEntry,
    CatalogClassesRuntimeData,
    map_session_detail,
)
from .roster import ClassRosterManager, CustomerSearch

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)

ATTR_SESSION_ID = "session_id"
ATTR_PARTICIPANT_ID = "participant_id"
ATTR_CUSTOMER_ID = "customer_id"
ATTR_STATUS = "status"
ATTR_NOTE = "note"
ATTR_REASON = "reason"
ATTR_FIRST_NAME = "first_name"
ATTR_LAST_NAME = "last_name"
ATTR_EMAIL = "email"
ATTR_PHONE = "phone"
ATTR_DATE_OF_BIRTH = "date_of_birth"
ATTR_INSTRUCTOR_NAME = "instructor_name"
ATTR_INSTRUCTOR_USER_ID = "instructor_user_id"
ATTR_QUERY = "query"
ATTR_CATEGORY = "category"
ATTR_VALUE = "value"
ATTR_VIEW_MODE = "view_mode"
ATTR_DATE = "date"
ATTR_WEEKS = "weeks"

BASE_SCHEMA = {vol.Optional(ATTR_CONFIG_ENTRY_ID): cv.string}
SESSION_SCHEMA = {**BASE_SCHEMA, vol.Required(ATTR_SESSION_ID): cv.string}
PARTICIPANT_SCHEMA = {**SESSION_SCHEMA, vol.Required(ATTR_PARTICIPANT_ID): cv.string}


async def async_setup(hass: HomeAssistant, _config: ConfigType) -> bool:
    """Set up the Catalog Classes integration."""
    await _async_register_services(hass)
    return True


async def async_setup_entry(
    hass: HomeAssistant, entry: CatalogClassesConfigEntry
) -> bool:
    """Set up Catalog Classes from a config entry."""
    entry.async_on_unload(entry.add_update_listener(_async_reload_entry))

    client = CatalogClassesClient(
        session=async_get_clientsession(hass),
        base_url=entry.data[CONF_BASE_URL],
        organization=entry.data[CONF_ORGANIZATION],
        token=entry.data[CONF_API_TOKEN],
    )

    coordinator = CatalogClassesCoordinator(
        hass=hass,
        config_entry=entry,
        client=client,
        filters=CalendarFilters.from_options(entry.options),
        view=CalendarView(mode=entry.options.get(CONF_VIEW_MODE, VIEW_WEEK)),
    )

    await coordinator.async_config_entry_first_refresh()

    entry.runtime_data = CatalogClassesRuntimeData(
        client=client,
        coordinator=coordinator,
        roster=ClassRosterManager(client, coordinator),
        customer_search=CustomerSearch(client),
    )

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    return True


async def async_unload_entry(
    hass: HomeAssistant, entry: CatalogClassesConfigEntry
) -> bool:
    """Unload a config entry."""
    return await hass.config_entries.async_unload_platforms(entry, PLATFORMS)


async def _async_register_services(hass: HomeAssistant) -> None:
    """Register domain services (one-time)."""
    domain_data = hass.data.setdefault(DOMAIN, {})
    if domain_data.get("services_registered"):
        return

    LOGGER.debug("Registering catalog_classes services")

    def _get_runtime_data_or_raise(call: ServiceCall) -> CatalogClassesRuntimeData:
        """Return runtime data of the selected, or only, loaded entry."""
        config_entry_id: str | None = call.data.get(ATTR_CONFIG_ENTRY_ID)
        if config_entry_id:
            entry = hass.config_entries.async_get_entry(config_entry_id)
            if entry is None or entry.domain != DOMAIN:
                raise ServiceValidationError(
                    translation_domain=DOMAIN,
                    translation_key="config_entry_not_found",
                )
            if entry.state is not ConfigEntryState.LOADED:
                raise ServiceValidationError(
                    translation_domain=DOMAIN,
                    translation_key="config_entry_not_loaded",
                )
        else:
            loaded = [
                entry
                for entry in hass.config_entries.async_entries(DOMAIN)
                if entry.state is ConfigEntryState.LOADED
            ]
            if not loaded:
                raise ServiceValidationError(
                    translation_domain=DOMAIN,
                    translation_key="no_loaded_entries",
                )
            if len(loaded) > 1:
                raise ServiceValidationError(
                    translation_domain=DOMAIN,
                    translation_key="multiple_entries_specify_id",
                )
            entry = loaded[0]

        runtime_data = getattr(entry, "runtime_data", None)
        if runtime_data is None:
            raise ServiceValidationError(
                translation_domain=DOMAIN,
                translation_key="config_entry_not_ready",
            )
        return runtime_data

    async def _async_call(service: str, request: Awaitable[Any]) -> Any:
        """Await a client call and map its errors onto service errors."""
        try:
            return await request
        except CatalogClassesValidationError as err:
            raise ServiceValidationError(
                translation_domain=DOMAIN,
                translation_key="invalid_input",
                translation_placeholders={"error": str(err)},
            ) from err
        except CatalogClassesAuthError as err:
            LOGGER.debug("Service %s authentication failed", service, exc_info=True)
            raise HomeAssistantError(
                translation_domain=DOMAIN,
                translation_key="service_auth_failed",
            ) from err
        except CatalogClassesError as err:
            LOGGER.debug("Service %s failed", service, exc_info=True)
            raise HomeAssistantError(
                translation_domain=DOMAIN,
                translation_key="service_call_failed",
                translation_placeholders={"error": str(err)},
            ) from err

    def _detail_response(detail: Any) -> ServiceResponse:
        return map_session_detail(detail) if detail else {}

    async def handle_get_session(call: ServiceCall) -> ServiceResponse:
        """Load a session with its roster."""
        roster = _get_runtime_data_or_raise(call).roster
        detail = await _async_call(
            "get_session", roster.async_open_session(call.data[ATTR_SESSION_ID])
        )
        return _detail_response(detail)

    async def handle_add_participant(call: ServiceCall) -> ServiceResponse:
        """Register an existing customer on a session."""
        roster = _get_runtime_data_or_raise(call).roster
        detail = await _async_call(
            "add_participant",
            roster.async_add_customer(
                call.data[ATTR_SESSION_ID],
                call.data[ATTR_CUSTOMER_ID],
                call.data.get(ATTR_STATUS),
            ),
        )
        return _detail_response(detail)

    async def handle_create_participant(call: ServiceCall) -> ServiceResponse:
        """Quick-create a customer and register them on a session."""
        roster = _get_runtime_data_or_raise(call).roster
        date_of_birth = call.data.get(ATTR_DATE_OF_BIRTH)
        customer = await _async_call(
            "create_participant",
            roster.async_create_customer(
                call.data[ATTR_SESSION_ID],
                first_name=call.data[ATTR_FIRST_NAME],
                last_name=call.data[ATTR_LAST_NAME],
                email=call.data.get(ATTR_EMAIL),
                phone=call.data.get(ATTR_PHONE),
                date_of_birth=date_of_birth.isoformat() if date_of_birth else None,
            ),
        )
        return {"customer": customer}

    async def handle_update_participant_status(call: ServiceCall) -> ServiceResponse:
        """Set the attendance status of a roster entry."""
        roster = _get_runtime_data_or_raise(call).roster
        detail = await _async_call(
            "update_participant_status",
            roster.async_update_participant_status(
                call.data[ATTR_SESSION_ID],
                call.data[ATTR_PARTICIPANT_ID],
                call.data[ATTR_STATUS],
                call.data.get(ATTR_NOTE),
            ),
        )
        return _detail_response(detail)

    async def handle_remove_participant(call: ServiceCall) -> ServiceResponse:
        """Remove a roster entry."""
        roster = _get_runtime_data_or_raise(call).roster
        detail = await _async_call(
            "remove_participant",
            roster.async_remove_participant(
                call.data[ATTR_SESSION_ID], call.data[ATTR_PARTICIPANT_ID]
            ),
        )
        return _detail_response(detail)

    async def handle_mark_all_attended(call: ServiceCall) -> ServiceResponse:
        """Mark the whole roster of a session as attended."""
        roster = _get_runtime_data_or_raise(call).roster
        detail = await _async_call(
            "mark_all_attended",
            roster.async_mark_all_attended(call.data[ATTR_SESSION_ID]),
        )
        return _detail_response(detail)

    async def handle_cancel_session(call: ServiceCall) -> ServiceResponse:
        """Cancel a session."""
        roster = _get_runtime_data_or_raise(call).roster
        detail = await _async_call(
            "cancel_session",
            roster.async_cancel_session(
                call.data[ATTR_SESSION_ID], call.data.get(ATTR_REASON)
            ),
        )
        return _detail_response(detail)

    async def handle_change_instructor(call: ServiceCall) -> ServiceResponse:
        """Reassign the instructor of a session."""
        roster = _get_runtime_data_or_raise(call).roster
        detail = await _async_call(
            "change_instructor",
            roster.async_change_instructor(
                call.data[ATTR_SESSION_ID],
                call.data[ATTR_INSTRUCTOR_NAME],
                call.data.get(ATTR_INSTRUCTOR_USER_ID),
            ),
        )
        return _detail_response(detail)

    async def handle_search_customers(call: ServiceCall) -> ServiceResponse:
        """Search customers to add to a roster."""
        search = _get_runtime_data_or_raise(call).customer_search
        results = await _async_call(
            "search_customers", search.async_search(call.data[ATTR_QUERY])
        )
        if results is None:
            return {"customers": [], "superseded": True}
        return {"customers": results, "superseded": False}

    async def handle_toggle_filter(call: ServiceCall) -> None:
        """Toggle one calendar filter value."""
        coordinator = _get_runtime_data_or_raise(call).coordinator
        await coordinator.async_toggle_filter(
            call.data[ATTR_CATEGORY], call.data[ATTR_VALUE]
        )

    async def handle_clear_filters(call: ServiceCall) -> None:
        """Clear every calendar filter."""
        coordinator = _get_runtime_data_or_raise(call).coordinator
        await coordinator.async_clear_filters()

    async def handle_set_view(call: ServiceCall) -> None:
        """Switch view mode, jump to a date or move by whole weeks."""
        coordinator = _get_runtime_data_or_raise(call).coordinator
        if weeks := call.data.get(ATTR_WEEKS):
            coordinator.view.shift_week(weeks)
        await coordinator.async_set_view(
            mode=call.data.get(ATTR_VIEW_MODE), day=call.data.get(ATTR_DATE)
        )

    session_response = SupportsResponse.OPTIONAL

    services: list[tuple[str, Any, dict[Any, Any], SupportsResponse]] = [
        ("get_session", handle_get_session, SESSION_SCHEMA, SupportsResponse.ONLY),
        (
            "add_participant",
            handle_add_participant,
            {
                **SESSION_SCHEMA,
                vol.Required(ATTR_CUSTOMER_ID): cv.string,
                vol.Optional(ATTR_STATUS): vol.In(ATTENDANCE_STATUSES),
            },
            session_response,
        ),
        (
            "create_participant",
            handle_create_participant,
            {
                **SESSION_SCHEMA,
                vol.Required(ATTR_FIRST_NAME): cv.string,
                vol.Required(ATTR_LAST_NAME): cv.string,
                vol.Optional(ATTR_EMAIL): cv.string,
                vol.Optional(ATTR_PHONE): cv.string,
                vol.Optional(ATTR_DATE_OF_BIRTH): cv.date,
            },
            session_response,
        ),
        (
            "update_participant_status",
            handle_update_participant_status,
            {
                **PARTICIPANT_SCHEMA,
                vol.Required(ATTR_STATUS): vol.In(ATTENDANCE_STATUSES),
                vol.Optional(ATTR_NOTE): cv.string,
            },
            session_response,
        ),
        (
            "remove_participant",
            handle_remove_participant,
            PARTICIPANT_SCHEMA,
            session_response,
        ),
        (
            "mark_all_attended",
            handle_mark_all_attended,
            SESSION_SCHEMA,
            session_response,
        ),
        (
            "cancel_session",
            handle_cancel_session,
            {**SESSION_SCHEMA, vol.Optional(ATTR_REASON): cv.string},
            session_response,
        ),
        (
            "change_instructor",
            handle_change_instructor,
            {
                **SESSION_SCHEMA,
                vol.Required(ATTR_INSTRUCTOR_NAME): cv.string,
                vol.Optional(ATTR_INSTRUCTOR_USER_ID): cv.string,
            },
            session_response,
        ),
        (
            "search_customers",
            handle_search_customers,
            {**BASE_SCHEMA, vol.Required(ATTR_QUERY): cv.string},
            SupportsResponse.ONLY,
        ),
        (
            "toggle_filter",
            handle_toggle_filter,
            {
                **BASE_SCHEMA,
                vol.Required(ATTR_CATEGORY): vol.In(FILTER_KEYS),
                vol.Required(ATTR_VALUE): cv.string,
            },
            SupportsResponse.NONE,
        ),
        ("clear_filters", handle_clear_filters, BASE_SCHEMA, SupportsResponse.NONE),
        (
            "set_view",
            handle_set_view,
            {
                **BASE_SCHEMA,
                vol.Optional(ATTR_VIEW_MODE): vol.In(VIEW_MODES),
                vol.Optional(ATTR_DATE): cv.date,
                vol.Optional(ATTR_WEEKS): vol.Coerce(int),
            },
            SupportsResponse.NONE,
        ),
    ]

    for name, handler, schema, supports_response in services:
        hass.services.async_register(
            DOMAIN,
            name,
            handler,
            schema=vol.Schema(schema),
            supports_response=supports_response,
        )

    domain_data["services_registered"] = True


async def _async_reload_entry(
    hass: HomeAssistant, entry: CatalogClassesConfigEntry
) -> None:
    """Reload the config entry after options changes."""

    await hass.config_entries.async_reload(entry.entry_id)
