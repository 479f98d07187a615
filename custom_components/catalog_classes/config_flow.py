"""Config flow for the Catalog Classes custom component."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import voluptuous as vol

from homeassistant.config_entries import ConfigFlow, ConfigFlowResult, OptionsFlow
from homeassistant.const import CONF_API_TOKEN
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .client import (
    CatalogClassesAuthError,
    CatalogClassesClient,
    CatalogClassesError,
)
from .const import (
    CONF_BASE_URL,
    CONF_ORGANIZATION,
    CONF_VIEW_MODE,
    DEFAULT_BASE_URL,
    DOMAIN,
    LOGGER,
    VIEW_MODES,
    VIEW_WEEK,
)
from .filters import FILTER_KEYS, filter_options
from .models import CatalogClassesConfigEntry


class CatalogClassesConfigFlow(ConfigFlow, domain=DOMAIN):
    """Config flow for Catalog Classes."""

    VERSION = 1

    def __init__(self) -> None:
        """Initialize the Catalog Classes config flow."""
        self._errors: dict[str, str] = {}

    async def _async_validate(
        self, base_url: str, organization: str, token: str
    ) -> None:
        """Try the credentials against a cheap lookup endpoint."""
        client = CatalogClassesClient(
            session=async_get_clientsession(self.hass),
            base_url=base_url,
            organization=organization,
            token=token,
        )
        try:
            await client.async_get_locations()
        except CatalogClassesAuthError:
            self._errors["base"] = "invalid_auth"
        except CatalogClassesError:
            LOGGER.debug("Validation request failed", exc_info=True)
            self._errors["base"] = "cannot_connect"

    async def async_step_user(
        self,
        user_input: dict[str, Any] | None = None,
    ) -> ConfigFlowResult:
        """Step for manual configuration via the UI."""
        self._errors = {}

        if user_input is None:
            return self._show_user_form()

        base_url: str = str(user_input[CONF_BASE_URL]).strip().rstrip("/")
        organization: str = str(user_input[CONF_ORGANIZATION]).strip()
        token: str = str(user_input[CONF_API_TOKEN]).strip()

        await self._async_validate(base_url, organization, token)
        if self._errors:
            return self._show_user_form(user_input)

        self._async_abort_entries_match(
            {
                CONF_BASE_URL: base_url,
                CONF_ORGANIZATION: organization,
            }
        )

        return self.async_create_entry(
            title=organization,
            data={
                CONF_BASE_URL: base_url,
                CONF_ORGANIZATION: organization,
                CONF_API_TOKEN: token,
            },
            options={CONF_VIEW_MODE: VIEW_WEEK},
        )

    async def async_step_reauth(
        self, _entry_data: Mapping[str, Any]
    ) -> ConfigFlowResult:
        """Perform reauth upon an authentication error."""
        return await self.async_step_reauth_confirm()

    async def async_step_reauth_confirm(
        self,
        user_input: dict[str, Any] | None = None,
    ) -> ConfigFlowResult:
        """Confirm reauth and store the new token."""
        self._errors = {}

        reauth_entry = self._get_reauth_entry()
        data = reauth_entry.data

        if user_input is not None:
            token = str(user_input[CONF_API_TOKEN]).strip()
            await self._async_validate(
                str(data[CONF_BASE_URL]), str(data[CONF_ORGANIZATION]), token
            )
            if not self._errors:
                return self.async_update_reload_and_abort(
                    reauth_entry, data={**data, CONF_API_TOKEN: token}
                )

        return self.async_show_form(
            step_id="reauth_confirm",
            data_schema=vol.Schema({vol.Required(CONF_API_TOKEN): str}),
            errors=self._errors,
        )

    @staticmethod
    def async_get_options_flow(
        _config_entry: CatalogClassesConfigEntry,
    ) -> CatalogClassesOptionsFlow:
        """Return the options flow handler."""
        return CatalogClassesOptionsFlow()

    def _show_user_form(
        self,
        user_input: dict[str, Any] | None = None,
    ) -> ConfigFlowResult:
        """Show the configuration form."""
        user_input = user_input or {}

        data_schema = vol.Schema(
            {
                vol.Required(
                    CONF_BASE_URL,
                    default=user_input.get(CONF_BASE_URL, DEFAULT_BASE_URL),
                ): str,
                vol.Required(
                    CONF_ORGANIZATION,
                    default=user_input.get(CONF_ORGANIZATION, ""),
                ): str,
                vol.Required(CONF_API_TOKEN): str,
            }
        )

        return self.async_show_form(
            step_id="user",
            data_schema=data_schema,
            errors=self._errors,
        )


class CatalogClassesOptionsFlow(OptionsFlow):
    """Options flow for the default view and the initial filters."""

    async def async_step_init(
        self,
        user_input: dict[str, Any] | None = None,
    ) -> ConfigFlowResult:
        """Handle the Catalog Classes options."""
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        options = self.config_entry.options
        runtime_data = getattr(self.config_entry, "runtime_data", None)
        lookups: Mapping[str, Any] = {}
        if runtime_data is not None and runtime_data.coordinator.data is not None:
            lookups = runtime_data.coordinator.data.lookups

        schema: dict[Any, Any] = {
            vol.Required(
                CONF_VIEW_MODE,
                default=options.get(CONF_VIEW_MODE, VIEW_WEEK),
            ): vol.In(VIEW_MODES),
        }
        for key in FILTER_KEYS:
            choices = dict(filter_options(key, lookups))
            # Keep stored values selectable even if the lookup dropped them
            for value in options.get(key, []):
                choices.setdefault(value, value)
            schema[vol.Optional(key, default=list(options.get(key, [])))] = (
                cv.multi_select(choices)
            )

        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(schema),
        )
