"""Client for interacting with the Catalog club management API."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from urllib.parse import quote

import aiohttp

from homeassistant.util import dt as dt_util

from .const import LOGGER, ORGANIZATION_HEADER, REQUEST_TIMEOUT


class CatalogClassesError(Exception):
    """Base exception for Catalog Classes errors."""


class CatalogClassesAuthError(CatalogClassesError):
    """Raised when the token is rejected."""


class CatalogClassesConnectionError(CatalogClassesError):
    """Raised when communication with the server fails."""


class CatalogClassesApiError(CatalogClassesError):
    """Raised when the API returns an error."""

    def __init__(self, message: str, status: int | None = None) -> None:
        """Store the HTTP status next to the message."""
        super().__init__(message)
        self.status = status


class CatalogClassesValidationError(CatalogClassesError):
    """Raised when input fails client-side checks before submission."""


@dataclass
class CatalogClassesConfig:
    """Configuration for CatalogClassesClient."""

    base_url: str
    organization: str
    token: str


def build_params(params: Mapping[str, Any]) -> dict[str, str]:
    """Return query parameters as strings, skipping unset values."""
    cleaned: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            cleaned[key] = "true" if value else "false"
        else:
            cleaned[key] = str(value)
    return cleaned


def _session_path(session_id: str, *segments: str) -> str:
    """Path below a session; each id is quoted as a single segment."""
    parts = [quote(str(part), safe="") for part in (session_id, *segments)]
    return "/api/classes/sessions/" + "/".join(parts)


def format_iso8601_z(value: datetime) -> str:
    """ISO8601 with Z suffix (UTC), as produced by `Date.toISOString`."""
    iso = dt_util.as_utc(value).isoformat(timespec="milliseconds")
    return iso.replace("+00:00", "Z")


class CatalogClassesClient:
    """HTTP client for the Catalog classes, customers and lookup endpoints."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str,
        organization: str,
        token: str,
    ) -> None:
        """Initialize the client."""
        self._session = session
        self._config = CatalogClassesConfig(
            base_url=base_url.rstrip("/"),
            organization=organization.strip(),
            token=token,
        )

    # ---------- properties ----------

    @property
    def base_url(self) -> str:
        """Configured base URL without trailing slash."""
        return self._config.base_url

    @property
    def organization(self) -> str:
        """Organization slug sent with every request."""
        return self._config.organization

    # ---------- helpers ----------

    def _build_url(self, path: str) -> str:
        """Build a URL like https://app.catalog.club/api/<path>."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._config.base_url}/{path.lstrip('/')}"

    def _headers(self, has_body: bool) -> dict[str, str]:
        """Return the auth and tenant headers for a request."""
        headers = {ORGANIZATION_HEADER: self._config.organization}
        if self._config.token:
            headers["Authorization"] = f"Bearer {self._config.token}"
        if has_body:
            headers["Content-Type"] = "application/json"
        return headers

    @asynccontextmanager
    async def _request(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> AsyncIterator[aiohttp.ClientResponse]:
        """Perform an HTTP request with consistent error handling."""
        try:
            async with asyncio.timeout(REQUEST_TIMEOUT):
                async with self._session.request(method, url, **kwargs) as resp:
                    yield resp
        except (aiohttp.ClientError, TimeoutError) as err:
            raise CatalogClassesConnectionError(
                "Error communicating with the server"
            ) from err

    async def _api(
        self,
        method: str,
        path: str,
        payload: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        """Call a JSON endpoint and return the decoded body."""
        url = self._build_url(path)
        kwargs: dict[str, Any] = {"headers": self._headers(payload is not None)}
        if params:
            kwargs["params"] = build_params(params)
        if payload is not None:
            kwargs["json"] = dict(payload)

        LOGGER.debug(
            "CatalogClasses: %s %s params=%s", method, url, kwargs.get("params")
        )

        async with self._request(method, url, **kwargs) as resp:
            if resp.status in (401, 403):
                raise CatalogClassesAuthError(
                    f"Unauthorized while calling {method} {path}"
                )
            if resp.status >= 400:
                message = await resp.text()
                LOGGER.debug("%s %s failed status=%s", method, path, resp.status)
                raise CatalogClassesApiError(
                    message or f"Request failed with status {resp.status}",
                    status=resp.status,
                )
            if resp.status == 204:
                return None
            return await resp.json(content_type=None)

    # ---------- sessions ----------

    async def async_get_sessions(
        self,
        start: datetime,
        end: datetime,
        location_id: str | None = None,
        program: str | None = None,
        instructor_user_id: str | None = None,
        room: str | None = None,
        status: str | None = None,
    ) -> list[dict[str, Any]]:
        """List session summaries within a date range."""
        params = {
            "startDate": format_iso8601_z(start),
            "endDate": format_iso8601_z(end),
            "locationId": location_id,
            "program": program,
            "instructorUserId": instructor_user_id,
            "room": room,
            "status": status,
        }
        return await self._api("GET", "/api/classes/sessions", params=params)

    async def async_get_session(self, session_id: str) -> dict[str, Any]:
        """Fetch a session including its roster."""
        return await self._api("GET", _session_path(session_id))

    async def async_update_session(
        self, session_id: str, payload: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Update status, cancel reason or instructor of a session."""
        return await self._api(
            "PATCH", _session_path(session_id), payload
        )

    # ---------- roster ----------

    async def async_add_participant(
        self,
        session_id: str,
        customer_profile_id: str | None = None,
        status: str | None = None,
        new_customer: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Register an existing customer, or quick-create one, on a session."""
        payload: dict[str, Any]
        if new_customer is not None:
            payload = {
                "newCustomer": {
                    key: value
                    for key, value in new_customer.items()
                    if value is not None
                }
            }
        elif customer_profile_id:
            payload = {"customerProfileId": customer_profile_id}
            if status:
                payload["status"] = status
        else:
            raise CatalogClassesValidationError(
                "Either a customer or a new customer is required"
            )

        return await self._api(
            "POST", _session_path(session_id, "participants"), payload
        )

    async def async_update_participant(
        self,
        session_id: str,
        participant_id: str,
        status: str,
        note: str | None = None,
    ) -> dict[str, Any]:
        """Set the attendance status of a roster entry."""
        payload: dict[str, Any] = {"status": status}
        if note is not None:
            payload["note"] = note
        return await self._api(
            "PATCH",
            _session_path(session_id, "participants", participant_id),
            payload,
        )

    async def async_remove_participant(
        self, session_id: str, participant_id: str
    ) -> dict[str, Any]:
        """Remove a roster entry from a session."""
        return await self._api(
            "DELETE",
            _session_path(session_id, "participants", participant_id),
        )

    # ---------- customers ----------

    async def async_search_customers(self, query: str) -> list[dict[str, Any]]:
        """Search customer profiles by name, email or phone."""
        if not query:
            return []
        return await self._api("GET", "/api/customers", params={"search": query})

    # ---------- templates ----------

    async def async_get_templates(
        self,
        location_id: str | None = None,
        program: str | None = None,
        instructor_user_id: str | None = None,
        is_active: bool | None = None,
    ) -> list[dict[str, Any]]:
        """List class templates."""
        params = {
            "locationId": location_id,
            "program": program,
            "instructorUserId": instructor_user_id,
            "isActive": is_active,
        }
        return await self._api("GET", "/api/classes/templates", params=params)

    # ---------- lookups ----------

    async def async_get_locations(self) -> list[dict[str, Any]]:
        """List locations available to the organization."""
        return await self._api("GET", "/api/classes/lookups/locations")

    async def async_get_instructors(self) -> list[dict[str, Any]]:
        """List instructors available to the organization."""
        return await self._api("GET", "/api/classes/lookups/instructors")

    async def async_get_programs(self) -> list[str]:
        """List distinct program names."""
        return await self._api("GET", "/api/classes/lookups/programs")

    async def async_get_rooms(self) -> list[str]:
        """List distinct room names."""
        return await self._api("GET", "/api/classes/lookups/rooms")

