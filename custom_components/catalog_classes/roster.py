"""Roster mutations and customer search for class sessions.

Each mutation is a single REST call. The returned session detail replaces the
cached one and the session list is re-fetched; nothing is updated
optimistically and failed calls are not retried.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from .client import (
    CatalogClassesClient,
    CatalogClassesError,
    CatalogClassesValidationError,
)
from .const import (
    ATTENDANCE_STATUSES,
    DEFAULT_CANCEL_REASON,
    LOGGER,
    SEARCH_DEBOUNCE_SECONDS,
    SESSION_CANCELLED,
)
from .models import CatalogSessionDetail

if TYPE_CHECKING:
    from .coordinator import CatalogClassesCoordinator


def validate_new_customer(
    first_name: str | None,
    last_name: str | None,
    email: str | None = None,
    phone: str | None = None,
) -> None:
    """Reject a quick-create customer that is missing required fields."""
    if not (first_name or "").strip() or not (last_name or "").strip():
        raise CatalogClassesValidationError("First and last name are required.")
    if not (email or "").strip() and not (phone or "").strip():
        raise CatalogClassesValidationError("Provide at least an email or phone.")


class ClassRosterManager:
    """Apply roster changes to the selected session."""

    def __init__(
        self,
        client: CatalogClassesClient,
        coordinator: CatalogClassesCoordinator,
    ) -> None:
        """Initialize the roster manager."""
        self._client = client
        self._coordinator = coordinator
        self.session_detail: CatalogSessionDetail | None = None
        self.last_error: str | None = None

    @property
    def selected_session_id(self) -> str | None:
        """Id of the session whose detail is loaded."""
        return self.session_detail["id"] if self.session_detail else None

    async def _async_apply(
        self,
        error_message: str,
        request: Any,
    ) -> CatalogSessionDetail:
        """Await a mutation, store its result and re-fetch the session list."""
        try:
            detail: CatalogSessionDetail = await request
        except CatalogClassesError:
            self.last_error = error_message
            LOGGER.debug(error_message, exc_info=True)
            raise

        self.last_error = None
        self.session_detail = detail
        await self._coordinator.async_request_refresh()
        return detail

    async def async_open_session(self, session_id: str) -> CatalogSessionDetail:
        """Load a session with its roster and sync the calendar count."""
        self.session_detail = None
        try:
            detail = await self._client.async_get_session(session_id)
        except CatalogClassesError:
            self.last_error = "Failed to load session details."
            raise

        self.last_error = None
        self.session_detail = detail
        self._coordinator.update_registered_count(
            session_id, len(detail.get("rosterEntries") or [])
        )
        return detail

    async def async_add_customer(
        self, session_id: str, customer_profile_id: str, status: str | None = None
    ) -> CatalogSessionDetail:
        """Register an existing customer on a session."""
        return await self._async_apply(
            "Failed to add participant.",
            self._client.async_add_participant(
                session_id, customer_profile_id=customer_profile_id, status=status
            ),
        )

    async def async_create_customer(
        self,
        session_id: str,
        first_name: str,
        last_name: str,
        email: str | None = None,
        phone: str | None = None,
        date_of_birth: str | None = None,
    ) -> dict[str, str] | None:
        """Quick-create a customer, register them and return who was added."""
        validate_new_customer(first_name, last_name, email, phone)

        previous_ids = {
            entry["customerProfileId"]
            for entry in (self.session_detail or {}).get("rosterEntries", [])
        }
        detail = await self._async_apply(
            "Failed to add participant.",
            self._client.async_add_participant(
                session_id,
                new_customer={
                    "firstName": first_name.strip(),
                    "lastName": last_name.strip(),
                    "email": email or None,
                    "phone": phone or None,
                    "dateOfBirth": date_of_birth or None,
                },
            ),
        )

        roster = detail.get("rosterEntries") or []
        newest = next(
            (
                entry
                for entry in roster
                if entry["customerProfileId"] not in previous_ids
            ),
            roster[-1] if roster else None,
        )
        if newest is None:
            return None
        return {
            "id": newest["customerProfileId"],
            "first_name": newest["customerProfile"]["firstName"],
            "last_name": newest["customerProfile"]["lastName"],
        }

    async def async_update_participant_status(
        self,
        session_id: str,
        participant_id: str,
        status: str,
        note: str | None = None,
    ) -> CatalogSessionDetail:
        """Set the attendance status of a roster entry."""
        if status not in ATTENDANCE_STATUSES:
            raise CatalogClassesValidationError(f"Unknown attendance status: {status}")
        return await self._async_apply(
            "Failed to update participant.",
            self._client.async_update_participant(
                session_id, participant_id, status, note
            ),
        )

    async def async_remove_participant(
        self, session_id: str, participant_id: str
    ) -> CatalogSessionDetail:
        """Remove a roster entry."""
        return await self._async_apply(
            "Failed to remove participant.",
            self._client.async_remove_participant(session_id, participant_id),
        )

    async def async_mark_all_attended(
        self, session_id: str
    ) -> CatalogSessionDetail | None:
        """Mark every roster entry of a session as attended."""
        if self.selected_session_id != session_id:
            await self.async_open_session(session_id)
        entries = (self.session_detail or {}).get("rosterEntries") or []
        if not entries:
            return None

        try:
            results = await asyncio.gather(
                *(
                    self._client.async_update_participant(
                        session_id, entry["id"], "ATTENDED"
                    )
                    for entry in entries
                )
            )
        except CatalogClassesError:
            self.last_error = "Failed to mark attended."
            raise

        self.last_error = None
        self.session_detail = results[-1]
        await self._coordinator.async_request_refresh()
        return results[-1]

    async def async_cancel_session(
        self, session_id: str, reason: str | None = None
    ) -> CatalogSessionDetail:
        """Cancel a session."""
        return await self._async_apply(
            "Failed to cancel session.",
            self._client.async_update_session(
                session_id,
                {
                    "status": SESSION_CANCELLED,
                    "cancelReason": reason or DEFAULT_CANCEL_REASON,
                },
            ),
        )

    async def async_change_instructor(
        self,
        session_id: str,
        instructor_name: str,
        instructor_user_id: str | None = None,
    ) -> CatalogSessionDetail:
        """Reassign the instructor of a session."""
        payload: dict[str, Any] = {"instructorDisplayName": instructor_name}
        if instructor_user_id:
            payload["instructorUserId"] = instructor_user_id
        return await self._async_apply(
            "Failed to update instructor.",
            self._client.async_update_session(session_id, payload),
        )


class CustomerSearch:
    """Debounced customer search: only the latest query reaches the API."""

    def __init__(
        self,
        client: CatalogClassesClient,
        delay: float = SEARCH_DEBOUNCE_SECONDS,
    ) -> None:
        """Initialize the search helper."""
        self._client = client
        self._delay = delay
        self._generation = 0
        self.last_error: str | None = None

    async def async_search(self, query: str) -> list[dict[str, Any]] | None:
        """Search after the debounce delay.

        Returns None when a newer query arrived while this one was waiting.
        """
        query = query.strip()
        self._generation += 1
        generation = self._generation

        if not query:
            self.last_error = None
            return []

        await asyncio.sleep(self._delay)
        if generation != self._generation:
            LOGGER.debug("Customer search for %r superseded", query)
            return None

        try:
            results = await self._client.async_search_customers(query)
        except CatalogClassesError:
            self.last_error = "Search failed"
            raise

        self.last_error = None
        return results
