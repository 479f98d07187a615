"""Tests for roster mutations and customer search."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, call

import pytest

from custom_components.catalog_classes.client import (
    CatalogClassesApiError,
    CatalogClassesValidationError,
)
from custom_components.catalog_classes.roster import (
    ClassRosterManager,
    CustomerSearch,
    validate_new_customer,
)

from .conftest import roster_entry


@pytest.fixture
def mock_client():
    """Client whose endpoints are all coroutines."""
    return AsyncMock()


@pytest.fixture
def mock_coordinator():
    """Coordinator with an awaitable refresh."""
    coordinator = MagicMock()
    coordinator.async_request_refresh = AsyncMock()
    return coordinator


@pytest.fixture
def manager(mock_client, mock_coordinator):
    return ClassRosterManager(mock_client, mock_coordinator)


class TestValidateNewCustomer:
    """Quick-create form checks."""

    def test_names_required(self):
        with pytest.raises(CatalogClassesValidationError, match="First and last"):
            validate_new_customer("Alex", "  ", email="alex@example.com")

    def test_contact_required(self):
        with pytest.raises(CatalogClassesValidationError, match="email or phone"):
            validate_new_customer("Alex", "Kim", email=" ", phone=None)

    def test_phone_is_enough(self):
        validate_new_customer("Alex", "Kim", phone="555-0100")


class TestClassRosterManager:
    """REST call, store the detail, re-fetch the sessions."""

    @pytest.mark.asyncio
    async def test_open_session_syncs_count(
        self, manager, mock_client, mock_coordinator, session_detail
    ):
        detail = session_detail(
            roster=[
                roster_entry("re-1", "cust-1", "Alex", "Kim"),
                roster_entry("re-2", "cust-2", "Jo", "Park"),
            ]
        )
        mock_client.async_get_session.return_value = detail

        assert await manager.async_open_session("sess-1") is detail
        assert manager.selected_session_id == "sess-1"
        mock_coordinator.update_registered_count.assert_called_once_with("sess-1", 2)
        mock_coordinator.async_request_refresh.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_open_session_failure(self, manager, mock_client):
        mock_client.async_get_session.side_effect = CatalogClassesApiError("nope", 404)

        with pytest.raises(CatalogClassesApiError):
            await manager.async_open_session("sess-1")

        assert manager.session_detail is None
        assert manager.last_error == "Failed to load session details."

    @pytest.mark.asyncio
    async def test_add_customer_refreshes(
        self, manager, mock_client, mock_coordinator, session_detail
    ):
        detail = session_detail(roster=[roster_entry("re-1", "cust-1", "Alex", "Kim")])
        mock_client.async_add_participant.return_value = detail

        result = await manager.async_add_customer("sess-1", "cust-1")

        assert result is detail
        assert manager.session_detail is detail
        assert manager.last_error is None
        mock_client.async_add_participant.assert_awaited_once_with(
            "sess-1", customer_profile_id="cust-1", status=None
        )
        mock_coordinator.async_request_refresh.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_mutation_is_not_retried(
        self, manager, mock_client, mock_coordinator
    ):
        mock_client.async_add_participant.side_effect = CatalogClassesApiError(
            "Session is full", 409
        )

        with pytest.raises(CatalogClassesApiError):
            await manager.async_add_customer("sess-1", "cust-1")

        assert manager.last_error == "Failed to add participant."
        mock_client.async_add_participant.assert_awaited_once()
        mock_coordinator.async_request_refresh.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_error_cleared_by_next_success(
        self, manager, mock_client, session_detail
    ):
        mock_client.async_remove_participant.side_effect = [
            CatalogClassesApiError("boom", 500),
            session_detail(),
        ]

        with pytest.raises(CatalogClassesApiError):
            await manager.async_remove_participant("sess-1", "re-1")
        assert manager.last_error == "Failed to remove participant."

        await manager.async_remove_participant("sess-1", "re-1")
        assert manager.last_error is None

    @pytest.mark.asyncio
    async def test_create_customer_returns_new_entry(
        self, manager, mock_client, session_detail
    ):
        existing = roster_entry("re-1", "cust-1", "Alex", "Kim")
        manager.session_detail = session_detail(roster=[existing])
        mock_client.async_add_participant.return_value = session_detail(
            roster=[roster_entry("re-2", "cust-2", "Jo", "Park"), existing]
        )

        created = await manager.async_create_customer(
            "sess-1", " Jo ", "Park", email="jo@example.com"
        )

        assert created == {"id": "cust-2", "first_name": "Jo", "last_name": "Park"}
        mock_client.async_add_participant.assert_awaited_once_with(
            "sess-1",
            new_customer={
                "firstName": "Jo",
                "lastName": "Park",
                "email": "jo@example.com",
                "phone": None,
                "dateOfBirth": None,
            },
        )

    @pytest.mark.asyncio
    async def test_create_customer_falls_back_to_last_entry(
        self, manager, mock_client, session_detail
    ):
        mock_client.async_add_participant.return_value = session_detail(
            roster=[
                roster_entry("re-1", "cust-1", "Alex", "Kim"),
                roster_entry("re-2", "cust-2", "Jo", "Park"),
            ]
        )
        manager.session_detail = mock_client.async_add_participant.return_value

        created = await manager.async_create_customer(
            "sess-1", "Jo", "Park", phone="555-0100"
        )

        assert created["id"] == "cust-2"

    @pytest.mark.asyncio
    async def test_create_customer_validation_skips_request(
        self, manager, mock_client
    ):
        with pytest.raises(CatalogClassesValidationError):
            await manager.async_create_customer("sess-1", "Jo", "Park")
        mock_client.async_add_participant.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_status_rejects_unknown_status(self, manager, mock_client):
        with pytest.raises(CatalogClassesValidationError):
            await manager.async_update_participant_status("sess-1", "re-1", "LATE")
        mock_client.async_update_participant.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_status(self, manager, mock_client, mock_coordinator):
        mock_client.async_update_participant.return_value = {"id": "sess-1"}

        await manager.async_update_participant_status(
            "sess-1", "re-1", "NO_SHOW", note="called in"
        )

        mock_client.async_update_participant.assert_awaited_once_with(
            "sess-1", "re-1", "NO_SHOW", "called in"
        )
        mock_coordinator.async_request_refresh.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_mark_all_attended(
        self, manager, mock_client, mock_coordinator, session_detail
    ):
        roster = [
            roster_entry("re-1", "cust-1", "Alex", "Kim"),
            roster_entry("re-2", "cust-2", "Jo", "Park"),
        ]
        mock_client.async_get_session.return_value = session_detail(roster=roster)
        first = session_detail(roster=roster, status="SCHEDULED")
        last = session_detail(roster=roster, room="Studio B")
        mock_client.async_update_participant.side_effect = [first, last]

        result = await manager.async_mark_all_attended("sess-1")

        assert result is last
        assert manager.session_detail is last
        mock_client.async_update_participant.assert_has_awaits(
            [
                call("sess-1", "re-1", "ATTENDED"),
                call("sess-1", "re-2", "ATTENDED"),
            ]
        )
        mock_coordinator.async_request_refresh.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_mark_all_attended_on_empty_roster(
        self, manager, mock_client, mock_coordinator, session_detail
    ):
        manager.session_detail = session_detail()

        assert await manager.async_mark_all_attended("sess-1") is None
        mock_client.async_get_session.assert_not_awaited()
        mock_client.async_update_participant.assert_not_awaited()
        mock_coordinator.async_request_refresh.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_mark_all_attended_failure(
        self, manager, mock_client, session_detail
    ):
        manager.session_detail = session_detail(
            roster=[roster_entry("re-1", "cust-1", "Alex", "Kim")]
        )
        mock_client.async_update_participant.side_effect = CatalogClassesApiError(
            "boom", 500
        )

        with pytest.raises(CatalogClassesApiError):
            await manager.async_mark_all_attended("sess-1")
        assert manager.last_error == "Failed to mark attended."

    @pytest.mark.asyncio
    async def test_cancel_session_default_reason(self, manager, mock_client):
        mock_client.async_update_session.return_value = {"id": "sess-1"}

        await manager.async_cancel_session("sess-1")

        mock_client.async_update_session.assert_awaited_once_with(
            "sess-1", {"status": "CANCELLED", "cancelReason": "Cancelled"}
        )

    @pytest.mark.asyncio
    async def test_change_instructor(self, manager, mock_client):
        mock_client.async_update_session.return_value = {"id": "sess-1"}

        await manager.async_change_instructor("sess-1", "Sam Roe", "user-2")

        mock_client.async_update_session.assert_awaited_once_with(
            "sess-1",
            {"instructorDisplayName": "Sam Roe", "instructorUserId": "user-2"},
        )

    @pytest.mark.asyncio
    async def test_change_instructor_failure(self, manager, mock_client):
        mock_client.async_update_session.side_effect = CatalogClassesApiError("x")

        with pytest.raises(CatalogClassesApiError):
            await manager.async_change_instructor("sess-1", "Sam Roe")
        assert manager.last_error == "Failed to update instructor."


class TestCustomerSearch:
    """Debounced search."""

    @pytest.mark.asyncio
    async def test_blank_query(self, mock_client):
        search = CustomerSearch(mock_client, delay=0)

        assert await search.async_search("   ") == []
        mock_client.async_search_customers.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_only_latest_query_is_sent(self, mock_client):
        mock_client.async_search_customers.return_value = [{"id": "cust-1"}]
        search = CustomerSearch(mock_client, delay=0)

        first, second = await asyncio.gather(
            search.async_search("ki"), search.async_search("kim")
        )

        assert first is None
        assert second == [{"id": "cust-1"}]
        mock_client.async_search_customers.assert_awaited_once_with("kim")

    @pytest.mark.asyncio
    async def test_failure_sets_error(self, mock_client):
        mock_client.async_search_customers.side_effect = CatalogClassesApiError("x")
        search = CustomerSearch(mock_client, delay=0)

        with pytest.raises(CatalogClassesApiError):
            await search.async_search("kim")
        assert search.last_error == "Search failed"
