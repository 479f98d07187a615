"""Tests for mapping API payloads onto the calendar models."""

import pytest

from custom_components.catalog_classes.models import (
    eligibility_summary,
    map_api_session,
    map_session_detail,
)

from .conftest import roster_entry


class TestMapApiSession:
    """Session list items."""

    def test_buckets_by_local_date_and_time(self, session_item):
        session = map_api_session(session_item())

        assert session.id == "sess-1"
        assert session.name == "Vinyasa Flow"
        assert session.date == "2025-05-05"
        assert session.start_time == "09:00"
        assert session.end_time == "10:30"
        assert session.location_name == "Downtown"
        assert session.room == "Studio A"
        assert session.registered_count == 4
        assert session.instructor_name == "Dana Lee"
        assert session.program == "Yoga"
        assert not session.cancelled
        assert not session.over_capacity

    def test_fallbacks(self, session_item):
        item = session_item(
            instructorDisplayName=None,
            instructor={"id": "user-1", "name": "Sam Roe"},
        )
        del item["location"]
        del item["_count"]

        session = map_api_session(item)

        assert session.location_name == "loc-1"
        assert session.instructor_name == "Sam Roe"
        assert session.registered_count == 0

    def test_cancelled_and_over_capacity(self, session_item):
        session = map_api_session(
            session_item(
                status="CANCELLED",
                maxParticipants=3,
                _count={"rosterEntries": 4},
            )
        )
        assert session.cancelled
        assert session.over_capacity

    def test_invalid_timestamp(self, session_item):
        with pytest.raises(ValueError):
            map_api_session(session_item(startDateTime="not a date"))


class TestEligibility:
    """Eligibility line of the session drawer."""

    def test_no_restrictions(self):
        assert eligibility_summary({}) == "No eligibility restrictions"

    def test_age_range(self):
        assert eligibility_summary({"minAge": 5, "maxAge": 12}) == "Ages 5–12"

    def test_age_label_wins(self):
        template = {"minAge": 5, "maxAge": 12, "ageLabel": "Kids"}
        assert eligibility_summary(template) == "Kids"

    def test_all_restrictions(self):
        template = {
            "minAge": 16,
            "membersOnly": True,
            "requiredPlans": [
                {"membershipPlanId": "p1", "membershipPlan": {"name": "Gold"}},
                {"membershipPlanId": "p2", "membershipPlan": {"name": "Silver"}},
            ],
            "prerequisiteLabel": "Intro class",
        }
        assert eligibility_summary(template) == (
            "Ages 16–ages • Members only • Plans: Gold, Silver"
            " • Prerequisite: Intro class"
        )


class TestMapSessionDetail:
    """Session drawer model."""

    def test_roster_and_labels(self, session_detail):
        detail = session_detail(
            roster=[
                roster_entry("re-1", "cust-1", "Alex", "Kim"),
                roster_entry("re-2", "cust-2", "Jo", "Park"),
                roster_entry("re-3", "cust-3", "Lee", "Cho"),
            ],
            maxParticipants=2,
        )

        mapped = map_session_detail(detail)

        assert mapped["date"] == "2025-05-05"
        assert mapped["date_label"] == "Monday, May 5"
        assert mapped["time_label"] == "9:00 AM – 10:30 AM"
        assert mapped["registered_count"] == 3
        assert mapped["over_capacity"]
        assert mapped["access_type"] == "Included in membership"
        assert mapped["roster"][0] == {
            "id": "re-1",
            "customer_id": "cust-1",
            "name": "Alex Kim",
            "email": "alex@example.com",
            "phone": None,
            "status": "REGISTERED",
            "status_label": "Registered",
            "note": None,
        }

    def test_defaults(self, session_detail):
        detail = session_detail(room=None, instructorDisplayName=None)
        detail["template"]["accessType"] = "SOMETHING_NEW"

        mapped = map_session_detail(detail)

        assert mapped["room"] == ""
        assert mapped["instructor_name"] == "Instructor"
        assert mapped["access_type"] == "Included or drop-in"
        assert mapped["registered_count"] == 0
        assert not mapped["over_capacity"]
        assert mapped["roster"] == []
