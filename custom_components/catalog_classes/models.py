"""Data models for the Catalog Classes integration."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, NotRequired, TypedDict

from homeassistant.config_entries import ConfigEntry

from .const import SESSION_CANCELLED, VIEW_WEEK
from .grid import (
    format_date_label,
    format_time_range,
    is_over_capacity,
    to_date_string,
    to_time_string,
)
from .util import parse_catalog_datetime

if TYPE_CHECKING:
    from .client import CatalogClassesClient
    from .coordinator import CatalogClassesCoordinator
    from .roster import ClassRosterManager, CustomerSearch


class CatalogCustomerProfile(TypedDict):
    """Customer profile as embedded in roster entries and search results."""

    id: str
    firstName: str
    lastName: str
    primaryEmail: NotRequired[str | None]
    primaryPhone: NotRequired[str | None]


class CatalogRosterEntry(TypedDict):
    """A customer's registration on a session."""

    id: str
    sessionId: str
    customerProfileId: str
    status: str
    note: NotRequired[str | None]
    createdAt: str
    updatedAt: str
    customerProfile: CatalogCustomerProfile


class CatalogRequiredPlan(TypedDict):
    """Membership plan required by a class template."""

    membershipPlanId: str
    membershipPlan: dict[str, str]


class CatalogSessionTemplate(TypedDict):
    """Template summary embedded in a session."""

    id: str
    name: str
    program: NotRequired[str | None]
    skillLevel: str
    accessType: str

    # Only present on session detail
    minAge: NotRequired[int | None]
    maxAge: NotRequired[int | None]
    ageLabel: NotRequired[str | None]
    membersOnly: NotRequired[bool]
    prerequisiteLabel: NotRequired[str | None]
    requiredPlans: NotRequired[list[CatalogRequiredPlan]]


class CatalogSessionListItem(TypedDict):
    """Single session returned by `GET /api/classes/sessions`."""

    id: str
    templateId: str
    organizationId: str
    locationId: str
    startDateTime: str
    endDateTime: str
    maxParticipants: int
    status: str
    template: CatalogSessionTemplate

    location: NotRequired[dict[str, str]]
    room: NotRequired[str | None]
    instructorUserId: NotRequired[str | None]
    instructorDisplayName: NotRequired[str | None]
    instructor: NotRequired[dict[str, str | None]]
    cancelReason: NotRequired[str | None]
    _count: NotRequired[dict[str, int]]


class CatalogSessionDetail(CatalogSessionListItem):
    """Session returned by `GET /api/classes/sessions/:id`."""

    rosterEntries: list[CatalogRosterEntry]


class CatalogClassTemplate(TypedDict, total=False):
    """Recurring class definition."""

    id: str
    name: str
    locationId: str
    room: str | None
    program: str | None
    skillLevel: str
    daysOfWeek: list[int]
    startTime: str
    endTime: str
    startDate: str
    endDate: str | None
    maxParticipants: int
    accessType: str
    isActive: bool
    instructorDisplayName: str | None


class CatalogLookups(TypedDict, total=False):
    """Option lists used by the calendar filters."""

    locations: list[dict[str, Any]]
    instructors: list[dict[str, Any]]
    programs: list[str]
    rooms: list[str]


@dataclass(slots=True)
class CalendarSession:
    """Session flattened into the buckets the calendar is drawn from."""

    id: str
    template_id: str
    name: str
    organization_id: str
    location_id: str
    location_name: str
    room: str | None
    date: str
    start_time: str
    end_time: str
    start: datetime
    end: datetime
    max_participants: int
    registered_count: int
    instructor_name: str | None
    status: str
    access_type: str
    program: str | None = None

    @property
    def cancelled(self) -> bool:
        """Return True if the session was cancelled."""
        return self.status == SESSION_CANCELLED

    @property
    def over_capacity(self) -> bool:
        """Return True if more customers are registered than allowed."""
        return is_over_capacity(self.registered_count, self.max_participants)


@dataclass(slots=True)
class CatalogScheduleData:
    """Data held by the schedule coordinator."""

    sessions: list[CalendarSession]
    range_start: datetime
    range_end: datetime
    view_mode: str = VIEW_WEEK
    lookups: CatalogLookups = field(default_factory=dict)
    templates: list[CatalogClassTemplate] = field(default_factory=list)


ACCESS_TYPE_TEXT: dict[str, str] = {
    "INCLUDED_IN_MEMBERSHIP": "Included in membership",
    "PAID_DROPIN": "Paid drop-in",
    "EITHER": "Included or drop-in",
}

ATTENDANCE_STATUS_TEXT: dict[str, str] = {
    "REGISTERED": "Registered",
    "ATTENDED": "Attended",
    "NO_SHOW": "No show",
    "CANCELLED_BY_STAFF": "Cancelled (staff)",
    "CANCELLED_BY_MEMBER": "Cancelled (member)",
}


def map_api_session(item: CatalogSessionListItem) -> CalendarSession:
    """Map a session list item onto the calendar model."""
    start = parse_catalog_datetime(item["startDateTime"])
    end = parse_catalog_datetime(item["endDateTime"])
    if start is None or end is None:
        raise ValueError(f"Session {item.get('id')} has invalid timestamps")

    location = item.get("location") or {}
    instructor = item.get("instructor") or {}
    count = item.get("_count") or {}
    template = item["template"]

    return CalendarSession(
        id=item["id"],
        template_id=item["templateId"],
        name=template["name"],
        organization_id=item["organizationId"],
        location_id=item["locationId"],
        location_name=location.get("name") or item["locationId"],
        room=item.get("room"),
        date=to_date_string(start),
        start_time=to_time_string(start),
        end_time=to_time_string(end),
        start=start,
        end=end,
        max_participants=item["maxParticipants"],
        registered_count=count.get("rosterEntries", 0),
        instructor_name=item.get("instructorDisplayName") or instructor.get("name"),
        status=item["status"],
        access_type=template["accessType"],
        program=template.get("program"),
    )


def eligibility_summary(template: CatalogSessionTemplate) -> str:
    """Describe age, membership and prerequisite restrictions in one line."""
    items: list[str] = []

    min_age = template.get("minAge")
    max_age = template.get("maxAge")
    age_label = template.get("ageLabel")
    if age_label:
        items.append(age_label)
    elif min_age or max_age:
        items.append(f"Ages {min_age or 'All'}–{max_age or 'ages'}")

    if template.get("membersOnly"):
        items.append("Members only")

    plans = [
        plan["membershipPlan"]["name"] for plan in template.get("requiredPlans") or []
    ]
    if plans:
        items.append(f"Plans: {', '.join(plans)}")

    if prerequisite := template.get("prerequisiteLabel"):
        items.append(f"Prerequisite: {prerequisite}")

    if not items:
        items.append("No eligibility restrictions")

    return " • ".join(items)


def map_roster_entry(entry: CatalogRosterEntry) -> dict[str, Any]:
    """Flatten a roster entry for display."""
    profile = entry["customerProfile"]
    return {
        "id": entry["id"],
        "customer_id": entry["customerProfileId"],
        "name": f"{profile['firstName']} {profile['lastName']}",
        "email": profile.get("primaryEmail"),
        "phone": profile.get("primaryPhone"),
        "status": entry["status"],
        "status_label": ATTENDANCE_STATUS_TEXT.get(entry["status"], entry["status"]),
        "note": entry.get("note"),
    }


def map_session_detail(detail: CatalogSessionDetail) -> dict[str, Any]:
    """Map a session detail onto the drawer model, roster included."""
    start = parse_catalog_datetime(detail["startDateTime"])
    end = parse_catalog_datetime(detail["endDateTime"])
    template = detail["template"]
    roster = detail.get("rosterEntries") or []
    registered_count = len(roster)

    return {
        "id": detail["id"],
        "template_id": detail["templateId"],
        "name": template["name"],
        "date": to_date_string(start) if start else None,
        "date_label": format_date_label(start) if start else None,
        "time_label": (
            format_time_range(to_time_string(start), to_time_string(end))
            if start and end
            else None
        ),
        "location_id": detail["locationId"],
        "room": detail.get("room") or "",
        "instructor_name": detail.get("instructorDisplayName") or "Instructor",
        "status": detail["status"],
        "cancel_reason": detail.get("cancelReason"),
        "access_type": ACCESS_TYPE_TEXT.get(
            template["accessType"], ACCESS_TYPE_TEXT["EITHER"]
        ),
        "eligibility": eligibility_summary(template),
        "max_participants": detail["maxParticipants"],
        "registered_count": registered_count,
        "over_capacity": is_over_capacity(
            registered_count, detail["maxParticipants"]
        ),
        "roster": [map_roster_entry(entry) for entry in roster],
    }


@dataclass(slots=True)
class CatalogClassesRuntimeData:
    """Runtime container for Catalog Classes."""

    client: CatalogClassesClient
    coordinator: CatalogClassesCoordinator
    roster: ClassRosterManager
    customer_search: CustomerSearch


type CatalogClassesConfigEntry = ConfigEntry[CatalogClassesRuntimeData]
