"""Calendar filter state and its translation into session list queries."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Final

from .const import SESSION_CANCELLED, SESSION_SCHEDULED

FILTER_LOCATIONS: Final = "locations"
FILTER_ROOMS: Final = "rooms"
FILTER_PROGRAMS: Final = "programs"
FILTER_INSTRUCTORS: Final = "instructors"
FILTER_STATUSES: Final = "statuses"

# Display order of the filter menus
FILTER_KEYS: Final[list[str]] = [
    FILTER_LOCATIONS,
    FILTER_ROOMS,
    FILTER_PROGRAMS,
    FILTER_INSTRUCTORS,
    FILTER_STATUSES,
]

FILTER_LABELS: Final[dict[str, str]] = {
    FILTER_LOCATIONS: "Location",
    FILTER_ROOMS: "Room",
    FILTER_PROGRAMS: "Program",
    FILTER_INSTRUCTORS: "Instructor",
    FILTER_STATUSES: "Status",
}

# Query parameter that each category narrows to
FILTER_QUERY_PARAMS: Final[dict[str, str]] = {
    FILTER_LOCATIONS: "location_id",
    FILTER_ROOMS: "room",
    FILTER_PROGRAMS: "program",
    FILTER_INSTRUCTORS: "instructor_user_id",
    FILTER_STATUSES: "status",
}

STATUS_OPTIONS: Final[list[tuple[str, str]]] = [
    (SESSION_SCHEDULED, "Scheduled"),
    (SESSION_CANCELLED, "Cancelled"),
]


def _empty_selection() -> dict[str, list[str]]:
    return {key: [] for key in FILTER_KEYS}


@dataclass
class CalendarFilters:
    """Selected values per filter category."""

    selected: dict[str, list[str]] = field(default_factory=_empty_selection)

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> CalendarFilters:
        """Restore filters stored in config entry options."""
        filters = cls()
        for key in FILTER_KEYS:
            values = options.get(key) or []
            filters.selected[key] = [str(value) for value in values]
        return filters

    def as_options(self) -> dict[str, list[str]]:
        """Return a copy suitable for config entry options."""
        return {key: list(values) for key, values in self.selected.items()}

    @property
    def has_active(self) -> bool:
        """Return True if any category has a selection."""
        return any(self.selected.values())

    def toggle(self, key: str, value: str) -> None:
        """Add `value` to a category, or remove it if already selected."""
        if key not in FILTER_KEYS:
            raise KeyError(key)
        current = self.selected[key]
        if value in current:
            self.selected[key] = [item for item in current if item != value]
        else:
            self.selected[key] = [*current, value]

    def clear(self) -> None:
        """Drop every selection."""
        self.selected = _empty_selection()

    def to_query_params(self) -> dict[str, str]:
        """Narrow each category to its first selected value.

        The filter menus allow several values per category but the sessions
        endpoint is only ever asked for one of them.
        """
        params: dict[str, str] = {}
        for key in FILTER_KEYS:
            values = self.selected.get(key) or []
            if values:
                params[FILTER_QUERY_PARAMS[key]] = values[0]
        return params


def filter_options(key: str, lookups: Mapping[str, Any]) -> list[tuple[str, str]]:
    """Return `(value, label)` pairs offered for a filter category."""
    if key == FILTER_LOCATIONS:
        return [
            (location["id"], location.get("name") or location["id"])
            for location in lookups.get("locations", [])
        ]
    if key == FILTER_ROOMS:
        return [(room, room) for room in lookups.get("rooms", [])]
    if key == FILTER_PROGRAMS:
        return [(program, program) for program in lookups.get("programs", [])]
    if key == FILTER_INSTRUCTORS:
        return [
            (
                instructor["id"],
                instructor.get("name") or instructor.get("email") or instructor["id"],
            )
            for instructor in lookups.get("instructors", [])
        ]
    return list(STATUS_OPTIONS)
