"""Constants for the Catalog Classes integration."""

from __future__ import annotations

from datetime import timedelta
import logging
from typing import Final

from homeassistant.const import CONF_API_TOKEN, Platform

DOMAIN: Final = "catalog_classes"

DEFAULT_BASE_URL: Final = "https://app.catalog.club"

PLATFORMS: Final[list[Platform]] = [Platform.CALENDAR, Platform.SENSOR]

# Timeout for HTTP calls
REQUEST_TIMEOUT: Final[float] = 30  # seconds

# Coordinator update interval: re-fetch the visible schedule every 15 minutes
UPDATE_INTERVAL: Final = timedelta(minutes=15)

# Delay before a search-as-you-type query hits the API
SEARCH_DEBOUNCE_SECONDS: Final[float] = 0.25

# Tenant scoping header
ORGANIZATION_HEADER: Final = "X-Catalog-Organization"

# Config keys
CONF_BASE_URL: Final = "base_url"
CONF_ORGANIZATION: Final = "organization"
CONF_VIEW_MODE: Final = "view_mode"

VIEW_WEEK: Final = "WEEK"
VIEW_DAY: Final = "DAY"
VIEW_MODES: Final = [VIEW_WEEK, VIEW_DAY]

SESSION_SCHEDULED: Final = "SCHEDULED"
SESSION_CANCELLED: Final = "CANCELLED"
SESSION_STATUSES: Final = [SESSION_SCHEDULED, SESSION_CANCELLED]

ATTENDANCE_STATUSES: Final = [
    "REGISTERED",
    "ATTENDED",
    "NO_SHOW",
    "CANCELLED_BY_STAFF",
    "CANCELLED_BY_MEMBER",
]

DEFAULT_CANCEL_REASON: Final = "Cancelled"

LOGGER: Final = logging.getLogger(__name__)

# Data fields that should be redacted in diagnostics
TO_REDACT: Final[set[str]] = {CONF_API_TOKEN}
