import re
from typing import Dict, Tuple

SESSION_COOKIE_NAME = "parcel_api_key"
SESSION_MAX_AGE = 30 * 24 * 60 * 60
LANG_COOKIE_NAME = "parcel_lang"
LANG_COOKIE_MAX_AGE = 365 * 24 * 60 * 60

API_KEY_HEADER = "api-key"
CARRIERS_CACHE_CONTROL = "public, max-age=86400"

FILTER_MODES: Tuple[str, ...] = ("active", "recent")
GROUP_MODES: Tuple[str, ...] = ("none", "carrier", "status")

STATUS_LABELS: Dict[int, str] = {
    0: "Completed",
    1: "Frozen",
    2: "In transit",
    3: "Ready for pickup",
    4: "Out for delivery",
    5: "Not found",
    6: "Delivery attempt failed",
    7: "Exception",
    8: "Info received",
}

STATUS_CLASS_BY_CODE: Dict[int, str] = {
    0: "status-completed",
    1: "status-frozen",
    2: "status-in-transit",
    3: "status-pickup",
    4: "status-out-for-delivery",
    5: "status-not-found",
    6: "status-failed-attempt",
    7: "status-exception",
    8: "status-info-received",
}

UNKNOWN_STATUS_CLASS = "status-unknown"

# Alternate keys some carriers use for the carrier identifier, in lookup order.
CARRIER_CODE_FALLBACK_KEYS: Tuple[str, ...] = (
    "carrier_slug",
    "carrier_id",
    "provider",
    "shipper",
)

TITLE_KEYS: Tuple[str, ...] = (
    "title",
    "name",
    "description",
    "display_name",
    "item_name",
    "merchant",
)

STATUS_SEPARATOR_PATTERN = re.compile(r"[_-]+")
WHITESPACE_PATTERN = re.compile(r"\s+")
NUMERIC_CODE_PATTERN = re.compile(r"^[0-9]+$")

# Left unescaped when percent-encoding cookie values and map queries.
URI_COMPONENT_SAFE = "-_.!~*'()"
MALFORMED_ESCAPE_PATTERN = re.compile(r"%(?![0-9A-Fa-f]{2})")

MAP_EMBED_URL = "https://www.google.com/maps?q={query}&output=embed"
