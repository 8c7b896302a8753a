from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
from urllib.parse import quote

from babel.dates import (
    format_datetime,
    get_date_format,
    get_datetime_format,
    get_time_format,
)

from .constants import (
    CARRIER_CODE_FALLBACK_KEYS,
    MAP_EMBED_URL,
    NUMERIC_CODE_PATTERN,
    STATUS_CLASS_BY_CODE,
    STATUS_LABELS,
    STATUS_SEPARATOR_PATTERN,
    TITLE_KEYS,
    UNKNOWN_STATUS_CLASS,
    URI_COMPONENT_SAFE,
    WHITESPACE_PATTERN,
)
from .models import (
    Carrier,
    CarrierRef,
    Delivery,
    DeliveryEvent,
    StatusMeta,
    StructuredLocation,
)


def normalize_code(value: Optional[str]) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def normalize_status_text(value: str) -> str:
    text = STATUS_SEPARATOR_PATTERN.sub(" ", value)
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def _numeric_status_code(status_code: Any) -> Optional[int]:
    if isinstance(status_code, bool):
        return None
    if isinstance(status_code, int):
        return status_code
    if isinstance(status_code, float):
        return int(status_code) if status_code.is_integer() else None
    if isinstance(status_code, str):
        token = status_code.strip()
        if NUMERIC_CODE_PATTERN.match(token):
            return int(token)
    return None


def status_meta(
    status: Optional[str], status_code: Union[int, float, str, None] = None
) -> StatusMeta:
    """Map a delivery status onto a label, a CSS class and a filter value.

    A known numeric ``status_code`` always wins over free text; free text wins
    over an unknown code.
    """

    numeric = _numeric_status_code(status_code)
    if numeric is not None and numeric in STATUS_LABELS:
        return StatusMeta(
            label=STATUS_LABELS[numeric],
            class_name=STATUS_CLASS_BY_CODE.get(numeric, UNKNOWN_STATUS_CLASS),
            value=str(numeric),
        )

    if isinstance(status, str) and status.strip():
        label = normalize_status_text(status)
        return StatusMeta(
            label=label, class_name=UNKNOWN_STATUS_CLASS, value=label.lower()
        )

    if status_code is not None and not isinstance(status_code, bool):
        if isinstance(status_code, float) and status_code.is_integer():
            code_text = str(int(status_code))
        else:
            code_text = str(status_code)
        if code_text.strip():
            label = normalize_status_text(code_text)
            return StatusMeta(
                label=label, class_name=UNKNOWN_STATUS_CLASS, value=label.lower()
            )

    return StatusMeta(label="Unknown", class_name=UNKNOWN_STATUS_CLASS, value="unknown")


def delivery_status(delivery: Delivery) -> StatusMeta:
    return status_meta(delivery.status, delivery.status_code)


def resolve_carrier_code(delivery: Delivery) -> str:
    candidates: List[Optional[str]] = []
    if isinstance(delivery.carrier, CarrierRef):
        candidates.append(delivery.carrier.code)
    elif isinstance(delivery.carrier, str):
        candidates.append(delivery.carrier)
    candidates.append(delivery.carrier_code)
    candidates.extend(getattr(delivery, key) for key in CARRIER_CODE_FALLBACK_KEYS)

    for candidate in candidates:
        code = normalize_code(candidate)
        if code:
            return code
    return ""


def resolve_carrier_name(delivery: Delivery, directory: Mapping[str, str]) -> str:
    if isinstance(delivery.carrier, CarrierRef) and delivery.carrier.name:
        return delivery.carrier.name

    code = resolve_carrier_code(delivery)
    if code and directory.get(code):
        return directory[code]
    if code:
        return code.upper()
    return "Unknown"


def resolve_delivery_title(delivery: Delivery) -> str:
    for key in TITLE_KEYS:
        candidate = getattr(delivery, key)
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    if delivery.tracking_number:
        return f"Package {delivery.tracking_number}"
    return "Package"


def _join_place(parts: Iterable[Optional[str]]) -> Optional[str]:
    cleaned = [part.strip() for part in parts if isinstance(part, str) and part.strip()]
    return ", ".join(cleaned) if cleaned else None


def get_event_location(event: DeliveryEvent) -> Optional[str]:
    location = event.location
    if isinstance(location, str) and location.strip():
        return location.strip()

    if isinstance(location, StructuredLocation):
        for candidate in (location.name, location.display_name):
            if candidate and candidate.strip():
                return candidate.strip()
        joined = _join_place((location.city, location.state, location.country))
        if joined:
            return joined

    return _join_place((event.city, event.state, event.country))


def get_current_location(delivery: Optional[Delivery]) -> Optional[str]:
    if delivery is None:
        return None

    for event in reversed(delivery.events):
        location = get_event_location(event)
        if location:
            return location

    if isinstance(delivery.location, str) and delivery.location.strip():
        return delivery.location.strip()
    return None


def map_embed_url(location: Optional[str]) -> Optional[str]:
    if not location:
        return None
    return MAP_EMBED_URL.format(query=quote(location, safe=URI_COMPONENT_SAFE))


def parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    raw = str(value).strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except (TypeError, ValueError):
        return None


def _medium_date_short_time(locale: str) -> str:
    # Locale glue such as "{1}, {0}" is LDML too, so quoted literals survive.
    glue = get_datetime_format("medium", locale=locale)
    return glue.replace("{0}", get_time_format("short", locale=locale).pattern).replace(
        "{1}", get_date_format("medium", locale=locale).pattern
    )


def format_date(value: Any, locale: str = "en_US") -> str:
    """Medium date plus short time for ``locale``; raw text when unparseable."""

    if not value:
        return "Not available"
    parsed = parse_timestamp(value)
    if parsed is None:
        return str(value)

    return format_datetime(parsed, format=_medium_date_short_time(locale), locale=locale)


def _carrier_entry(code: Any, name: Any) -> Optional[Carrier]:
    code_text = code.strip().lower() if isinstance(code, str) else ""
    if name is None:
        return None
    name_text = str(name).strip()
    if not code_text or not name_text:
        return None
    return Carrier(code=code_text, name=name_text)


def normalize_carriers(payload: Any) -> Optional[List[Carrier]]:
    """Flatten the supported-carriers payload into a list sorted by name.

    Accepts a list of ``{"code", "name"}`` objects or a ``{code: name}`` map.
    Returns ``None`` for any other shape.
    """

    entries: List[Optional[Carrier]]
    if isinstance(payload, list):
        entries = [
            _carrier_entry(item.get("code"), item.get("name"))
            for item in payload
            if isinstance(item, Mapping)
        ]
    elif isinstance(payload, Mapping):
        entries = [_carrier_entry(code, name) for code, name in payload.items()]
    else:
        return None

    carriers = [entry for entry in entries if entry is not None]
    carriers.sort(key=lambda carrier: (carrier.name.casefold(), carrier.name))
    return carriers


def carrier_directory(carriers: Iterable[Carrier]) -> Dict[str, str]:
    return {normalize_code(carrier.code): carrier.name for carrier in carriers}
