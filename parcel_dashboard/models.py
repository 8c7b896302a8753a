"""Typed records for the loosely shaped payloads returned by the Parcel API."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _identifier(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return None


def _status_code(value: Any) -> Union[int, float, str, None]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)):
        return value
    return None


@dataclass(frozen=True)
class StructuredLocation:
    name: Optional[str] = None
    display_name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "StructuredLocation":
        return cls(
            name=_text(payload.get("name")),
            display_name=_text(payload.get("display_name")),
            city=_text(payload.get("city")),
            state=_text(payload.get("state")),
            country=_text(payload.get("country")),
        )


Location = Union[str, StructuredLocation, None]


def _location(value: Any) -> Location:
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return StructuredLocation.from_payload(value)
    return None


@dataclass(frozen=True)
class CarrierRef:
    """Carrier embedded in a delivery as an object."""

    code: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class Carrier:
    """Entry of the supported carriers directory."""

    code: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "name": self.name}


@dataclass(frozen=True)
class StatusMeta:
    label: str
    class_name: str
    value: str


@dataclass(frozen=True)
class DeliveryEvent:
    event: Optional[str] = None
    details: Optional[str] = None
    date: Optional[str] = None
    location: Location = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "DeliveryEvent":
        if not isinstance(payload, Mapping):
            return cls()
        return cls(
            event=_text(payload.get("event")),
            details=_text(payload.get("details")),
            date=_text(payload.get("date")),
            location=_location(payload.get("location")),
            city=_text(payload.get("city")),
            state=_text(payload.get("state")),
            country=_text(payload.get("country")),
        )


@dataclass(frozen=True)
class Delivery:
    id: Optional[str] = None
    title: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    display_name: Optional[str] = None
    item_name: Optional[str] = None
    merchant: Optional[str] = None
    tracking_number: Optional[str] = None
    status: Optional[str] = None
    status_code: Union[int, float, str, None] = None
    carrier: Union[str, CarrierRef, None] = None
    carrier_code: Optional[str] = None
    carrier_slug: Optional[str] = None
    carrier_id: Optional[str] = None
    provider: Optional[str] = None
    shipper: Optional[str] = None
    date_expected: Optional[str] = None
    estimate_arrival: Optional[str] = None
    events: Tuple[DeliveryEvent, ...] = ()
    location: Location = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, payload: Any) -> "Delivery":
        """Build a delivery from an upstream record; never raises."""

        if not isinstance(payload, Mapping):
            return cls()

        carrier_raw = payload.get("carrier")
        carrier: Union[str, CarrierRef, None]
        if isinstance(carrier_raw, str):
            carrier = carrier_raw
        elif isinstance(carrier_raw, Mapping):
            carrier = CarrierRef(
                code=_text(carrier_raw.get("code")),
                name=_text(carrier_raw.get("name")),
            )
        else:
            carrier = None

        estimate = payload.get("estimate")
        estimate_arrival = (
            _text(estimate.get("arrival")) if isinstance(estimate, Mapping) else None
        )

        events_raw = payload.get("events")
        events = (
            tuple(DeliveryEvent.from_payload(item) for item in events_raw)
            if isinstance(events_raw, list)
            else ()
        )

        return cls(
            id=_identifier(payload.get("id")),
            title=_text(payload.get("title")),
            name=_text(payload.get("name")),
            description=_text(payload.get("description")),
            display_name=_text(payload.get("display_name")),
            item_name=_text(payload.get("item_name")),
            merchant=_text(payload.get("merchant")),
            tracking_number=_identifier(payload.get("tracking_number")),
            status=_text(payload.get("status")),
            status_code=_status_code(payload.get("status_code")),
            carrier=carrier,
            carrier_code=_text(payload.get("carrier_code")),
            carrier_slug=_text(payload.get("carrier_slug")),
            carrier_id=_text(payload.get("carrier_id")),
            provider=_text(payload.get("provider")),
            shipper=_text(payload.get("shipper")),
            date_expected=_text(payload.get("date_expected")),
            estimate_arrival=estimate_arrival,
            events=events,
            location=_location(payload.get("location")),
            raw=dict(payload),
        )

    @property
    def expected_arrival(self) -> Optional[str]:
        if self.date_expected is not None:
            return self.date_expected
        return self.estimate_arrival
