"""State handling for the delivery dashboard page."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlencode

from .constants import FILTER_MODES, GROUP_MODES
from .context import RequestContext
from .errors import ParcelError, Unauthenticated
from .models import Carrier, Delivery, DeliveryEvent, StatusMeta
from .normalize import (
    carrier_directory,
    delivery_status,
    format_date,
    get_current_location,
    get_event_location,
    map_embed_url,
    normalize_code,
    resolve_carrier_code,
    resolve_carrier_name,
    resolve_delivery_title,
)
from .services import deliveries_from_payload, fetch_deliveries, load_carriers

logger = logging.getLogger(__name__)

DASHBOARD_PATH = "/app"


def _truthy_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class SearchState:
    """Shareable list state kept in the URL."""

    mode: str = "active"
    group: str = "none"
    carrier: str = ""
    status: str = ""

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> "SearchState":
        mode = params.get("mode") or ""
        group = params.get("group") or ""
        return cls(
            mode=mode if mode in FILTER_MODES else FILTER_MODES[0],
            group=group if group in GROUP_MODES else GROUP_MODES[0],
            carrier=(params.get("carrier") or "").strip(),
            status=(params.get("status") or "").strip(),
        )

    def patch(self, **changes: str) -> "SearchState":
        return SearchState.from_params({**self.to_params(), **changes})

    def to_params(self) -> Dict[str, str]:
        params = {"mode": self.mode, "group": self.group}
        if self.carrier:
            params["carrier"] = self.carrier
        if self.status:
            params["status"] = self.status
        return params

    @property
    def active_filter_count(self) -> int:
        return (
            (1 if self.group != "none" else 0)
            + (1 if self.carrier else 0)
            + (1 if self.status else 0)
        )


@dataclass(frozen=True)
class ModalState:
    """Which overlays are open: detail modal, add modal, filter panel."""

    selected: Optional[str] = None
    add_open: bool = False
    filters_open: bool = False

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> "ModalState":
        return cls(
            selected=(params.get("selected") or "").strip() or None,
            add_open=_truthy_flag(params.get("add")),
            filters_open=_truthy_flag(params.get("filters")),
        )

    def to_params(self) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if self.selected:
            params["selected"] = self.selected
        if self.add_open:
            params["add"] = "1"
        if self.filters_open:
            params["filters"] = "1"
        return params

    def escape(self) -> "ModalState":
        """Close the first open overlay: detail, then add, then filters."""

        if self.selected:
            return replace(self, selected=None)
        if self.add_open:
            return replace(self, add_open=False)
        if self.filters_open:
            return replace(self, filters_open=False)
        return self


def dashboard_url(search: SearchState, modals: Optional[ModalState] = None) -> str:
    params = search.to_params()
    if modals is not None:
        params.update(modals.to_params())
    return f"{DASHBOARD_PATH}?{urlencode(params)}"


@dataclass(frozen=True)
class DecoratedDelivery:
    key: str
    delivery: Delivery
    title: str
    carrier_code: str
    carrier_name: str
    status: StatusMeta
    expected_arrival: str


@dataclass
class DeliveryGroup:
    key: str
    title: str
    items: List[DecoratedDelivery] = field(default_factory=list)


@dataclass(frozen=True)
class TimelineEntry:
    title: str
    date: str
    location: Optional[str]
    details: Optional[str]


def delivery_key(delivery: Delivery, index: int) -> str:
    if delivery.tracking_number:
        return delivery.tracking_number
    return f"idx-{index}"


def _arrival_key(delivery: Delivery) -> str:
    return delivery.expected_arrival or ""


def sort_deliveries(deliveries: Sequence[Delivery]) -> List[Tuple[int, Delivery]]:
    """Expected arrival descending by plain string order; undated last.

    Each delivery is paired with its position in the upstream list, which keys
    deliveries that have no tracking number.
    """

    return sorted(
        enumerate(deliveries), key=lambda pair: _arrival_key(pair[1]), reverse=True
    )


def decorate_deliveries(
    deliveries: Sequence[Delivery],
    directory: Mapping[str, str],
    locale: str = "en_US",
) -> List[DecoratedDelivery]:
    return [
        DecoratedDelivery(
            key=delivery_key(delivery, index),
            delivery=delivery,
            title=resolve_delivery_title(delivery),
            carrier_code=resolve_carrier_code(delivery),
            carrier_name=resolve_carrier_name(delivery, directory),
            status=delivery_status(delivery),
            expected_arrival=format_date(delivery.expected_arrival, locale),
        )
        for index, delivery in sort_deliveries(deliveries)
    ]


def filter_deliveries(
    items: Sequence[DecoratedDelivery], carrier: str = "", status: str = ""
) -> List[DecoratedDelivery]:
    return [
        item
        for item in items
        if (not carrier or item.carrier_code == carrier)
        and (not status or item.status.value == status)
    ]


def group_deliveries(
    items: Sequence[DecoratedDelivery], group: str
) -> List[DeliveryGroup]:
    if group not in ("carrier", "status"):
        return []

    buckets: Dict[str, DeliveryGroup] = {}
    for item in items:
        if group == "carrier":
            key, title = item.carrier_code or "unknown", item.carrier_name
        else:
            key, title = item.status.value, item.status.label
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = DeliveryGroup(key=key, title=title)
        bucket.items.append(item)

    return sorted(buckets.values(), key=lambda bucket: bucket.title.casefold())


def carrier_options(
    carriers: Sequence[Carrier], items: Sequence[DecoratedDelivery]
) -> List[Carrier]:
    options: Dict[str, str] = {}
    for carrier in carriers:
        options[normalize_code(carrier.code)] = carrier.name
    for item in items:
        if item.carrier_code and item.carrier_code not in options:
            options[item.carrier_code] = item.carrier_name
    return sorted(
        (Carrier(code=code, name=name) for code, name in options.items()),
        key=lambda carrier: carrier.name.casefold(),
    )


def status_options(items: Sequence[DecoratedDelivery]) -> List[StatusMeta]:
    options: Dict[str, StatusMeta] = {}
    for item in items:
        options[item.status.value] = item.status
    return sorted(options.values(), key=lambda meta: meta.label.casefold())


def build_timeline(events: Sequence[DeliveryEvent], locale: str = "en_US") -> List[TimelineEntry]:
    return [
        TimelineEntry(
            title=event.event or "Update",
            date=format_date(event.date, locale),
            location=get_event_location(event),
            details=event.details,
        )
        for event in reversed(events)
    ]


@dataclass
class DeliveryDetail:
    item: DecoratedDelivery
    current_location: Optional[str]
    map_url: Optional[str]
    timeline: List[TimelineEntry]


@dataclass
class DashboardView:
    search: SearchState
    modals: ModalState
    deliveries: List[DecoratedDelivery]
    filtered: List[DecoratedDelivery]
    groups: List[DeliveryGroup]
    carriers: List[Carrier]
    carrier_options: List[Carrier]
    status_options: List[StatusMeta]
    selected: Optional[DeliveryDetail] = None
    error: Optional[str] = None
    form: Dict[str, str] = field(default_factory=dict)

    def url(self, modals: Optional[ModalState] = None, **search_changes: str) -> str:
        search = self.search.patch(**search_changes) if search_changes else self.search
        return dashboard_url(search, self.modals if modals is None else modals)

    @property
    def escape_url(self) -> Optional[str]:
        escaped = self.modals.escape()
        if escaped == self.modals:
            return None
        return self.url(escaped)

    def open_detail_url(self, key: str) -> str:
        return self.url(replace(self.modals, selected=key, add_open=False))

    def toggle_filters_url(self) -> str:
        return self.url(replace(self.modals, filters_open=not self.modals.filters_open))

    @property
    def open_add_url(self) -> str:
        return self.url(replace(self.modals, add_open=True, selected=None))

    @property
    def close_detail_url(self) -> str:
        return self.url(replace(self.modals, selected=None))

    @property
    def close_add_url(self) -> str:
        return self.url(replace(self.modals, add_open=False))

    @property
    def clear_filters_url(self) -> str:
        return self.url(group="none", carrier="", status="")


def build_view(
    deliveries: Sequence[Delivery],
    carriers: Sequence[Carrier],
    search: SearchState,
    modals: ModalState,
    *,
    locale: str = "en_US",
    error: Optional[str] = None,
) -> DashboardView:
    directory = carrier_directory(carriers)
    decorated = decorate_deliveries(deliveries, directory, locale)
    filtered = filter_deliveries(decorated, search.carrier, search.status)

    selected = None
    if modals.selected:
        match = next((item for item in decorated if item.key == modals.selected), None)
        if match is not None:
            location = get_current_location(match.delivery)
            selected = DeliveryDetail(
                item=match,
                current_location=location,
                map_url=map_embed_url(location),
                timeline=build_timeline(match.delivery.events, locale),
            )
        else:
            modals = replace(modals, selected=None)

    return DashboardView(
        search=search,
        modals=modals,
        deliveries=decorated,
        filtered=filtered,
        groups=group_deliveries(filtered, search.group),
        carriers=list(carriers),
        carrier_options=carrier_options(carriers, decorated),
        status_options=status_options(decorated),
        selected=selected,
        error=error,
    )


class DashboardController:
    """Loads the delivery list and directory for one dashboard render.

    :class:`Unauthenticated` always propagates so the page can redirect to
    sign-in; other failures become the view's error message.
    """

    def __init__(self, ctx: RequestContext) -> None:
        self.ctx = ctx

    def _carriers(self) -> List[Carrier]:
        try:
            return load_carriers(self.ctx)
        except ParcelError as exc:
            logger.warning("Carrier directory unavailable: %s", exc.message)
            return []

    def load(
        self,
        search: SearchState,
        modals: ModalState,
        *,
        error: Optional[str] = None,
    ) -> DashboardView:
        deliveries: List[Delivery] = []
        try:
            payload: Any = fetch_deliveries(self.ctx, search.mode)
            deliveries = deliveries_from_payload(payload)
        except Unauthenticated:
            raise
        except ParcelError as exc:
            error = exc.message

        return build_view(
            deliveries,
            self._carriers(),
            search,
            modals,
            locale=self.ctx.locale,
            error=error,
        )
