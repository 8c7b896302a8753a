"""Operations shared by the JSON API and the HTML pages."""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from .context import RequestContext
from .errors import MalformedInput, NetworkOrParseFailure
from .models import Carrier, Delivery
from .normalize import normalize_carriers

logger = logging.getLogger(__name__)


def _clean(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def fetch_deliveries(ctx: RequestContext, filter_mode: Optional[str]) -> Any:
    api_key = ctx.require_api_key()
    return ctx.client.list_deliveries(api_key, filter_mode)


def deliveries_from_payload(payload: Any) -> List[Delivery]:
    items = payload.get("deliveries") if isinstance(payload, dict) else None
    if not isinstance(items, list):
        return []
    return [Delivery.from_payload(item) for item in items]


def register_delivery(
    ctx: RequestContext,
    tracking_number: Any,
    carrier_code: Any = None,
    title: Any = None,
) -> Any:
    api_key = ctx.require_api_key()
    tracking = _clean(tracking_number)
    if not tracking:
        raise MalformedInput("trackingNumber is required")
    result = ctx.client.add_delivery(
        api_key, tracking, carrier_code=_clean(carrier_code), title=_clean(title)
    )
    logger.info("Registered tracking number ending in %s", tracking[-4:])
    return result


def load_carriers(ctx: RequestContext) -> List[Carrier]:
    payload = ctx.client.supported_carriers(ctx.api_key)
    carriers = normalize_carriers(payload)
    if carriers is None:
        raise NetworkOrParseFailure("Failed to load carriers")
    return carriers
