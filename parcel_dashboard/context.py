from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from .client import ParcelClient
from .config import Settings
from .errors import Unauthenticated
from .session import read_api_key


@dataclass(frozen=True)
class RequestContext:
    """Per-request view of the session plus the process-wide services."""

    settings: Settings
    client: ParcelClient
    api_key: Optional[str]
    secure: bool
    locale: str

    def require_api_key(self) -> str:
        if not self.api_key:
            raise Unauthenticated()
        return self.api_key


def get_request_context(request: Request) -> RequestContext:
    state = request.app.state
    return RequestContext(
        settings=state.settings,
        client=state.parcel_client,
        api_key=read_api_key(request.headers.get("cookie")),
        secure=request.url.scheme == "https",
        locale=state.locale_resolver.get_locale(request),
    )
