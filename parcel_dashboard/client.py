import logging
import threading
from typing import Any, Dict, Optional

import requests

from .constants import API_KEY_HEADER, FILTER_MODES
from .errors import NetworkOrParseFailure, translate_upstream_status

logger = logging.getLogger(__name__)


def normalize_filter_mode(value: Optional[str]) -> str:
    return "recent" if value == "recent" else FILTER_MODES[0]


class ParcelClient:
    """Thin wrapper around the Parcel external API.

    Every call attaches the caller's API key and turns failures into
    :class:`~parcel_dashboard.errors.ParcelError` subclasses.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: int = 15,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._shared_session = session
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        """Injected session, else one session per worker thread."""

        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = requests.Session()
        return session

    def _headers(self, api_key: Optional[str]) -> Dict[str, str]:
        headers = {"accept": "application/json"}
        if api_key:
            headers[API_KEY_HEADER] = api_key
        return headers

    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        api_key: Optional[str] = None,
        params: Optional[Dict[str, str]] = None,
        payload: Optional[Dict[str, Any]] = None,
        allow_empty: bool = False,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            if method == "POST":
                response = self.session.post(
                    url, headers=self._headers(api_key), json=payload, timeout=self.timeout
                )
            else:
                response = self.session.get(
                    url, headers=self._headers(api_key), params=params, timeout=self.timeout
                )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else 502
            logger.warning("Parcel API %s failed with HTTP %s", operation, status)
            if exc.response is not None:
                logger.debug("Parcel API %s error body: %s", operation, exc.response.text)
            raise translate_upstream_status(status, operation) from exc
        except requests.RequestException as exc:
            logger.error("Parcel API %s request failed: %s", operation, exc)
            raise NetworkOrParseFailure() from exc

        try:
            return response.json()
        except ValueError as exc:
            if allow_empty:
                return None
            logger.error("Parcel API %s returned an unreadable body", operation)
            raise NetworkOrParseFailure() from exc

    def list_deliveries(self, api_key: str, filter_mode: Optional[str] = None) -> Any:
        mode = normalize_filter_mode(filter_mode)
        return self._request(
            "GET",
            "/deliveries/",
            "deliveries",
            api_key=api_key,
            params={"filter_mode": mode},
        )

    def add_delivery(
        self,
        api_key: str,
        tracking_number: str,
        carrier_code: Optional[str] = None,
        title: Optional[str] = None,
    ) -> Any:
        payload = {
            "tracking_number": tracking_number,
            "carrier_code": carrier_code or None,
            "title": title or None,
        }
        return self._request(
            "POST",
            "/add-delivery/",
            "add_delivery",
            api_key=api_key,
            payload=payload,
            allow_empty=True,
        )

    def supported_carriers(self, api_key: Optional[str] = None) -> Any:
        return self._request(
            "GET", "/supported_carriers.json", "carriers", api_key=api_key
        )
