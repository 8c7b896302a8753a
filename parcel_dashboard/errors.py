"""Error taxonomy and the upstream status to message translation."""
from __future__ import annotations

from typing import Dict, Optional


class ParcelError(Exception):
    """Base error carrying a user-facing message and an HTTP status."""

    status_code = 500
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.message}


class Unauthenticated(ParcelError):
    status_code = 401
    default_message = "Not authenticated"


class MalformedInput(ParcelError):
    status_code = 400
    default_message = "The request is missing required fields."


class UpstreamRejected(ParcelError):
    status_code = 400


class UpstreamUnavailable(ParcelError):
    status_code = 503
    default_message = "The Parcel service is temporarily unavailable. Please try again shortly."


class NetworkOrParseFailure(ParcelError):
    status_code = 502
    default_message = "Could not reach the Parcel service. Please try again."


OPERATION_FAILURE_MESSAGES: Dict[str, str] = {
    "deliveries": "Failed to fetch deliveries from Parcel API",
    "add_delivery": "Failed to add delivery",
    "carriers": "Failed to load carriers",
}

RATE_LIMITED_MESSAGE = (
    "Too many requests to the Parcel API. Please wait a few minutes and try again."
)
KEY_REJECTED_MESSAGE = "Your Parcel API key was rejected. Please sign in again."

BAD_INPUT_MESSAGES: Dict[str, str] = {
    "deliveries": "The Parcel API rejected the delivery list request.",
    "add_delivery": "The Parcel API rejected this delivery. Check the tracking number and carrier.",
    "carriers": "The Parcel API rejected the carrier list request.",
}

NOT_FOUND_MESSAGES: Dict[str, str] = {
    "add_delivery": "The tracking number or carrier was not recognised by Parcel.",
}


def translate_upstream_status(status: int, operation: str) -> ParcelError:
    """Map an upstream failure status to a stable error; the body is ignored."""

    fallback = OPERATION_FAILURE_MESSAGES.get(operation, ParcelError.default_message)
    if status in (401, 403):
        return Unauthenticated(KEY_REJECTED_MESSAGE, status_code=401)
    if status == 429:
        return UpstreamRejected(RATE_LIMITED_MESSAGE, status_code=429)
    if status == 400:
        return UpstreamRejected(BAD_INPUT_MESSAGES.get(operation, fallback), status_code=400)
    if status == 404 and operation in NOT_FOUND_MESSAGES:
        return UpstreamRejected(NOT_FOUND_MESSAGES[operation], status_code=404)
    if 500 <= status <= 599:
        return UpstreamUnavailable(status_code=status)
    return UpstreamRejected(fallback, status_code=status)
