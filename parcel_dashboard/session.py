"""HTTP-only cookie that carries the user's Parcel API key."""
from __future__ import annotations

import logging
from typing import Dict, Optional
from urllib.parse import quote, unquote

from .constants import (
    MALFORMED_ESCAPE_PATTERN,
    SESSION_COOKIE_NAME,
    SESSION_MAX_AGE,
    URI_COMPONENT_SAFE,
)

logger = logging.getLogger(__name__)


def parse_cookies(cookie_header: Optional[str]) -> Dict[str, str]:
    if not cookie_header:
        return {}

    cookies: Dict[str, str] = {}
    for item in cookie_header.split(";"):
        pair = item.strip()
        if not pair or "=" not in pair:
            continue
        key, value = pair.split("=", 1)
        cookies[key] = value
    return cookies


def read_api_key(cookie_header: Optional[str]) -> Optional[str]:
    raw = parse_cookies(cookie_header).get(SESSION_COOKIE_NAME)
    if not raw:
        return None
    if MALFORMED_ESCAPE_PATTERN.search(raw):
        logger.warning("Ignoring session cookie with a malformed escape")
        return None
    try:
        return unquote(raw, errors="strict")
    except UnicodeDecodeError:
        logger.warning("Ignoring session cookie with an undecodable value")
        return None


def _cookie_attributes(max_age: int, secure: bool) -> str:
    secure_flag = "; Secure" if secure else ""
    return f"Path=/; HttpOnly; SameSite=Lax; Max-Age={max_age}{secure_flag}"


def encode_session_cookie(api_key: str, secure: bool) -> str:
    value = quote(api_key, safe=URI_COMPONENT_SAFE)
    return f"{SESSION_COOKIE_NAME}={value}; {_cookie_attributes(SESSION_MAX_AGE, secure)}"


def clear_session_cookie(secure: bool) -> str:
    return f"{SESSION_COOKIE_NAME}=; {_cookie_attributes(0, secure)}"
