"""Environment-driven settings for the Parcel dashboard."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

DEFAULT_API_BASE_URL = "https://api.parcel.app/external"
DEFAULT_SUPPORTED_LOCALES = ("en_US", "en_GB", "de_DE", "nl_NL")


def _env_bool(key: str, fallback: bool = False) -> bool:
    value = os.getenv(key)
    if value is None:
        return fallback
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(key: str, fallback: Optional[int] = None) -> Optional[int]:
    value = os.getenv(key)
    if value is None:
        return fallback
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


def _env_list(key: str, fallback: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(key)
    if value is None:
        return fallback
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items or fallback


@dataclass(frozen=True)
class Settings:
    api_base_url: str = DEFAULT_API_BASE_URL
    api_timeout: int = 15
    log_level: str = "INFO"
    default_locale: str = "en_US"
    supported_locales: Tuple[str, ...] = DEFAULT_SUPPORTED_LOCALES


def load_settings() -> Settings:
    """Read settings from the process environment."""

    base_url = os.getenv("PARCEL_API_BASE_URL", DEFAULT_API_BASE_URL).strip()
    timeout = _env_int("PARCEL_API_TIMEOUT", 15) or 15
    default_locale = os.getenv("DEFAULT_LOCALE", "en_US").strip() or "en_US"
    supported = _env_list("SUPPORTED_LOCALES", DEFAULT_SUPPORTED_LOCALES)
    if default_locale not in supported:
        supported = (default_locale,) + supported
    return Settings(
        api_base_url=base_url.rstrip("/") or DEFAULT_API_BASE_URL,
        api_timeout=max(1, timeout),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        default_locale=default_locale,
        supported_locales=supported,
    )
