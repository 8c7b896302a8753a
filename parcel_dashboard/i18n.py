from typing import List, Optional, Sequence

from babel import Locale, UnknownLocaleError, negotiate_locale
from fastapi import Request

from .constants import LANG_COOKIE_MAX_AGE, LANG_COOKIE_NAME


def _parse_accept_language(header: Optional[str]) -> List[str]:
    """Return Accept-Language tags ordered by quality, best first."""

    if not header:
        return []
    weighted = []
    for position, part in enumerate(header.split(",")):
        tag, _, params = part.strip().partition(";")
        tag = tag.strip()
        if not tag or tag == "*":
            continue
        quality = 1.0
        params = params.strip()
        if params.startswith("q="):
            try:
                quality = float(params[2:])
            except ValueError:
                quality = 0.0
        if quality <= 0:
            continue
        weighted.append((-quality, position, tag.replace("-", "_")))
    return [tag for _, _, tag in sorted(weighted)]


def encode_lang_cookie(locale: str) -> str:
    return f"{LANG_COOKIE_NAME}={locale}; Path=/; SameSite=Lax; Max-Age={LANG_COOKIE_MAX_AGE}"


class LocaleResolver:
    """Pick the locale used to format dates for a request."""

    def __init__(self, supported_locales: Sequence[str], default_locale: str = "en_US"):
        self.default_locale = default_locale
        self.supported_locales = [
            locale for locale in supported_locales if self._is_known(locale)
        ] or [default_locale]

    @staticmethod
    def _is_known(locale: str) -> bool:
        try:
            Locale.parse(locale)
        except (UnknownLocaleError, ValueError):
            return False
        return True

    def _match(self, candidate: Optional[str]) -> Optional[str]:
        if not candidate:
            return None
        return negotiate_locale(
            [candidate.replace("-", "_")], self.supported_locales, sep="_"
        )

    def query_locale(self, request: Request) -> Optional[str]:
        return self._match(request.query_params.get("lang"))

    def get_locale(self, request: Request) -> str:
        # 1. Query param
        matched = self.query_locale(request)
        if matched:
            return matched

        # 2. Cookie
        matched = self._match(request.cookies.get(LANG_COOKIE_NAME))
        if matched:
            return matched

        # 3. Accept-Language header
        preferred = _parse_accept_language(request.headers.get("accept-language"))
        if preferred:
            matched = negotiate_locale(preferred, self.supported_locales, sep="_")
            if matched:
                return matched

        return self.default_locale
