"""
CSRF token lookup – the site embeds it as ``<meta name="csrf-token">``.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from bs4 import BeautifulSoup

from core.infra.poll import PollTimeout, poll_until
from plugins.hackerone.errors import TokenNotFound

logger = logging.getLogger(__name__)

CSRF_META_NAME = "csrf-token"
DEFAULT_TOKEN_TIMEOUT_S = 7.0
POLL_INTERVAL_S = 0.1


def csrf_from_markup(markup: Optional[str]) -> Optional[str]:
    """Return the csrf meta content from *markup*, or ``None``."""
    if not markup:
        return None
    soup = BeautifulSoup(markup, "html.parser")
    tag = soup.find("meta", attrs={"name": CSRF_META_NAME})
    content = tag.get("content") if tag else None
    return content or None


class TokenSupplier:
    """Reads the token from host state, either at once or with a bounded wait."""

    def __init__(self, read: Callable[[], Optional[str]], *, interval_s: float = POLL_INTERVAL_S) -> None:
        self._read = read
        self._interval_s = interval_s

    def token_or_fail(self) -> str:
        token = self._read()
        if not token:
            raise TokenNotFound()
        return token

    async def await_token(self, timeout_s: float = DEFAULT_TOKEN_TIMEOUT_S) -> str:
        try:
            return await poll_until(self._read, timeout_s=timeout_s, interval_s=self._interval_s)
        except PollTimeout as exc:
            logger.error("CSRF token did not appear within %.1fs", timeout_s)
            raise TokenNotFound("CSRF token not found on page") from exc
