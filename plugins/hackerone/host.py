"""
HttpPageHost – talks to the site over a cookie-authenticated aiohttp session.

The landing page is loaded once on :meth:`open`; the csrf token is read from
that markup unless one is configured explicitly.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional

from core.infra.http import HttpClient
from core.interfaces import PageHost
from core.models import StatusEvent
from plugins.hackerone.token import csrf_from_markup

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://hackerone.com"
DEFAULT_UA = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)

_LEVELS = {"DEBUG": logging.DEBUG, "INFO": logging.INFO, "WARNING": logging.WARNING, "ERROR": logging.ERROR}


class HttpPageHost(PageHost):

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        cookie: Optional[str] = None,
        csrf_token: Optional[str] = None,
        landing_path: str = "/",
        http: Optional[HttpClient] = None,
        max_retries: int = 3,
    ) -> None:
        self._base_url = base_url or os.getenv("H1_BASE_URL", DEFAULT_BASE_URL)
        self._landing_path = landing_path
        self._explicit_token = csrf_token or os.getenv("H1_CSRF_TOKEN") or None
        self._markup: Optional[str] = None
        self.events: List[StatusEvent] = []

        cookie = cookie or os.getenv("H1_SESSION_COOKIE")
        headers = {"User-Agent": DEFAULT_UA}
        if cookie:
            headers["Cookie"] = cookie
        self._http = http or HttpClient(
            base_url=self._base_url,
            max_retries=max_retries,
            default_headers=headers,
        )

    @property
    def http(self) -> HttpClient:
        return self._http

    async def open(self) -> None:
        if self._explicit_token:
            logger.debug("Using configured csrf token, skipping landing page")
            return
        self._markup = await self._http.get_text(self._landing_path)
        logger.debug("Loaded %s%s (%d chars)", self._base_url, self._landing_path, len(self._markup))

    def csrf_token(self) -> Optional[str]:
        return self._explicit_token or csrf_from_markup(self._markup)

    def status(self, message: str, level: str = "INFO") -> None:
        event = StatusEvent(level=level, message=message, source=self._base_url)
        self.events.append(event)
        logger.log(_LEVELS.get(level, logging.INFO), "[status] %s", message)
