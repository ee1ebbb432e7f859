"""
InboxTimelineFetcher – pipeline stage 1 / 3.

Discovers the inbox's report ids, then streams their timeline activities
batch by batch as :class:`~plugins.hackerone.models.ActivityRecord`.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Optional

from core.interfaces import Fetcher, PageHost
from plugins.hackerone.discovery import discover_ids
from plugins.hackerone.errors import NoItemsFound
from plugins.hackerone.host import HttpPageHost
from plugins.hackerone.models import (
    DEFAULT_BATCH_SIZE,
    ActivityRecord,
    FetchTemplates,
    ScrapeRequest,
)
from plugins.hackerone.timeline import BATCH_PAUSE_S, iter_scrape_in_batches
from plugins.hackerone.token import DEFAULT_TOKEN_TIMEOUT_S, TokenSupplier

logger = logging.getLogger(__name__)

__all__ = ["InboxTimelineFetcher"]


class InboxTimelineFetcher(Fetcher):

    name = "InboxTimelineFetcher"

    def __init__(
        self,
        *,
        request: Optional[ScrapeRequest] = None,
        host: Optional[PageHost] = None,
        inbox: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        base_url: Optional[str] = None,
        pause_s: float = BATCH_PAUSE_S,
        token_timeout_s: float = DEFAULT_TOKEN_TIMEOUT_S,
        **templates: Any,
    ) -> None:
        self._request = request or ScrapeRequest(
            inbox=inbox or "",
            start_date=start_date or "",
            end_date=end_date or "",
            batch_size=batch_size,
            templates=FetchTemplates.from_config(templates),
        )
        # A host built here is ours to open and close.
        self._owns_host = host is None
        self._host = host or HttpPageHost(base_url=base_url)
        self._pause_s = pause_s
        self._token_timeout_s = token_timeout_s

    @property
    def request(self) -> ScrapeRequest:
        return self._request

    async def __aenter__(self):
        if self._owns_host:
            await self._host.open()
        return self

    async def __aexit__(self, *_):
        if self._owns_host:
            await self._host.close()

    async def fetch(self) -> AsyncIterator[ActivityRecord]:
        req = self._request
        host = self._host
        tokens = TokenSupplier(host.csrf_token)

        host.status("Fetching reports from inbox…")
        report_ids = await discover_ids(
            host.http,
            tokens.token_or_fail(),
            req.inbox,
            req.start_date,
            req.end_date,
        )
        if not report_ids:
            raise NoItemsFound(req.inbox)

        host.status(f"Found {len(report_ids)} reports. Scraping…")
        total = 0
        async for rows in iter_scrape_in_batches(
            host.http,
            report_ids,
            req.batch_size,
            req.templates,
            tokens,
            pause_s=self._pause_s,
            token_timeout_s=self._token_timeout_s,
        ):
            total += len(rows)
            for record in rows:
                yield record
        logger.info("Inbox %s – %d activities from %d reports", req.inbox, total, len(report_ids))
