"""
Shared fakes for the test-suite: an in-memory HTTP client and page host.
"""

import asyncio
import json
import os
import sys
from typing import Any, Dict, List, Optional

import pytest

# Add project root to PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.interfaces import PageHost
from plugins.hackerone.models import FetchTemplates

TIMELINE_TEMPLATE = '{"query": "timeline", "variables": {"id": "[report_id]"}}'
METADATA_TEMPLATE = '{"query": "metadata", "variables": {"id": "[reportId]"}}'


def timeline_payload(*nodes: Dict[str, Any]) -> Dict[str, Any]:
    edges = [{"node": n} for n in nodes]
    return {"data": {"reports": {"nodes": [{"activities": {"edges": edges}}]}}}


def activity(type_: str, actor: str = "alice", created_at: str = "2024-01-02T10:00:00Z", **extra) -> Dict[str, Any]:
    node = {"type": type_, "actor": {"username": actor}, "created_at": created_at}
    node.update(extra)
    return node


class FakeHttp:
    """Stands in for :class:`core.infra.http.HttpClient`.

    ``listing`` is returned by ``post_json`` (or raised, if an exception).
    ``graphql`` maps a report id to a payload, a ``(status, payload)`` tuple
    or an exception; ``delays`` holds per-id sleeps to shuffle resolution order.
    """

    def __init__(
        self,
        listing: Any = None,
        graphql: Optional[Dict[str, Any]] = None,
        delays: Optional[Dict[str, float]] = None,
    ) -> None:
        self.listing = listing if listing is not None else {"bugs": []}
        self.graphql = graphql or {}
        self.delays = delays or {}
        self.listing_calls: List[Dict[str, Any]] = []
        self.graphql_calls: List[Dict[str, Any]] = []
        self.closed = False

    async def post_json(self, url, data=None, *, json=True, **kwargs):
        self.listing_calls.append({"url": url, **kwargs})
        if isinstance(self.listing, Exception):
            raise self.listing
        return self.listing

    async def post_for_status(self, url, body, **kwargs):
        report_id = json.loads(body)["variables"]["id"]
        self.graphql_calls.append({"url": url, "id": report_id, "body": body, **kwargs})
        await asyncio.sleep(self.delays.get(report_id, 0))
        result = self.graphql.get(report_id, timeline_payload())
        if isinstance(result, Exception):
            raise result
        if isinstance(result, tuple):
            return result
        return 200, result

    async def close(self):
        self.closed = True


class FakeHost(PageHost):

    def __init__(self, http: FakeHttp, token: Optional[str] = "tok-123") -> None:
        self._http = http
        self.token = token
        self.messages: List[str] = []
        self.opened = False

    @property
    def http(self):
        return self._http

    async def open(self) -> None:
        self.opened = True

    def csrf_token(self) -> Optional[str]:
        return self.token

    def status(self, message: str, level: str = "INFO") -> None:
        self.messages.append(message)


@pytest.fixture
def templates() -> FetchTemplates:
    return FetchTemplates(metadata_template=METADATA_TEMPLATE, timeline_template=TIMELINE_TEMPLATE)
