"""
Inbox listing – resolves an inbox + date window into report ids.

Only the first page (up to ``PAGE_LIMIT`` reports) is requested; anything
past that is silently left out.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

import aiohttp

from core.infra.http import HttpClient
from plugins.hackerone.errors import DiscoveryHttpError

logger = logging.getLogger(__name__)

LISTING_PATH = "/bugs.json"
PAGE_LIMIT = 1000

# The endpoint has no "all" shortcut, every substate must be listed.
SUBSTATES = (
    "new",
    "informative",
    "pending-program-review",
    "needs-more-info",
    "triaged",
    "retesting",
    "duplicate",
    "not-applicable",
    "resolved",
    "spam",
)


def build_listing_params(inbox: str, start_date: str, end_date: str) -> List[Tuple[str, str]]:
    params = [
        ("organization_inbox_handle", inbox),
        ("view", "all"),
        ("start_date", start_date),
        ("end_date", end_date),
        ("sort_direction", "descending"),
        ("sort_type", "latest_activity"),
        ("limit", str(PAGE_LIMIT)),
        ("page", "1"),
        ("subject", "user"),
        ("report_id", "0"),
        ("text_query", ""),
    ]
    params.extend(("substates[]", s) for s in SUBSTATES)
    return params


def extract_report_ids(payload: Dict[str, Any]) -> List[str]:
    """Pull ``bugs[*].id`` out of a listing payload, deduplicated in first-seen order."""
    if not isinstance(payload, dict):
        return []
    bugs = payload.get("bugs") or []
    ids = (b.get("id") for b in bugs if isinstance(b, dict))
    return list(dict.fromkeys(str(i) for i in ids if i))


async def discover_ids(
    http: HttpClient,
    token: str,
    inbox: str,
    start_date: str,
    end_date: str,
) -> List[str]:
    logger.info("Fetching inbox report ids – %s (%s → %s)", inbox, start_date, end_date)
    try:
        payload = await http.post_json(
            LISTING_PATH,
            json=False,
            params=build_listing_params(inbox, start_date, end_date),
            headers={"Accept": "application/json", "X-CSRF-Token": token},
        )
    except aiohttp.ClientResponseError as exc:
        raise DiscoveryHttpError(exc.status) from exc

    ids = extract_report_ids(payload)
    logger.info("Inbox %s – %d unique report ids", inbox, len(ids))
    return ids
