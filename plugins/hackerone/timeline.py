"""
Report timelines over GraphQL, fetched in paced concurrent batches.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Dict, List, Sequence

from core.infra.batch import iter_batched, run_batched
from core.infra.http import HttpClient
from plugins.hackerone.errors import QueryError
from plugins.hackerone.models import NA, ActivityRecord, FetchTemplates, ReportMetadata
from plugins.hackerone.token import DEFAULT_TOKEN_TIMEOUT_S, TokenSupplier

logger = logging.getLogger(__name__)

GRAPHQL_PATH = "/graphql"
PLACEHOLDERS = ("[report_id]", "[reportId]")
BATCH_PAUSE_S = 0.12


def fill_template(template: str, report_id: Any) -> str:
    out = template
    for placeholder in PLACEHOLDERS:
        out = out.replace(placeholder, str(report_id))
    return out


def _dig(obj: Any, *path: Any) -> Any:
    """Follow dict keys / list indexes, returning ``None`` at the first gap."""
    for step in path:
        if isinstance(step, int):
            if not isinstance(obj, list) or len(obj) <= step:
                return None
        elif not isinstance(obj, dict):
            return None
        obj = obj[step] if isinstance(step, int) else obj.get(step)
    return obj


async def post_graphql(http: HttpClient, body: str, token: str) -> Dict[str, Any]:
    status, payload = await http.post_for_status(
        GRAPHQL_PATH,
        body,
        headers={
            "Content-Type": "application/json",
            "X-Csrf-Token": token,
            "Accept": "application/json",
        },
    )
    if not isinstance(payload, dict):
        payload = {}

    errors = payload.get("errors")
    if not 200 <= status < 300 or errors:
        logger.error("GraphQL errors: %s", errors or status)
        message = _dig(errors, 0, "message") or f"GraphQL status {status}"
        raise QueryError(message, status=status)
    return payload


def _text(value: Any) -> str:
    return str(value) if value else NA


def extract_timeline(payload: Dict[str, Any], report_id: Any) -> List[ActivityRecord]:
    edges = _dig(payload, "data", "reports", "nodes", 0, "activities", "edges") or []

    records: List[ActivityRecord] = []
    for edge in edges:
        node = _dig(edge, "node")
        if not isinstance(node, dict):
            node = {}
        internal = node.get("internal")
        records.append(
            ActivityRecord(
                report_id=str(report_id),
                action_type=_text(node.get("type")),
                actor=_text(_dig(node, "actor", "username")),
                created_at=_text(node.get("created_at")),
                internal=internal if isinstance(internal, bool) else None,
            )
        )
    return records


def extract_metadata(payload: Dict[str, Any]) -> ReportMetadata:
    node = _dig(payload, "data", "reports", "edges", 0, "node") or {}
    fields = {
        "status": node.get("substate"),
        "researcher": _dig(node, "reporter", "username"),
        "title": node.get("title"),
        "program_name": _dig(node, "team", "name"),
    }
    return ReportMetadata(**{k: _text(v) for k, v in fields.items()})


async def fetch_one(
    http: HttpClient,
    report_id: str,
    token: str,
    templates: FetchTemplates,
) -> List[ActivityRecord]:
    body = fill_template(templates.timeline_template, report_id)
    payload = await post_graphql(http, body, token)
    records = extract_timeline(payload, report_id)
    logger.debug("Report %s – %d activities", report_id, len(records))
    return records


async def fetch_metadata(
    http: HttpClient,
    report_id: str,
    token: str,
    templates: FetchTemplates,
) -> ReportMetadata:
    # Not part of the CSV output.
    body = fill_template(templates.metadata_template, report_id)
    return extract_metadata(await post_graphql(http, body, token))


def _timeline_worker(http: HttpClient, token: str, templates: FetchTemplates):
    async def worker(report_id: str) -> List[ActivityRecord]:
        return await fetch_one(http, report_id, token, templates)
    return worker


async def iter_scrape_in_batches(
    http: HttpClient,
    report_ids: Sequence[str],
    batch_size: int,
    templates: FetchTemplates,
    tokens: TokenSupplier,
    *,
    pause_s: float = BATCH_PAUSE_S,
    token_timeout_s: float = DEFAULT_TOKEN_TIMEOUT_S,
) -> AsyncIterator[List[ActivityRecord]]:
    """Yield one flattened record list per batch of reports."""
    token = await tokens.await_token(token_timeout_s)
    worker = _timeline_worker(http, token, templates)
    async for rows in iter_batched(report_ids, worker, batch_size=batch_size, pause_s=pause_s):
        yield rows


async def scrape_in_batches(
    http: HttpClient,
    report_ids: Sequence[str],
    batch_size: int,
    templates: FetchTemplates,
    tokens: TokenSupplier,
    *,
    pause_s: float = BATCH_PAUSE_S,
    token_timeout_s: float = DEFAULT_TOKEN_TIMEOUT_S,
) -> List[ActivityRecord]:
    """Fetch every report's timeline; the token is awaited once, before any fetch."""
    token = await tokens.await_token(token_timeout_s)
    worker = _timeline_worker(http, token, templates)
    return await run_batched(report_ids, worker, batch_size=batch_size, pause_s=pause_s)
