"""
Trigger-message entry point: one ``FETCH_REPORT_IDS_FROM_INBOX`` message
runs one full scrape against the given host.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from core.interfaces import PageHost
from core.pipeline_orchestrator import drain
from plugins.hackerone.errors import ScrapeError
from plugins.hackerone.fetcher import InboxTimelineFetcher
from plugins.hackerone.models import TRIGGER_TYPE, ScrapeRequest
from plugins.hackerone.parser import ActivityNormalizer
from plugins.hackerone.sinks import CsvExportSink

logger = logging.getLogger(__name__)


async def run_scrape(
    request: ScrapeRequest,
    host: PageHost,
    *,
    output_dir: Union[str, Path, None] = None,
    **fetcher_kwargs: Any,
) -> Path:
    """Discover, fetch, normalize and export; returns the CSV path."""
    sink = CsvExportSink(request=request, output_dir=output_dir, host=host)
    await drain([
        InboxTimelineFetcher(request=request, host=host, **fetcher_kwargs),
        ActivityNormalizer(),
        sink,
    ])
    return sink.path


async def handle_message(
    msg: Mapping[str, Any],
    host: PageHost,
    *,
    output_dir: Union[str, Path, None] = None,
    **fetcher_kwargs: Any,
) -> Optional[Path]:
    """Run the scrape a trigger message asks for.

    Messages of any other type are ignored. Fatal errors are reported to the
    host's status sink and yield ``None``; no file is written in that case.
    """
    if not msg or msg.get("type") != TRIGGER_TYPE:
        return None

    logger.info("Inbox scrape request received: %s", {k: v for k, v in msg.items() if "Template" not in k})
    try:
        request = ScrapeRequest.from_message(msg)
        return await run_scrape(request, host, output_dir=output_dir, **fetcher_kwargs)
    except (ScrapeError, ValidationError) as e:
        logger.error("Inbox scrape failed: %s", e)
        host.status(f"Error: {e}", level="ERROR")
    except Exception as e:
        logger.error("Inbox scrape failed", exc_info=True)
        host.status(f"Error: {e}", level="ERROR")
    return None
