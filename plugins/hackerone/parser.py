"""
ActivityNormalizer – pipeline stage 2 / 3.

Streams records through :func:`~plugins.hackerone.normalize.normalize_record`,
dropping filtered activity types and relabelling comments.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator

from core.interfaces import Transform
from plugins.hackerone.models import ActivityRecord
from plugins.hackerone.normalize import normalize_record

logger = logging.getLogger(__name__)


class ActivityNormalizer(Transform):

    name = "ActivityNormalizer"

    async def __call__(self, items: AsyncIterator[Any]) -> AsyncIterator[ActivityRecord]:
        seen = kept = 0
        async for item in items:
            if not isinstance(item, ActivityRecord):
                logger.debug("Skipping non-activity item %r", type(item).__name__)
                continue
            seen += 1
            out = normalize_record(item)
            if out is not None:
                kept += 1
                yield out
        logger.info("Normalized %d activities – %d kept, %d filtered", seen, kept, seen - kept)
