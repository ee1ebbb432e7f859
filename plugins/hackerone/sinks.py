"""
CsvExportSink – pipeline stage 3 / 3.

Buffers normalized activities and writes one CSV when the stream ends.
Nothing is written if an upstream stage raises.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, List, Optional, Union

from core.interfaces import PageHost, Sink
from plugins.hackerone.csv_export import actions_to_csv, output_filename, save_csv
from plugins.hackerone.models import ActivityRecord, ScrapeRequest

logger = logging.getLogger(__name__)


class CsvExportSink(Sink):

    name = "CsvExportSink"

    def __init__(
        self,
        *,
        request: Optional[ScrapeRequest] = None,
        inbox: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        output_dir: Union[str, Path, None] = None,
        host: Optional[PageHost] = None,
        **_: Any,
    ) -> None:
        if request is not None:
            inbox, start_date, end_date = request.inbox, request.start_date, request.end_date
        if not (inbox and start_date and end_date):
            raise ValueError("CsvExportSink needs inbox, start_date and end_date")
        self._filename = output_filename(inbox, start_date, end_date)
        self._output_dir = Path(output_dir or os.getenv("OUTPUT_DIR", "output"))
        self._host = host
        self._rows: List[ActivityRecord] = []
        self.path: Optional[Path] = None

    async def handle(self, item: Any) -> None:
        if isinstance(item, ActivityRecord):
            self._rows.append(item)

    async def flush(self) -> None:
        self.path = save_csv(actions_to_csv(self._rows), self._filename, self._output_dir)
        logger.info("Exported %d activities to %s", len(self._rows), self.path)
        if self._host is not None:
            self._host.status("CSV downloaded.")
