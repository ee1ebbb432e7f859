"""
CSV rendering and output naming for activity exports.

Every data field is quoted, header included as a bare line, rows separated
by ``\\n`` with no trailing newline.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from pathlib import Path
from typing import Any, Iterable, Sequence, Union

from plugins.hackerone.models import ActivityRecord

logger = logging.getLogger(__name__)

CSV_HEADER = ("report_id", "action_type", "actor_username", "created_at")

_UNSAFE_SCOPE_CHARS = re.compile(r"[^a-z0-9_-]", re.IGNORECASE)


def _csv_line(values: Sequence[Any]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(["" if v is None else str(v) for v in values])
    return buf.getvalue()[:-1]


def actions_to_csv(records: Iterable[ActivityRecord]) -> str:
    lines = [",".join(CSV_HEADER)]
    for r in records:
        lines.append(_csv_line([
            getattr(r, "report_id", None),
            getattr(r, "action_type", None),
            getattr(r, "actor", None),
            getattr(r, "created_at", None),
        ]))
    return "\n".join(lines)


def safe_scope(inbox: str) -> str:
    return _UNSAFE_SCOPE_CHARS.sub("_", inbox)


def to_ddmmyy(date_str: str) -> str:
    y, m, d = date_str.split("-")
    return f"{d}-{m}-{y[2:]}"


def output_filename(inbox: str, start_date: str, end_date: str) -> str:
    return f"{safe_scope(inbox)}_{to_ddmmyy(start_date)}_{to_ddmmyy(end_date)}.csv"


def save_csv(text: str, filename: str, output_dir: Union[str, Path] = "output") -> Path:
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / filename
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write(text)
    logger.info("Wrote %s (%d bytes)", path, len(text.encode("utf-8")))
    return path
