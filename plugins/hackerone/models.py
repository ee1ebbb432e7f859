"""
Data models for the HackerOne inbox scrape.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

NA = "N/A"

TRIGGER_TYPE = "FETCH_REPORT_IDS_FROM_INBOX"
DEFAULT_BATCH_SIZE = 5


class ActivityRecord(BaseModel):
    """One timeline event of one report."""
    report_id: str
    action_type: str = NA
    actor: str = NA
    created_at: str = NA
    internal: Optional[bool] = None  # None when the API left the field out


class ReportMetadata(BaseModel):
    status: str = NA
    researcher: str = NA
    title: str = NA
    program_name: str = NA


class FetchTemplates(BaseModel):
    """GraphQL request bodies with a ``[report_id]`` / ``[reportId]`` placeholder."""
    model_config = ConfigDict(frozen=True)

    metadata_template: str = ""
    timeline_template: str

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "FetchTemplates":
        """Templates may be given inline or as ``*_file`` paths."""
        def pick(key: str) -> str:
            if cfg.get(key):
                return cfg[key]
            path = cfg.get(f"{key}_file")
            return Path(path).read_text(encoding="utf-8") if path else ""

        return cls(
            metadata_template=pick("metadata_template"),
            timeline_template=pick("timeline_template"),
        )


class ScrapeRequest(BaseModel):
    """Everything one scrape run needs; fixed for the duration of the run."""
    model_config = ConfigDict(frozen=True)

    inbox: str = Field(min_length=1)
    start_date: str
    end_date: str
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)
    templates: FetchTemplates

    @field_validator("start_date", "end_date")
    @classmethod
    def _iso_date(cls, v: str) -> str:
        datetime.strptime(v, "%Y-%m-%d")
        return v

    @classmethod
    def from_message(cls, msg: Mapping[str, Any]) -> "ScrapeRequest":
        """Build a request from a ``FETCH_REPORT_IDS_FROM_INBOX`` trigger message."""
        return cls(
            inbox=msg.get("inbox", ""),
            start_date=msg.get("startDate", ""),
            end_date=msg.get("endDate", ""),
            batch_size=msg.get("batchSize") or DEFAULT_BATCH_SIZE,
            templates=FetchTemplates(
                metadata_template=msg.get("metadataTemplate") or "",
                timeline_template=msg.get("timelineTemplate", ""),
            ),
        )
