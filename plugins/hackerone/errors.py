"""Error taxonomy for the inbox scrape.

``TokenNotFound``, ``DiscoveryHttpError`` and ``NoItemsFound`` end the run.
``QueryError`` is raised per report and absorbed by the batch runner.
"""

from __future__ import annotations

from typing import Optional


class ScrapeError(Exception):
    """Base class for everything the inbox scrape raises on purpose."""


class TokenNotFound(ScrapeError):
    def __init__(self, message: str = "CSRF token not found") -> None:
        super().__init__(message)


class DiscoveryHttpError(ScrapeError):
    def __init__(self, status: int) -> None:
        super().__init__(f"Inbox fetch failed ({status})")
        self.status = status


class NoItemsFound(ScrapeError):
    def __init__(self, inbox: str) -> None:
        super().__init__("No reports found")
        self.inbox = inbox


class QueryError(ScrapeError):
    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status
