"""
Core interfaces for the scraper platform.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Optional

from .infra.http import HttpClient


class Transform(ABC):
    """Universal transform interface for plugin pipeline stages.

    This is the core abstraction that enables plugin chaining.
    Any stage in a pipeline implements this interface.
    """

    @abstractmethod
    async def __call__(
        self, items: AsyncIterator[Any]
    ) -> AsyncIterator[Any]:
        """Transform an async iterator of items to another async iterator."""
        ...


class Fetcher(Transform):
    """Abstract base class for data fetchers.

    Fetchers are specialized transforms that ignore their input and yield fetched items.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this fetcher."""
        pass

    @abstractmethod
    async def fetch(self) -> AsyncIterator[Any]:
        """Fetch items."""
        pass

    async def __call__(self, items: AsyncIterator[Any]) -> AsyncIterator[Any]:
        """Transform interface: ignore input stream and yield fetched items."""
        async for item in items:
            async for fetched in self.fetch():
                yield fetched
            break  # Only process one input item to trigger fetching


class Sink(Transform):
    """Abstract base class for data sinks.

    Sinks are specialized transforms that consume items and yield them unchanged.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this sink."""
        pass

    @abstractmethod
    async def handle(self, item: Any) -> None:
        """Handle an item."""
        pass

    async def flush(self) -> None:
        """Called once after the input stream is exhausted."""
        pass

    async def __call__(self, items: AsyncIterator[Any]) -> AsyncIterator[Any]:
        """Transform interface: handle items and pass them through."""
        async for item in items:
            await self.handle(item)
            yield item
        await self.flush()


class PageHost(ABC):
    """Capabilities the scraper borrows from the site it runs against.

    One concrete adapter per host is chosen at process start and injected
    into the stages that need it.
    """

    @property
    @abstractmethod
    def http(self) -> HttpClient:
        """Authenticated client rooted at the site."""
        pass

    @abstractmethod
    async def open(self) -> None:
        """Make the page state readable (load markup, start the session)."""
        pass

    async def close(self) -> None:
        await self.http.close()

    @abstractmethod
    def csrf_token(self) -> Optional[str]:
        """Read the anti-forgery token embedded in the page, if present."""
        pass

    @abstractmethod
    def status(self, message: str, level: str = "INFO") -> None:
        """Publish a human-readable progress message."""
        pass

    async def __aenter__(self) -> "PageHost":
        try:
            await self.open()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, *_) -> None:
        await self.close()
