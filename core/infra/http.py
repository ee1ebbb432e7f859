"""
http.py – Async HTTP client built on *aiohttp* with smart retries,
          transparent 429 / 5xx back-off, a session-wide base URL and
          per-instance default headers (cookie, user-agent, ...).
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Mapping, Optional, Tuple

import aiohttp

logger = logging.getLogger(__name__)

RETRY_STATUSES: tuple[int, ...] = (429, 500, 502, 503, 504)


class HttpClient:
    """
    Thin wrapper over *aiohttp.ClientSession* adding:

    * a base URL so callers pass site-relative paths (``/graphql``)
    * global & per-request headers (session cookie lives in one place)
    * exponential back-off **with jitter** for 429 / 5xx / network errors
    * transparent parsing of *Retry-After* header
    * async context-manager support
    """

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 30.0,
        max_retries: int = 5,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        default_headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") if base_url else None
        self._external_session = session
        self._timeout = timeout
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._own_session: Optional[aiohttp.ClientSession] = None
        self._default_headers: Dict[str, str] = dict(default_headers or {})

    # ---------------------------------------------- #
    # Async context-manager
    async def __aenter__(self) -> "HttpClient":  # noqa: D401
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        await self.close()

    # ---------------------------------------------- #
    # Session management
    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._external_session:
            return self._external_session
        if self._own_session is None or self._own_session.closed:
            timeout = aiohttp.ClientTimeout(total=self._timeout)
            self._own_session = aiohttp.ClientSession(timeout=timeout)
        return self._own_session

    async def close(self) -> None:
        if self._own_session and not self._own_session.closed:
            await self._own_session.close()
            self._own_session = None

    # ---------------------------------------------- #
    # Internal helpers
    @staticmethod
    def _parse_retry_after(header_val: str | None) -> Optional[float]:
        """Return seconds given a Retry-After header value."""
        if not header_val:
            return None
        header_val = header_val.strip()
        # seconds
        if header_val.isdigit():
            return float(header_val)
        # HTTP-date
        try:
            retry_at = parsedate_to_datetime(header_val)
        except (TypeError, ValueError):
            return None
        if retry_at.tzinfo is None:
            retry_at = retry_at.replace(tzinfo=timezone.utc)
        return max(0.0, retry_at.timestamp() - time.time())

    def _merge_headers(self, extra: Mapping[str, str] | None) -> Dict[str, str]:
        merged: Dict[str, str] = {**self._default_headers}
        if extra:
            merged.update(extra)
        return merged

    def _url(self, url: str) -> str:
        if self._base_url and url.startswith("/"):
            return f"{self._base_url}{url}"
        return url

    def _backoff(self, attempt: int, retry_after_hdr: Optional[str]) -> float:
        retry_after_s = self._parse_retry_after(retry_after_hdr)
        if retry_after_s is not None:
            return retry_after_s
        exponential = min(self._base_delay * 2 ** (attempt - 1), self._max_delay)
        return exponential + random.uniform(0, self._base_delay)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        retry_for_status: tuple[int, ...] = RETRY_STATUSES,
        raise_for_status: bool = True,
        **kwargs,
    ) -> aiohttp.ClientResponse:
        """Perform a request with retries; returns *aiohttp.ClientResponse*.

        With ``raise_for_status=False`` a non-retryable error status (and the
        last retryable one) is handed back to the caller instead of raised,
        so the body can still be inspected.
        """
        session = await self._ensure_session()
        url = self._url(url)

        headers = self._merge_headers(kwargs.pop("headers", None))
        kwargs["headers"] = headers

        for attempt in range(1, self._max_retries + 1):
            try:
                resp = await session.request(method, url, **kwargs)
                if resp.status not in retry_for_status:
                    if raise_for_status:
                        resp.raise_for_status()
                    return resp

                if attempt == self._max_retries and not raise_for_status:
                    logger.error("HTTP %s %s gave %d after %d attempts", method, url, resp.status, attempt)
                    return resp

                # Retry on specific status codes
                resp.release()
                raise aiohttp.ClientResponseError(
                    resp.request_info,
                    resp.history,
                    status=resp.status,
                    message=f"retryable status {resp.status}",
                    headers=resp.headers,
                )
            except (aiohttp.ClientConnectionError, aiohttp.ClientResponseError) as e:
                if isinstance(e, aiohttp.ClientResponseError) and e.status not in retry_for_status:
                    logger.error("HTTP %s %s failed: %d %s", method, url, e.status, e.message)
                    raise
                # final attempt – re-raise
                if attempt == self._max_retries:
                    logger.error("HTTP %s %s failed after %d attempts: %s", method, url, attempt, e)
                    raise

                retry_after_hdr = (
                    e.headers.get("Retry-After")
                    if isinstance(e, aiohttp.ClientResponseError) and e.headers
                    else None
                )
                sleep_seconds = self._backoff(attempt, retry_after_hdr)

                logger.warning(
                    "HTTP %s %s failed (attempt %d/%d – will retry in %.1fs): %s",
                    method,
                    url,
                    attempt,
                    self._max_retries,
                    sleep_seconds,
                    str(e).splitlines()[0],
                )
                await asyncio.sleep(sleep_seconds)

        # Should never hit here
        raise RuntimeError("Unreachable retry loop")

    # ---------------------------------------------- #
    # Public helpers
    async def get_text(self, url: str, **kwargs) -> str:
        async with await self._request("GET", url, **kwargs) as resp:
            return await resp.text()

    async def post_json(
        self,
        url: str,
        data: Dict[str, Any] | Any = None,
        *,
        json: bool = True,
        **kwargs,
    ) -> Any:
        if json:
            kwargs["json"] = data
        else:
            kwargs["data"] = data
        async with await self._request("POST", url, **kwargs) as resp:
            return await resp.json(content_type=None)

    async def post_for_status(self, url: str, body: str | bytes, **kwargs) -> Tuple[int, Any]:
        """POST a pre-encoded *body*; return ``(status, parsed_json)`` without raising on status.

        A body that is not valid JSON parses as ``{}``.
        """
        kwargs["data"] = body
        async with await self._request("POST", url, raise_for_status=False, **kwargs) as resp:
            try:
                payload = await resp.json(content_type=None)
            except ValueError:
                logger.debug("Non-JSON body from %s (status %d)", url, resp.status)
                payload = {}
            return resp.status, payload

