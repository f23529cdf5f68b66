"""aiohttp-backed fetch primitive."""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from netzcam.interfaces import Fetcher
from netzcam.models.config import DEFAULT_USER_AGENT
from netzcam.models.fetch import FetchResult

logger = logging.getLogger(__name__)

_SUCCESS_STATUS = 200


class HttpFetcher(Fetcher):
    """Fetches marker text and images over one shared aiohttp session.

    Every call is a single GET. Only HTTP 200 counts as success; any other
    status, transport error or timeout is returned as an unavailable result.
    """

    def __init__(
        self,
        *,
        timeout_s: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._timeout_s = timeout_s
        self._headers = {"User-Agent": user_agent}
        self._session = session
        self._owns_session = session is None
        self._shutdown_called = False

    async def fetch_text(self, url: str) -> FetchResult[str]:
        """GET `url` and decode the body as text."""
        return await self._fetch(url, binary=False)

    async def fetch_bytes(self, url: str) -> FetchResult[bytes]:
        """GET `url` and return the raw payload."""
        return await self._fetch(url, binary=True)

    async def shutdown(self, timeout: float | None = None) -> None:
        """Cleanup resources - close HTTP session."""
        _ = timeout
        if self._shutdown_called:
            return
        self._shutdown_called = True

        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def _fetch(self, url: str, *, binary: bool) -> FetchResult:
        if self._shutdown_called:
            raise RuntimeError("Fetcher has been shut down")

        session = await self._get_session()
        try:
            async with session.get(url, headers=self._headers) as response:
                if response.status != _SUCCESS_STATUS:
                    logger.debug("GET %s returned HTTP %d", url, response.status)
                    return FetchResult.unavailable(url, http_status=response.status)
                if binary:
                    body: str | bytes = await response.read()
                else:
                    # Undecodable bytes become U+FFFD and are sanitized away later.
                    body = await response.text(errors="replace")
        except asyncio.TimeoutError:
            logger.debug("GET %s timed out after %.1fs", url, self._timeout_s)
            return FetchResult.unavailable(url, error="timeout")
        except (aiohttp.ClientError, ValueError) as exc:
            # ValueError covers malformed URLs.
            logger.debug("GET %s failed: %s", url, exc)
            return FetchResult.unavailable(url, error=f"{type(exc).__name__}: {exc}")

        return FetchResult.success(url, body, http_status=response.status)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session
