"""Interface definitions for scraper components."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from netzcam.models.fetch import FetchResult


class Shutdownable(ABC):
    """Async shutdown interface for managed components."""

    @abstractmethod
    async def shutdown(self, timeout: float | None = None) -> None:
        """Release resources and stop background work."""
        raise NotImplementedError


class Fetcher(Shutdownable, ABC):
    """Single-attempt HTTP GET that reports failures as values.

    Implementations must never raise for remote failures (non-200 status,
    transport errors, timeouts); those come back as unavailable results.
    """

    @abstractmethod
    async def fetch_text(self, url: str) -> FetchResult[str]:
        """Fetch a text resource."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_bytes(self, url: str) -> FetchResult[bytes]:
        """Fetch a binary resource."""
        raise NotImplementedError
