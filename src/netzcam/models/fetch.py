"""HTTP fetch result model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T", str, bytes)


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of a single GET.

    `value` is only set for HTTP 200. An empty body is a successful fetch with
    an empty value, which is distinct from an unavailable resource.
    """

    url: str
    value: T | None = None
    http_status: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.value is not None

    @classmethod
    def success(cls, url: str, value: T, http_status: int = 200) -> FetchResult[T]:
        return cls(url=url, value=value, http_status=http_status)

    @classmethod
    def unavailable(
        cls, url: str, *, http_status: int | None = None, error: str | None = None
    ) -> FetchResult[T]:
        return cls(url=url, http_status=http_status, error=error)

    def describe(self) -> str:
        """Short human-readable reason for logs."""
        if self.ok:
            return f"HTTP {self.http_status}" if self.value else "empty response"
        if self.http_status is not None:
            return f"HTTP {self.http_status}"
        return self.error or "unavailable"
