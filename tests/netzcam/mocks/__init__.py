"""Mock implementations for testing."""

from tests.netzcam.mocks.fetcher import MockFetcher

__all__ = [
    "MockFetcher",
]
