"""Data models for the scraper."""

from netzcam.models.config import ScraperConfig
from netzcam.models.enums import ChangeKind, SourceOutcome
from netzcam.models.fetch import FetchResult
from netzcam.models.source import SourceRef, SourceState, SourceUrls

__all__ = [
    "ChangeKind",
    "FetchResult",
    "ScraperConfig",
    "SourceOutcome",
    "SourceRef",
    "SourceState",
    "SourceUrls",
]
