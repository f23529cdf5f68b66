"""Netzcam snapshot scraper."""

__version__ = "0.1.0"

# Export commonly used types
from netzcam.errors import ScraperError, StartupValidationError
from netzcam.models.config import ScraperConfig
from netzcam.models.fetch import FetchResult
from netzcam.models.source import SourceRef, SourceState

__all__ = [
    "FetchResult",
    "ScraperConfig",
    "ScraperError",
    "SourceRef",
    "SourceState",
    "StartupValidationError",
    "__version__",
]
