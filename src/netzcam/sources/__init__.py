"""Remote camera source helpers."""

from netzcam.sources.urls import build_source_urls, urls_for

__all__ = [
    "build_source_urls",
    "urls_for",
]
