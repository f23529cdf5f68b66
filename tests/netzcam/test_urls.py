"""Tests for remote URL derivation."""

from __future__ import annotations

from netzcam.models.source import SourceRef
from netzcam.sources.urls import build_source_urls, urls_for


def test_builds_marker_and_image_urls() -> None:
    """Both resources live under the project subdomain's /out/ path."""
    # Given / When: URLs for a project and camera
    urls = build_source_urls("demo", "cam1")

    # Then: Marker is .txt and image is .jpg
    assert urls.text_url == "https://demo.netzcam.net/out/cam1.txt"
    assert urls.image_url == "https://demo.netzcam.net/out/cam1.jpg"


def test_urls_for_source_ref_matches_builder() -> None:
    """urls_for derives the same URLs from a SourceRef."""
    source = SourceRef(project="alpine", name="north-face")

    assert urls_for(source) == build_source_urls("alpine", "north-face")


def test_identifiers_are_not_escaped() -> None:
    """Identifiers are opaque; malformed ones surface only as fetch failures."""
    urls = build_source_urls("demo", "cam 1")

    assert urls.text_url == "https://demo.netzcam.net/out/cam 1.txt"
