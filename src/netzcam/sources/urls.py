from __future__ import annotations

from netzcam.models.source import SourceRef, SourceUrls

NETZCAM_BASE_URL = "https://{project}.netzcam.net/out/{name}"
TEXT_SUFFIX = ".txt"
IMAGE_SUFFIX = ".jpg"


def build_source_urls(project: str, name: str) -> SourceUrls:
    """Derive the marker-text and image URLs published for one camera."""
    base = NETZCAM_BASE_URL.format(project=project, name=name)
    return SourceUrls(text_url=f"{base}{TEXT_SUFFIX}", image_url=f"{base}{IMAGE_SUFFIX}")


def urls_for(source: SourceRef) -> SourceUrls:
    return build_source_urls(source.project, source.name)
