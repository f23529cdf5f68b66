"""Source identity and per-source polling state."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from pydantic import BaseModel


class SourceUrls(BaseModel):
    """Remote resources published by one camera."""

    model_config = {"frozen": True}

    text_url: str
    image_url: str


class SourceRef(BaseModel):
    """One polled camera, identified by name within a project namespace."""

    model_config = {"frozen": True}

    project: str
    name: str


@dataclass(slots=True)
class SourceState:
    """Change-detection state for one source, owned by the scheduler."""

    last_marker: str | None = None
    last_change_at: datetime | None = None

    def elapsed_since_change(self, now: datetime) -> timedelta | None:
        """Time since the previous change, or None before the first change."""
        if self.last_change_at is None:
            return None
        return now - self.last_change_at

    def record_change(self, marker: str, now: datetime) -> None:
        self.last_marker = marker
        self.last_change_at = now
