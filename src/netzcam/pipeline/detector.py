"""Per-source marker change detection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from netzcam.models.enums import ChangeKind
from netzcam.models.fetch import FetchResult
from netzcam.models.source import SourceState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeDecision:
    kind: ChangeKind
    marker: str | None = None
    elapsed: timedelta | None = None

    @property
    def should_save(self) -> bool:
        return self.kind is ChangeKind.CHANGED


def detect_change(state: SourceState, result: FetchResult[str], now: datetime) -> ChangeDecision:
    """Compare a freshly fetched marker against the source state.

    On a change the state is advanced before any image download happens, so a
    failed download does not make the same marker look new on the next tick.
    An empty marker is skipped like an unavailable one: it cannot name a file.
    """
    if not result.ok:
        logger.warning("No marker text (%s)", result.describe())
        return ChangeDecision(ChangeKind.UNAVAILABLE)

    marker = result.value
    assert marker is not None
    if marker == "":
        logger.warning("Empty marker text at %s", result.url)
        return ChangeDecision(ChangeKind.EMPTY)

    if marker == state.last_marker:
        logger.debug("No new image")
        return ChangeDecision(ChangeKind.UNCHANGED, marker=marker)

    elapsed = state.elapsed_since_change(now)
    state.record_change(marker, now)
    return ChangeDecision(ChangeKind.CHANGED, marker=marker, elapsed=elapsed)


def format_elapsed(elapsed: timedelta) -> str:
    """Format a duration as HH:MM:SS.

    Hours carry the whole duration and never roll over at 24, so a camera
    that was silent for a day and an hour logs 25:00:00 rather than 01:00:00.
    """
    total = max(int(elapsed.total_seconds()), 0)
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
