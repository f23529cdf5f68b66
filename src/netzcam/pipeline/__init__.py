"""Change detection, snapshot saving and the poll loop."""

from netzcam.pipeline.detector import ChangeDecision, detect_change, format_elapsed
from netzcam.pipeline.saver import SnapshotSaver, sanitize_marker, snapshot_filename
from netzcam.pipeline.scheduler import PollScheduler, TickReport, fetch_markers

__all__ = [
    "ChangeDecision",
    "PollScheduler",
    "SnapshotSaver",
    "TickReport",
    "detect_change",
    "fetch_markers",
    "format_elapsed",
    "sanitize_marker",
    "snapshot_filename",
]
