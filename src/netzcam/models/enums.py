"""Centralized enums for type safety and IDE support."""

from enum import StrEnum


class ChangeKind(StrEnum):
    """Change detector verdict for one freshly fetched marker."""

    UNAVAILABLE = "unavailable"
    EMPTY = "empty"
    UNCHANGED = "unchanged"
    CHANGED = "changed"


class SourceOutcome(StrEnum):
    """What happened to one source during one tick."""

    UNAVAILABLE = "unavailable"
    UNCHANGED = "unchanged"
    SAVED = "saved"
    IMAGE_UNAVAILABLE = "image_unavailable"
    WRITE_FAILED = "write_failed"
    FAILED = "failed"
