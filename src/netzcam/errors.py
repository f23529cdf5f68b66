"""Error hierarchy for the scraper stages."""

from __future__ import annotations


class ScraperError(Exception):
    """Base exception for all scraper errors.

    Compatible with error-as-value pattern: instances can be returned as values
    instead of raised. Preserves stack traces via exception chaining.
    """

    def __init__(
        self, message: str, source_name: str | None = None, cause: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.source_name = source_name
        self.cause = cause
        self.__cause__ = cause


class StartupValidationError(ScraperError):
    """One or more sources did not publish marker text at startup."""

    def __init__(self, project: str, failed_sources: list[str]) -> None:
        super().__init__(
            f"Invalid project or name: project={project} sources={', '.join(failed_sources)}"
        )
        self.project = project
        self.failed_sources = failed_sources


class SnapshotDirectoryError(ScraperError):
    """Per-source output directory could not be created."""

    def __init__(self, source_name: str, directory: str, cause: Exception) -> None:
        super().__init__(
            f"Cannot create directory {directory} for {source_name}",
            source_name=source_name,
            cause=cause,
        )
        self.directory = directory


class SnapshotWriteError(ScraperError):
    """Snapshot file write failed."""

    def __init__(self, source_name: str, path: str, cause: Exception) -> None:
        super().__init__(
            f"Write failed for {source_name}: {path}",
            source_name=source_name,
            cause=cause,
        )
        self.path = path
