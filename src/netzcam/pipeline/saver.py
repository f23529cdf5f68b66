"""Snapshot download and persistence."""

from __future__ import annotations

import logging
import re
from datetime import timedelta
from pathlib import Path

from anyio import Path as AsyncPath

from netzcam.errors import SnapshotDirectoryError, SnapshotWriteError
from netzcam.interfaces import Fetcher
from netzcam.models.enums import SourceOutcome
from netzcam.models.source import SourceRef
from netzcam.pipeline.detector import format_elapsed
from netzcam.sources.urls import urls_for

logger = logging.getLogger(__name__)

SNAPSHOT_EXTENSION = ".jpg"
_NON_ALNUM = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def sanitize_marker(marker: str) -> str:
    """Replace every character outside [A-Za-z0-9] with an underscore."""
    return _NON_ALNUM.sub("_", marker)


def snapshot_filename(marker: str) -> str:
    return f"{sanitize_marker(marker)}{SNAPSHOT_EXTENSION}"


class SnapshotSaver:
    """Downloads the image for a changed marker and writes it under the output root.

    Layout is `<output_dir>/<source name>/<sanitized marker>.jpg`. An existing
    file with the same name is overwritten.
    """

    def __init__(self, output_dir: Path, fetcher: Fetcher) -> None:
        self.output_dir = Path(output_dir)
        self._fetcher = fetcher

    def source_dir(self, source_name: str) -> Path:
        return self.output_dir / source_name

    def snapshot_path(self, source_name: str, marker: str) -> Path:
        return self.source_dir(source_name) / snapshot_filename(marker)

    async def save(
        self, source: SourceRef, marker: str, elapsed: timedelta | None = None
    ) -> SourceOutcome:
        """Fetch and persist the current image of `source`.

        Raises:
            SnapshotDirectoryError: If the per-source directory cannot be created
        """
        image = await self._fetcher.fetch_bytes(urls_for(source).image_url)
        if not image.ok:
            logger.warning("No image (%s)", image.describe())
            return SourceOutcome.IMAGE_UNAVAILABLE
        assert image.value is not None

        await self._ensure_source_dir(source.name)

        dest = self.snapshot_path(source.name, marker)
        result = await self._write(source.name, dest, image.value)
        if isinstance(result, SnapshotWriteError):
            logger.error("%s: %s", result, result.cause, exc_info=result.cause)
            return SourceOutcome.WRITE_FAILED

        if elapsed is not None:
            logger.info("Saved %s Time since last image: %s", dest, format_elapsed(elapsed))
        else:
            logger.info("Saved %s", dest)
        return SourceOutcome.SAVED

    async def _ensure_source_dir(self, source_name: str) -> None:
        directory = AsyncPath(self.source_dir(source_name))
        try:
            await directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise SnapshotDirectoryError(source_name, str(directory), exc) from exc

    async def _write(self, source_name: str, dest: Path, data: bytes) -> Path | SnapshotWriteError:
        # Write next to the destination and rename so readers never see a partial image.
        tmp = AsyncPath(dest.with_name(f".{dest.name}.part"))
        try:
            await tmp.write_bytes(data)
            await tmp.replace(dest)
        except OSError as exc:
            try:
                await tmp.unlink(missing_ok=True)
            except OSError:
                logger.debug("Could not remove partial file %s", tmp)
            return SnapshotWriteError(source_name, str(dest), exc)
        return dest
