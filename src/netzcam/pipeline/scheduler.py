"""Poll scheduler: startup validation and the tick loop."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType

from netzcam.errors import SnapshotDirectoryError, StartupValidationError
from netzcam.interfaces import Fetcher
from netzcam.logging_setup import set_source_name
from netzcam.models.enums import ChangeKind, SourceOutcome
from netzcam.models.fetch import FetchResult
from netzcam.models.source import SourceRef, SourceState
from netzcam.pipeline.detector import detect_change
from netzcam.pipeline.saver import SnapshotSaver
from netzcam.sources.urls import urls_for

logger = logging.getLogger(__name__)


async def fetch_markers(
    fetcher: Fetcher, sources: Sequence[SourceRef]
) -> dict[str, FetchResult[str]]:
    """GET every source's marker text concurrently, keyed by source name."""
    results = await asyncio.gather(
        *(fetcher.fetch_text(urls_for(source).text_url) for source in sources)
    )
    return {source.name: result for source, result in zip(sources, results)}


@dataclass(frozen=True)
class TickReport:
    """Per-source outcomes of one completed tick."""

    number: int
    outcomes: dict[str, SourceOutcome] = field(default_factory=dict)
    duration_s: float = 0.0

    def count(self, outcome: SourceOutcome) -> int:
        return sum(1 for value in self.outcomes.values() if value is outcome)

    @property
    def saved(self) -> list[str]:
        return [name for name, value in self.outcomes.items() if value is SourceOutcome.SAVED]

    def summary(self) -> str:
        parts = [f"{outcome}={self.count(outcome)}" for outcome in SourceOutcome if self.count(outcome)]
        return ", ".join(parts) or "no sources"


class PollScheduler:
    """Polls every source once per tick and saves images whose marker changed.

    Within a tick each source runs as its own task (marker fetch, change
    detection, conditional save); the tick completes when all of them have
    finished. Ticks never overlap: the next one starts `interval_s` seconds
    after the previous one completed.
    """

    def __init__(
        self,
        project: str,
        source_names: list[str],
        fetcher: Fetcher,
        saver: SnapshotSaver,
        *,
        interval_s: float = 10.0,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.project = project
        self.sources = [SourceRef(project=project, name=name) for name in source_names]
        self.interval_s = float(interval_s)
        self._fetcher = fetcher
        self._saver = saver
        self._clock = clock
        self._states: dict[str, SourceState] = {}
        self._validated = False
        self._tick_count = 0
        self._stop_event = asyncio.Event()

    @property
    def states(self) -> Mapping[str, SourceState]:
        """Read-only view of per-source state, keyed by source name."""
        return MappingProxyType(self._states)

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def stop(self) -> None:
        """Request the loop to exit at the next tick boundary."""
        if not self._stop_event.is_set():
            logger.info("Stop requested, finishing current tick")
        self._stop_event.set()

    async def run(self) -> None:
        """Validate all sources, then poll until stopped.

        Raises:
            StartupValidationError: If any source is unreachable at startup
            SnapshotDirectoryError: If a per-source directory cannot be created
        """
        await self.validate_sources()
        logger.info(
            "Polling %d source(s) of project %s every %ss",
            len(self.sources),
            self.project,
            self.interval_s,
        )

        while not self._stop_event.is_set():
            report = await self.tick()
            logger.debug(
                "Tick %d finished in %.2fs: %s",
                report.number,
                report.duration_s,
                report.summary(),
            )

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_s)
            except asyncio.TimeoutError:
                pass  # Normal - just means interval elapsed

        logger.info("Poll loop exited after %d tick(s)", self._tick_count)

    async def validate_sources(self) -> dict[str, FetchResult[str]]:
        """Fetch every marker once and fail fast if any source is unreachable.

        Per-source state is only created once every source has answered, so
        the loop never starts with a partially initialized source set.
        """
        checked = await self.fetch_markers()

        failed = [name for name, result in checked.items() if not result.ok or not result.value]
        for name in failed:
            logger.error(
                "Startup check failed for %s: %s",
                name,
                checked[name].describe(),
                extra={"source_name": name, "url": checked[name].url},
            )
        if failed:
            raise StartupValidationError(self.project, failed)

        self._states = {source.name: SourceState() for source in self.sources}
        self._validated = True
        logger.info("Startup check passed for %s", ", ".join(checked))
        return checked

    async def fetch_markers(self) -> dict[str, FetchResult[str]]:
        """Fetch the current marker of every source concurrently, without touching state."""
        return await fetch_markers(self._fetcher, self.sources)

    async def tick(self) -> TickReport:
        """Run one fan-out/fan-in pass over all sources.

        Raises:
            SnapshotDirectoryError: After all sources of the tick have finished,
                if any of them could not create its output directory
        """
        if not self._validated:
            raise RuntimeError("tick() called before validate_sources()")

        self._tick_count += 1
        started = time.monotonic()
        logger.debug("Polling sources (tick %d)", self._tick_count)

        results = await asyncio.gather(
            *(self._poll_source(source) for source in self.sources),
            return_exceptions=True,
        )

        outcomes: dict[str, SourceOutcome] = {}
        fatal: SnapshotDirectoryError | None = None
        for source, result in zip(self.sources, results):
            if isinstance(result, SourceOutcome):
                outcomes[source.name] = result
                continue
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, SnapshotDirectoryError):
                fatal = fatal or result
                outcomes[source.name] = SourceOutcome.FAILED
                continue
            logger.error(
                "Unexpected error polling %s: %s",
                source.name,
                result,
                exc_info=result,
            )
            outcomes[source.name] = SourceOutcome.FAILED

        report = TickReport(
            number=self._tick_count,
            outcomes=outcomes,
            duration_s=time.monotonic() - started,
        )
        if fatal is not None:
            raise fatal
        return report

    async def _poll_source(self, source: SourceRef) -> SourceOutcome:
        # Runs in its own task, so the log context and state slot stay per source.
        set_source_name(source.name)
        state = self._states[source.name]

        marker = await self._fetcher.fetch_text(urls_for(source).text_url)
        decision = detect_change(state, marker, self._clock())
        if decision.kind is ChangeKind.UNCHANGED:
            return SourceOutcome.UNCHANGED
        if not decision.should_save:
            return SourceOutcome.UNAVAILABLE

        assert decision.marker is not None
        return await self._saver.save(source, decision.marker, decision.elapsed)
