"""Tests for startup validation and the tick loop."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from netzcam.errors import SnapshotDirectoryError, StartupValidationError
from netzcam.models.enums import SourceOutcome
from netzcam.models.source import SourceRef
from netzcam.pipeline import PollScheduler, SnapshotSaver, fetch_markers
from tests.netzcam.conftest import FakeClock
from tests.netzcam.mocks import MockFetcher


def _files(output_dir: Path, name: str) -> list[str]:
    source_dir = output_dir / name
    if not source_dir.exists():
        return []
    return sorted(p.name for p in source_dir.iterdir())


@pytest.mark.asyncio
async def test_fetch_markers_needs_only_a_fetcher(mock_fetcher: MockFetcher) -> None:
    """Markers are fetched for each source without any saver or scheduler state."""
    # Given: One published marker and one missing source
    mock_fetcher.set_marker("demo", "cam1", "t1")
    sources = [SourceRef(project="demo", name="cam1"), SourceRef(project="demo", name="cam2")]

    # When: Fetching markers
    results = await fetch_markers(mock_fetcher, sources)

    # Then: Results are keyed by source name, in order, with no image requests
    assert list(results) == ["cam1", "cam2"]
    assert results["cam1"].value == "t1"
    assert results["cam2"].http_status == 404
    assert mock_fetcher.image_calls("demo", "cam1") == 0


class TestStartupValidation:
    """Tests for validate_sources."""

    @pytest.mark.asyncio
    async def test_all_reachable_initializes_state(
        self, make_scheduler, mock_fetcher: MockFetcher
    ) -> None:
        """Every source answering creates one empty state per source."""
        # Given: Both cameras publish a marker
        mock_fetcher.set_marker("demo", "cam1", "t1")
        mock_fetcher.set_marker("demo", "cam2", "t9")
        scheduler = make_scheduler()

        # When: Validating
        results = await scheduler.validate_sources()

        # Then: States exist and are empty; nothing downloaded
        assert set(results) == {"cam1", "cam2"}
        assert set(scheduler.states) == {"cam1", "cam2"}
        assert all(s.last_marker is None and s.last_change_at is None for s in scheduler.states.values())
        assert mock_fetcher.image_calls("demo", "cam1") == 0

    @pytest.mark.asyncio
    async def test_any_unreachable_source_fails(
        self, make_scheduler, mock_fetcher: MockFetcher, output_dir: Path
    ) -> None:
        """One missing marker fails startup and names the source."""
        mock_fetcher.set_marker("demo", "cam1", "t1")
        scheduler = make_scheduler()

        with pytest.raises(StartupValidationError) as exc_info:
            await scheduler.validate_sources()

        assert exc_info.value.failed_sources == ["cam2"]
        assert "Invalid project or name" in str(exc_info.value)
        assert scheduler.states == {}
        assert list(output_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_empty_marker_fails(self, make_scheduler, mock_fetcher: MockFetcher) -> None:
        """An empty marker body counts as unreachable at startup."""
        mock_fetcher.set_marker("demo", "cam1", "")
        mock_fetcher.set_marker("demo", "cam2", "t1")

        with pytest.raises(StartupValidationError) as exc_info:
            await make_scheduler().validate_sources()

        assert exc_info.value.failed_sources == ["cam1"]

    @pytest.mark.asyncio
    async def test_run_fails_before_polling(
        self, make_scheduler, mock_fetcher: MockFetcher, output_dir: Path
    ) -> None:
        """run() raises before the first tick and creates no source directories."""
        scheduler = make_scheduler()

        with pytest.raises(StartupValidationError):
            await scheduler.run()

        assert scheduler.tick_count == 0
        assert list(output_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_tick_requires_validation(self, make_scheduler) -> None:
        """Ticking without validation is a programming error."""
        with pytest.raises(RuntimeError):
            await make_scheduler().tick()


class TestTick:
    """Tests for change detection across ticks."""

    @pytest.mark.asyncio
    async def test_end_to_end_two_cameras(
        self, make_scheduler, mock_fetcher: MockFetcher, output_dir: Path
    ) -> None:
        """cam1 saves t1 once; cam2 being unavailable does not affect it."""
        # Given: Startup sees both cameras, then cam2 goes away
        mock_fetcher.set_marker("demo", "cam1", "t1")
        mock_fetcher.set_marker("demo", "cam2", "x", None)
        mock_fetcher.set_image("demo", "cam1", b"img-t1")
        scheduler = make_scheduler()
        await scheduler.validate_sources()

        # When: Tick 1
        report = await scheduler.tick()

        # Then: cam1 saved, cam2 skipped without a write
        assert report.outcomes == {
            "cam1": SourceOutcome.SAVED,
            "cam2": SourceOutcome.UNAVAILABLE,
        }
        assert (output_dir / "cam1" / "t1.jpg").read_bytes() == b"img-t1"
        assert report.saved == ["cam1"]
        assert report.summary() == "unavailable=1, saved=1"
        assert _files(output_dir, "cam2") == []
        assert mock_fetcher.image_calls("demo", "cam2") == 0

        # When: Tick 2 returns the same marker for cam1
        report = await scheduler.tick()

        # Then: No image fetch for cam1
        assert report.outcomes["cam1"] is SourceOutcome.UNCHANGED
        assert report.saved == []
        assert mock_fetcher.image_calls("demo", "cam1") == 1
        assert _files(output_dir, "cam1") == ["t1.jpg"]

    @pytest.mark.asyncio
    async def test_unchanged_marker_never_refetches(
        self, make_scheduler, mock_fetcher: MockFetcher, output_dir: Path
    ) -> None:
        """A marker that never changes is downloaded exactly once."""
        mock_fetcher.set_marker("demo", "cam1", "same")
        mock_fetcher.set_image("demo", "cam1", b"img")
        scheduler = make_scheduler(names=["cam1"])
        await scheduler.validate_sources()

        for _ in range(5):
            await scheduler.tick()

        assert mock_fetcher.image_calls("demo", "cam1") == 1
        assert _files(output_dir, "cam1") == ["same.jpg"]

    @pytest.mark.asyncio
    async def test_each_change_writes_one_file(
        self, make_scheduler, mock_fetcher: MockFetcher, output_dir: Path, clock: FakeClock
    ) -> None:
        """C marker changes over N ticks produce exactly C files."""
        # Given: Startup marker, then 6 ticks with 3 distinct markers
        mock_fetcher.set_marker(
            "demo", "cam1", "boot", "2024-01-01 12:00", "2024-01-01 12:00", "2024-01-01 12:10",
            "2024-01-01 12:10", "2024-01-01 12:20", "2024-01-01 12:20",
        )
        mock_fetcher.set_image("demo", "cam1", b"img")
        scheduler = make_scheduler(names=["cam1"])
        await scheduler.validate_sources()

        # When: Running six ticks
        for _ in range(6):
            await scheduler.tick()
            clock.advance(minutes=5)

        # Then: Three files, three image fetches
        assert mock_fetcher.image_calls("demo", "cam1") == 3
        assert _files(output_dir, "cam1") == [
            "2024_01_01_12_00.jpg",
            "2024_01_01_12_10.jpg",
            "2024_01_01_12_20.jpg",
        ]

    @pytest.mark.asyncio
    async def test_failed_image_consumes_change(
        self, make_scheduler, mock_fetcher: MockFetcher, output_dir: Path
    ) -> None:
        """State advances before the download, so a failed image is not retried."""
        # Given: Image unavailable on the first attempt only
        mock_fetcher.set_marker("demo", "cam1", "t1")
        mock_fetcher.set_image("demo", "cam1", None, b"img")
        scheduler = make_scheduler(names=["cam1"])
        await scheduler.validate_sources()

        # When: Two ticks with the same marker
        first = await scheduler.tick()
        second = await scheduler.tick()

        # Then: The change was consumed by the failed attempt
        assert first.outcomes["cam1"] is SourceOutcome.IMAGE_UNAVAILABLE
        assert second.outcomes["cam1"] is SourceOutcome.UNCHANGED
        assert scheduler.states["cam1"].last_marker == "t1"
        assert mock_fetcher.image_calls("demo", "cam1") == 1
        assert _files(output_dir, "cam1") == []

    @pytest.mark.asyncio
    async def test_unavailable_tick_keeps_state(
        self, make_scheduler, mock_fetcher: MockFetcher, clock: FakeClock
    ) -> None:
        """A failed marker fetch between identical markers triggers nothing."""
        mock_fetcher.set_marker("demo", "cam1", "t1", "t1", None, "t1")
        mock_fetcher.set_image("demo", "cam1", b"img")
        scheduler = make_scheduler(names=["cam1"])
        await scheduler.validate_sources()

        outcomes = []
        for _ in range(3):
            outcomes.append((await scheduler.tick()).outcomes["cam1"])

        assert outcomes == [
            SourceOutcome.SAVED,
            SourceOutcome.UNAVAILABLE,
            SourceOutcome.UNCHANGED,
        ]
        assert mock_fetcher.image_calls("demo", "cam1") == 1

    @pytest.mark.asyncio
    async def test_elapsed_time_logged_on_second_change(
        self,
        make_scheduler,
        mock_fetcher: MockFetcher,
        clock: FakeClock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """The second save reports time since the first change."""
        mock_fetcher.set_marker("demo", "cam1", "t0", "t1", "t2")
        mock_fetcher.set_image("demo", "cam1", b"img")
        scheduler = make_scheduler(names=["cam1"])
        await scheduler.validate_sources()

        with caplog.at_level("INFO"):
            await scheduler.tick()
            clock.advance(hours=1, minutes=2, seconds=3)
            await scheduler.tick()

        assert "Time since last image: 01:02:03" in caplog.text


class TestIsolation:
    """Tests for failure isolation between concurrently polled sources."""

    @pytest.mark.asyncio
    async def test_error_in_one_source_does_not_stop_other(
        self, make_scheduler, mock_fetcher: MockFetcher, output_dir: Path
    ) -> None:
        """An exception while polling cam1 is logged; cam2 still saves."""
        mock_fetcher.set_marker("demo", "cam1", "t1", RuntimeError("boom"))
        mock_fetcher.set_marker("demo", "cam2", "t1")
        mock_fetcher.set_image("demo", "cam2", b"img")
        scheduler = make_scheduler()
        await scheduler.validate_sources()

        report = await scheduler.tick()

        assert report.outcomes == {
            "cam1": SourceOutcome.FAILED,
            "cam2": SourceOutcome.SAVED,
        }
        assert _files(output_dir, "cam2") == ["t1.jpg"]

    @pytest.mark.asyncio
    async def test_sources_are_fetched_concurrently(
        self, make_scheduler, mock_fetcher: MockFetcher
    ) -> None:
        """A slow source does not serialize the others within a tick."""
        # Given: Each marker fetch takes 0.2s
        mock_fetcher.set_marker("demo", "cam1", "t1")
        mock_fetcher.set_marker("demo", "cam2", "t1")
        mock_fetcher.set_marker("demo", "cam3", "t1")
        for name in ("cam1", "cam2", "cam3"):
            mock_fetcher.set_image("demo", name, b"img")
        scheduler = make_scheduler(names=["cam1", "cam2", "cam3"])
        await scheduler.validate_sources()
        mock_fetcher.delay_s = 0.2

        # When: Ticking
        report = await scheduler.tick()

        # Then: Duration is close to one fetch round trip (marker + image), not three
        assert report.count(SourceOutcome.SAVED) == 3
        assert report.saved == ["cam1", "cam2", "cam3"]
        assert report.duration_s < 1.0

    @pytest.mark.asyncio
    async def test_directory_error_is_raised_after_tick(
        self, tmp_path: Path, mock_fetcher: MockFetcher, clock: FakeClock
    ) -> None:
        """A directory that cannot be created is fatal, but other sources finish first."""
        # Given: cam1's directory name is taken by a file
        output_dir = tmp_path / "out"
        output_dir.mkdir()
        (output_dir / "cam1").write_text("not a dir")
        mock_fetcher.set_marker("demo", "cam1", "t1")
        mock_fetcher.set_marker("demo", "cam2", "t1")
        mock_fetcher.set_image("demo", "cam1", b"img")
        mock_fetcher.set_image("demo", "cam2", b"img")
        scheduler = PollScheduler(
            "demo",
            ["cam1", "cam2"],
            mock_fetcher,
            SnapshotSaver(output_dir, mock_fetcher),
            interval_s=0.01,
            clock=clock,
        )
        await scheduler.validate_sources()

        # When / Then: Tick raises, cam2 still saved its image
        with pytest.raises(SnapshotDirectoryError):
            await scheduler.tick()
        assert _files(output_dir, "cam2") == ["t1.jpg"]


class TestRunLoop:
    """Tests for the unbounded loop and its stop hook."""

    @pytest.mark.asyncio
    async def test_stop_ends_loop_at_tick_boundary(
        self, make_scheduler, mock_fetcher: MockFetcher
    ) -> None:
        """stop() makes run() return after the current wait."""
        mock_fetcher.set_marker("demo", "cam1", "t1")
        mock_fetcher.set_image("demo", "cam1", b"img")
        scheduler = make_scheduler(names=["cam1"])

        task = asyncio.create_task(scheduler.run())
        while scheduler.tick_count < 3:
            await asyncio.sleep(0.01)
        scheduler.stop()
        await asyncio.wait_for(task, timeout=2.0)

        assert scheduler.tick_count >= 3
        assert mock_fetcher.image_calls("demo", "cam1") == 1

    @pytest.mark.asyncio
    async def test_ticks_do_not_overlap(self, mock_fetcher: MockFetcher, output_dir: Path) -> None:
        """Marker fetches of tick k+1 never start before tick k finished."""
        mock_fetcher.set_marker("demo", "cam1", "t1")
        mock_fetcher.set_image("demo", "cam1", b"img")
        mock_fetcher.delay_s = 0.05
        scheduler = PollScheduler(
            "demo",
            ["cam1"],
            mock_fetcher,
            SnapshotSaver(output_dir, mock_fetcher),
            interval_s=0.0001,
        )

        in_flight = 0
        max_in_flight = 0
        original = mock_fetcher.fetch_text

        async def tracking_fetch_text(url: str):
            nonlocal in_flight, max_in_flight
            in_flight += 1
            max_in_flight = max(max_in_flight, in_flight)
            try:
                return await original(url)
            finally:
                in_flight -= 1

        mock_fetcher.fetch_text = tracking_fetch_text  # type: ignore[method-assign]

        task = asyncio.create_task(scheduler.run())
        while scheduler.tick_count < 3:
            await asyncio.sleep(0.01)
        scheduler.stop()
        await asyncio.wait_for(task, timeout=2.0)

        assert max_in_flight == 1
