"""Shared pytest fixtures for netzcam tests."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add src to sys.path for imports
src_path = Path(__file__).parent.parent.parent / "src"
if str(src_path.resolve()) not in sys.path:
    sys.path.insert(0, str(src_path.resolve()))

import pytest

from netzcam.pipeline import PollScheduler, SnapshotSaver
from tests.netzcam.mocks import MockFetcher


class FakeClock:
    """Deterministic wall clock advanced explicitly by tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def mock_fetcher() -> MockFetcher:
    """Return a MockFetcher with nothing scripted."""
    return MockFetcher()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Return an existing, empty output root."""
    path = tmp_path / "out"
    path.mkdir()
    return path


@pytest.fixture
def make_scheduler(mock_fetcher: MockFetcher, output_dir: Path, clock: FakeClock):
    """Factory building a scheduler wired to the mock fetcher and a temp output root."""

    def _make(project: str = "demo", names: list[str] | None = None) -> PollScheduler:
        saver = SnapshotSaver(output_dir, mock_fetcher)
        return PollScheduler(
            project,
            names or ["cam1", "cam2"],
            mock_fetcher,
            saver,
            interval_s=0.01,
            clock=clock,
        )

    return _make
