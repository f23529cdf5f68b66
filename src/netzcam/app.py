"""Main application that wires all components together."""

from __future__ import annotations

import asyncio
import logging
import signal
from pathlib import Path

from netzcam.config import ensure_output_dir
from netzcam.fetcher import HttpFetcher
from netzcam.interfaces import Fetcher
from netzcam.models.config import ScraperConfig
from netzcam.models.fetch import FetchResult
from netzcam.models.source import SourceRef
from netzcam.pipeline import PollScheduler, SnapshotSaver, fetch_markers

logger = logging.getLogger(__name__)


class Application:
    """Owns the shared HTTP session, the saver and the poll scheduler.

    Handles component creation, lifecycle, and graceful shutdown.
    """

    def __init__(self, config: ScraperConfig, fetcher: Fetcher | None = None) -> None:
        self._config = config
        self._fetcher = fetcher
        self._scheduler: PollScheduler | None = None
        self._shutdown_started = False

    @property
    def scheduler(self) -> PollScheduler | None:
        return self._scheduler

    async def run(self) -> None:
        """Run until a shutdown signal arrives.

        Raises:
            ConfigError: If the output directory is missing and may not be created
            StartupValidationError: If any source is unreachable at startup
        """
        config = self._config
        logger.info(
            "Starting netzcam scraper: project=%s sources=%s output_dir=%s",
            config.project,
            config.sources,
            config.output_dir,
        )

        output_dir = ensure_output_dir(config)
        fetcher = self._create_fetcher()
        self._scheduler = self._create_scheduler(fetcher, output_dir)
        self._setup_signal_handlers()

        try:
            await self._scheduler.run()
        finally:
            await self.shutdown()

    async def check(self) -> dict[str, FetchResult[str]]:
        """Fetch every marker once without saving anything."""
        fetcher = self._create_fetcher()
        sources = [
            SourceRef(project=self._config.project, name=name) for name in self._config.sources
        ]
        try:
            return await fetch_markers(fetcher, sources)
        finally:
            await fetcher.shutdown()

    async def shutdown(self) -> None:
        """Stop polling and close the HTTP session."""
        if self._scheduler is not None:
            self._scheduler.stop()
        if self._fetcher is not None:
            await self._fetcher.shutdown()
        logger.info("Shutdown complete")

    def _create_fetcher(self) -> Fetcher:
        if self._fetcher is None:
            self._fetcher = HttpFetcher(
                timeout_s=self._config.request_timeout_s,
                user_agent=self._config.user_agent,
            )
        return self._fetcher

    def _create_scheduler(self, fetcher: Fetcher, output_dir: Path) -> PollScheduler:
        saver = SnapshotSaver(output_dir, fetcher)
        return PollScheduler(
            self._config.project,
            self._config.sources,
            fetcher,
            saver,
            interval_s=self._config.interval_s,
        )

    def _setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._handle_signal, sig)
            except NotImplementedError:
                # Windows event loops do not support signal handlers.
                logger.debug("Signal handlers not supported on this platform")
                return

    def _handle_signal(self, sig: signal.Signals) -> None:
        """Handle shutdown signal."""
        if self._shutdown_started:
            logger.warning("Shutdown already in progress, ignoring signal")
            return

        logger.info("Received signal %s, initiating shutdown...", sig.name)
        self._shutdown_started = True
        if self._scheduler is not None:
            self._scheduler.stop()
