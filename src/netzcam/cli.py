"""CLI entrypoint for the netzcam scraper."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

import fire  # type: ignore[import-untyped]

from netzcam.app import Application
from netzcam.config import ConfigError, resolve_config
from netzcam.errors import SnapshotDirectoryError, StartupValidationError
from netzcam.logging_setup import configure_logging
from netzcam.models.config import ScraperConfig


def setup_logging(level: str = "info") -> None:
    """Configure logging for CLI."""
    configure_logging(log_level=level)


def _build_config(config: str | None, overrides: dict[str, Any]) -> ScraperConfig:
    config_path = Path(config) if config else None
    try:
        return resolve_config(config_path, overrides)
    except ConfigError as e:
        print(f"✗ Config invalid: {e}", file=sys.stderr)
        sys.exit(1)


class NetzcamScraper:
    """Netzcam Scraper - save webcam snapshots whenever a camera publishes a new one."""

    def run(
        self,
        project: str | None = None,
        name: str | list[str] | tuple[str, ...] | None = None,
        output_dir: str | None = None,
        mkdir: bool = False,
        interval: int | None = None,
        log_level: str | None = None,
        config: str | None = None,
    ) -> None:
        """Poll the cameras and save every new snapshot.

        Args:
            project: Project name (subdomain under netzcam.net)
            name: Camera name(s); repeat as a comma separated list (cam1,cam2)
            output_dir: Output directory
            mkdir: Create output directory if it does not exist
            interval: Interval in seconds between polls (default 10)
            log_level: Log level (debug, info, warn, error; default info)
            config: Optional YAML file providing any of the above
        """
        cfg = _build_config(
            config,
            {
                "project": project,
                "sources": name,
                "output_dir": output_dir,
                "create_output_dir": True if mkdir else None,
                "interval_s": interval,
                "log_level": log_level,
            },
        )
        setup_logging(cfg.log_level)

        app = Application(cfg)

        try:
            asyncio.run(app.run())
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)
        except StartupValidationError as e:
            print(f"✗ Startup check failed: {e}", file=sys.stderr)
            sys.exit(1)
        except SnapshotDirectoryError as e:
            print(f"✗ Output failed: {e}", file=sys.stderr)
            sys.exit(1)
        except KeyboardInterrupt:
            pass  # Handled by signal handlers

    def check(
        self,
        project: str | None = None,
        name: str | list[str] | tuple[str, ...] | None = None,
        log_level: str | None = None,
        config: str | None = None,
    ) -> None:
        """Fetch each camera's marker once and report whether it is reachable.

        Args:
            project: Project name (subdomain under netzcam.net)
            name: Camera name(s), comma separated
            log_level: Log level (debug, info, warn, error; default info)
            config: Optional YAML file providing any of the above
        """
        cfg = _build_config(
            config,
            {
                "project": project,
                "sources": name,
                # check never writes, the directory is irrelevant
                "output_dir": ".",
                "log_level": log_level,
            },
        )
        setup_logging(cfg.log_level)

        results = asyncio.run(Application(cfg).check())

        failed = False
        print(f"Project: {cfg.project}")
        for source_name, result in results.items():
            if result.ok and result.value:
                print(f"  ✓ {source_name}: {result.value.strip()}")
            else:
                failed = True
                print(f"  ✗ {source_name}: {result.describe()}")

        if failed:
            print("✗ Invalid project or name", file=sys.stderr)
            sys.exit(1)


def main() -> None:
    """Main CLI entrypoint."""
    # Strip --help/-h when it's the only arg so Fire shows its commands list
    if len(sys.argv) == 2 and sys.argv[1] in ("--help", "-h"):
        sys.argv.pop()
    fire.Fire(NetzcamScraper)


if __name__ == "__main__":
    main()
