"""Configuration loading and validation."""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from netzcam.models.config import ScraperConfig

logger = logging.getLogger(__name__)

# Environment fallbacks for values given neither on the command line nor in YAML.
ENV_DEFAULTS = {
    "project": "NETZCAM_PROJECT",
    "sources": "NETZCAM_SOURCES",
    "output_dir": "NETZCAM_OUTPUT_DIR",
}


class ConfigErrorCode(str, Enum):
    """Stable config error codes."""

    FILE_NOT_FOUND = "CONFIG_FILE_NOT_FOUND"
    YAML_INVALID = "CONFIG_YAML_INVALID"
    EMPTY_FILE = "CONFIG_EMPTY_FILE"
    ROOT_NOT_MAPPING = "CONFIG_ROOT_NOT_MAPPING"
    VALIDATION_FAILED = "CONFIG_VALIDATION_FAILED"
    OUTPUT_DIR_MISSING = "CONFIG_OUTPUT_DIR_MISSING"
    OUTPUT_DIR_INVALID = "CONFIG_OUTPUT_DIR_INVALID"
    UNKNOWN = "CONFIG_UNKNOWN"


class ConfigError(Exception):
    """Configuration loading or validation error."""

    def __init__(
        self,
        message: str,
        *,
        code: ConfigErrorCode = ConfigErrorCode.UNKNOWN,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.path = path
        self.__cause__ = cause


def load_config(path: Path) -> ScraperConfig:
    """Load and validate configuration from YAML file.

    Raises:
        ConfigError: If file not found, YAML invalid, or validation fails
    """
    raw = _read_yaml(path)
    try:
        return ScraperConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(
            format_validation_error(e, path),
            code=ConfigErrorCode.VALIDATION_FAILED,
            path=path,
            cause=e,
        ) from e


def load_config_from_dict(data: dict[str, Any]) -> ScraperConfig:
    """Load and validate configuration from a dict (useful for testing).

    Raises:
        ConfigError: If validation fails
    """
    try:
        return ScraperConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            format_validation_error(e, path=None),
            code=ConfigErrorCode.VALIDATION_FAILED,
            cause=e,
        ) from e


def resolve_config(config_path: Path | None, overrides: dict[str, Any]) -> ScraperConfig:
    """Merge YAML file, environment fallbacks and command-line overrides.

    Precedence, highest first: overrides that are not None, YAML values,
    `NETZCAM_*` environment variables.

    Raises:
        ConfigError: If the file cannot be read or the merged values are invalid
    """
    data: dict[str, Any] = {}
    if config_path is not None:
        data.update(_read_yaml(config_path))

    for key, env_var in ENV_DEFAULTS.items():
        if key in data:
            continue
        value = os.environ.get(env_var)
        if value:
            data[key] = value

    data.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return ScraperConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            format_validation_error(e, config_path),
            code=ConfigErrorCode.VALIDATION_FAILED,
            path=config_path,
            cause=e,
        ) from e


def ensure_output_dir(config: ScraperConfig) -> Path:
    """Make sure the output root exists, creating it only when allowed.

    Raises:
        ConfigError: If the directory is missing and may not be created,
            is not a directory, or cannot be created
    """
    path = Path(config.output_dir).expanduser()
    if path.exists():
        if not path.is_dir():
            raise ConfigError(
                f"Output path is not a directory: {path}",
                code=ConfigErrorCode.OUTPUT_DIR_INVALID,
                path=path,
            )
        return path

    if not config.create_output_dir:
        raise ConfigError(
            f"Output directory does not exist: {path}",
            code=ConfigErrorCode.OUTPUT_DIR_MISSING,
            path=path,
        )

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(
            f"Cannot create output directory {path}: {e}",
            code=ConfigErrorCode.OUTPUT_DIR_INVALID,
            path=path,
            cause=e,
        ) from e
    logger.info("Created output directory %s", path)
    return path


def format_validation_error(e: ValidationError, path: Path | None = None) -> str:
    """Format Pydantic validation error for human readability."""
    prefix = f"Config validation failed ({path}):" if path else "Config validation failed:"
    errors = []
    for err in e.errors():
        loc = " -> ".join(str(x) for x in err["loc"])
        msg = err["msg"]
        errors.append(f"  {loc}: {msg}")
    return prefix + "\n" + "\n".join(errors)


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(
            f"Config file not found: {path}",
            code=ConfigErrorCode.FILE_NOT_FOUND,
            path=path,
        )

    try:
        with path.open() as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML in {path}: {e}",
            code=ConfigErrorCode.YAML_INVALID,
            path=path,
            cause=e,
        ) from e

    if raw is None:
        raise ConfigError(
            f"Config file is empty: {path}",
            code=ConfigErrorCode.EMPTY_FILE,
            path=path,
        )

    if not isinstance(raw, dict):
        raise ConfigError(
            f"Config must be a YAML mapping, got {type(raw).__name__}",
            code=ConfigErrorCode.ROOT_NOT_MAPPING,
            path=path,
        )
    return raw
