"""Configuration loading and validation."""

from netzcam.config.loader import (
    ConfigError,
    ConfigErrorCode,
    ensure_output_dir,
    load_config,
    load_config_from_dict,
    resolve_config,
)

__all__ = [
    "ConfigError",
    "ConfigErrorCode",
    "ensure_output_dir",
    "load_config",
    "load_config_from_dict",
    "resolve_config",
]
