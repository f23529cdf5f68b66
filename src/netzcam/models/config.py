"""Scraper configuration model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from netzcam.logging_setup import LOG_LEVELS

DEFAULT_USER_AGENT = "netzcam-scraper/0.1"


class ScraperConfig(BaseModel):
    """Resolved scraper configuration."""

    model_config = {"extra": "forbid"}

    project: str = Field(
        min_length=1,
        description="Remote namespace, the subdomain under netzcam.net.",
    )
    sources: list[str] = Field(
        min_length=1,
        description="Camera names polled on every tick.",
    )
    output_dir: str = Field(
        min_length=1,
        description="Root directory for saved images.",
    )
    create_output_dir: bool = Field(
        default=False,
        description="Create output_dir when it does not exist.",
    )
    interval_s: int = Field(
        default=10,
        gt=0,
        description="Seconds to wait after a tick completes before the next one.",
    )
    log_level: str = Field(
        default="info",
        description="One of debug, info, warn, error.",
    )
    request_timeout_s: float = Field(
        default=30.0,
        gt=0.0,
        description="Total timeout for a single HTTP request.",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent header sent with every request.",
    )

    @field_validator("project", mode="before")
    @classmethod
    def _strip_project(cls, value: Any) -> Any:
        # Fire parses numeric flags, "--project=123" arrives as an int.
        if isinstance(value, (int, float)):
            value = str(value)
        if not isinstance(value, str):
            return value
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("project must not be blank")
        return cleaned

    @field_validator("sources", mode="before")
    @classmethod
    def _split_sources(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.split(",")
        if isinstance(value, (int, float)):
            return [str(value)]
        if isinstance(value, (list, tuple)):
            return [str(item) for item in value]
        return value

    @field_validator("sources")
    @classmethod
    def _normalize_sources(cls, value: list[str]) -> list[str]:
        cleaned: list[str] = []
        for item in value:
            name = str(item).strip()
            if not name:
                continue
            if name in cleaned:
                continue
            cleaned.append(name)
        if not cleaned:
            raise ValueError("at least one source name is required")
        return cleaned

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> Any:
        level = str(value).strip().lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {value} (expected debug, info, warn, error)")
        return level
