"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from apicollect.models.config import (
    DEFAULT_CONTENT_TIMEOUT,
    DEFAULT_POLL_INTERVAL,
    CollectorConfig,
    ContentConfig,
    LogConfig,
    OutputConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"APICOLLECT_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_float(
    key: str, default: float, min_val: float | None = None, max_val: float | None = None
) -> float:
    val = float(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def load_config() -> CollectorConfig:
    """Load configuration from APICOLLECT_* environment variables."""
    level = _validate_log_level(_env("LOG_LEVEL", "info"))
    if _env_bool("DEBUG", False):
        level = "debug"
    return CollectorConfig(
        content=ContentConfig(
            content_path=_env("CONTENT", ""),
            tailoring_path=_env("TAILORING", ""),
            profile=_env("PROFILE", ""),
            timeout_seconds=_env_float("CONTENT_TIMEOUT", DEFAULT_CONTENT_TIMEOUT, min_val=1, max_val=86400),
            poll_interval=_env_float("POLL_INTERVAL", DEFAULT_POLL_INTERVAL, min_val=0.01, max_val=60),
        ),
        output=OutputConfig(
            result_dir=_env("RESULT_DIR", ""),
            warnings_output_file=_env("WARNINGS_OUTPUT_FILE", ""),
        ),
        log=LogConfig(level=level),
    )
