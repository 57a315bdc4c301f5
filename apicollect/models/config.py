"""Configuration data structures."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_CONTENT_TIMEOUT = 3600.0
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_WARNINGS_FILE_NAME = "warnings.out"


@dataclass
class ContentConfig:
    """Benchmark and tailoring content locations."""

    content_path: str = ""
    tailoring_path: str = ""
    profile: str = ""
    timeout_seconds: float = DEFAULT_CONTENT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL


@dataclass
class OutputConfig:
    """Where fetched objects and warnings are written."""

    result_dir: str = ""
    warnings_output_file: str = ""

    def warnings_path(self) -> str:
        """The explicit warnings file, else ``warnings.out`` inside the result directory."""
        if self.warnings_output_file:
            return self.warnings_output_file
        if self.result_dir:
            return os.path.join(self.result_dir, DEFAULT_WARNINGS_FILE_NAME)
        return ""


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class CollectorConfig:
    """Top-level apicollect configuration."""

    content: ContentConfig = field(default_factory=ContentConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log: LogConfig = field(default_factory=LogConfig)
