"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class DeployHistoryConfig:
    """Top-level deployhistory configuration."""

    app_name: str = ""
    log: LogConfig = field(default_factory=LogConfig)
