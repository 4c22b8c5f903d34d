"""Configuration for the Matomo dispatcher.

Values come from dataclass defaults and may be overridden by
MATOMO_DISPATCH_* environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loguru import logger

from ..core.endpoint import Endpoint
from ..core.errors import InvalidEndpointError

ENV_PREFIX = "MATOMO_DISPATCH_"


@dataclass
class DispatcherConfig:
    """Complete dispatcher configuration."""

    # Collector
    base_url: str = "https://localhost/matomo.php"
    user_agent: str = ""  # Empty = resolve from the platform

    # HTTP settings
    timeout_seconds: float = 5.0
    io_workers: int = 4

    # Logging
    log_level: str = "INFO"
    log_to_console: bool = True
    log_to_file: bool = False
    log_file_path: Path = field(default_factory=lambda: Path.cwd() / "logs" / "matomo_dispatch.log")
    log_rotation: str = "10 MB"
    log_retention: str = "7 days"

    def __post_init__(self):
        """Apply environment variable overrides."""
        self._apply_env_overrides()

    def _apply_env_overrides(self):
        """Apply configuration overrides from environment variables."""
        if base_url := os.getenv(f"{ENV_PREFIX}BASE_URL"):
            self.base_url = base_url

        if user_agent := os.getenv(f"{ENV_PREFIX}USER_AGENT"):
            self.user_agent = user_agent

        if timeout := os.getenv(f"{ENV_PREFIX}TIMEOUT_SECONDS"):
            try:
                self.timeout_seconds = float(timeout)
            except ValueError:
                logger.warning(f"Invalid timeout: {timeout}")

        if io_workers := os.getenv(f"{ENV_PREFIX}IO_WORKERS"):
            try:
                self.io_workers = int(io_workers)
            except ValueError:
                logger.warning(f"Invalid I/O worker count: {io_workers}")

        if log_level := os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            self.log_level = log_level.upper()

        if log_file := os.getenv(f"{ENV_PREFIX}LOG_FILE"):
            self.log_file_path = Path(log_file)
            self.log_to_file = True

    def validate(self) -> tuple[bool, list[str]]:
        """Validate the configuration.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors = []

        if not self.base_url:
            errors.append("Base URL is required")
        else:
            try:
                Endpoint.parse(self.base_url)
            except InvalidEndpointError as e:
                errors.append(str(e))

        if self.timeout_seconds <= 0:
            errors.append("Timeout must be positive")

        if self.io_workers <= 0:
            errors.append("I/O worker count must be positive")

        return len(errors) == 0, errors


def load_config(base_url: Optional[str] = None, user_agent: Optional[str] = None) -> DispatcherConfig:
    """Load configuration with optional overrides.

    Args:
        base_url: Collector URL override
        user_agent: User-Agent override

    Returns:
        Configured DispatcherConfig instance
    """
    config = DispatcherConfig()

    if base_url:
        config.base_url = base_url

    if user_agent:
        config.user_agent = user_agent

    return config
