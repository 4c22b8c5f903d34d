"""Logger configuration for the dispatcher."""

import sys
from typing import Optional

from loguru import logger

from .settings import DispatcherConfig


def setup_logging(config: Optional[DispatcherConfig] = None) -> None:
    """Configure loguru logger for console and optional file output.

    Sets up logging with:
    - Colored console output at the configured level
    - File output with rotation and retention when enabled
    """
    config = config or DispatcherConfig()

    # Remove default loguru handler
    logger.remove()

    if config.log_to_console:
        logger.add(
            sink=sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
            level=config.log_level,
            colorize=True,
        )

    if config.log_to_file:
        config.log_file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            sink=str(config.log_file_path),
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level=config.log_level,
            rotation=config.log_rotation,
            retention=config.log_retention,
            compression="gz",
            enqueue=True,  # Thread-safe logging
        )

        logger.info(f"File logging enabled: {config.log_file_path}")
