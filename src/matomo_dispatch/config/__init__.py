"""Configuration module for the Matomo dispatcher."""

from .logger_config import setup_logging
from .settings import DispatcherConfig, load_config

__all__ = ["DispatcherConfig", "load_config", "setup_logging"]
