"""Utility modules for Tool Studio."""

from toolstudio.utils.logging import get_logger, setup_logging, setup_logging_from_config
from toolstudio.utils.config import Config, ConfigManager, get_config, load_config

__all__ = [
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
    "Config",
    "ConfigManager",
    "get_config",
    "load_config",
]
