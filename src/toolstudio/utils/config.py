"""
Configuration management for Tool Studio.

Provides hierarchical configuration loading with validation using Pydantic.
Supports TOML configuration files and environment variable overrides.
"""

import os
from pathlib import Path
from typing import Any, List, Optional, Union

import toml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from toolstudio.utils.logging import get_logger

logger = get_logger(__name__)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    enabled: bool = Field(default=True, description="Enable logging completely")
    level: str = Field(default="INFO", description="File logging level")
    console_level: str = Field(default="WARNING", description="Console logging level")
    format_type: str = Field(default="text", description="Log format (text/json)")
    file: Optional[str] = Field(default=None, description="Log file path")
    enable_rich: bool = Field(default=True, description="Enable Rich console output")
    max_bytes: int = Field(default=10 * 1024 * 1024, description="Max log file size")
    backup_count: int = Field(default=5, description="Number of backup files")

    @field_validator("level", "console_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("format_type")
    @classmethod
    def validate_format_type(cls, v: str) -> str:
        """Validate format type."""
        if v not in ["text", "json"]:
            raise ValueError(f"Invalid format type: {v}")
        return v


class StorageConfig(BaseModel):
    """Local key/value storage configuration."""

    backend: str = Field(default="sqlite", description="Storage backend (sqlite/memory)")
    database_file: str = Field(default="toolstudio.db", description="SQLite file name")
    tools_key: str = Field(default="tools", description="Key holding the tool envelope")
    usage_key: str = Field(default="usage", description="Key holding the usage map")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        if v not in ["sqlite", "memory"]:
            raise ValueError(f"Invalid storage backend: {v}")
        return v

    @model_validator(mode="after")
    def validate_keys(self) -> "StorageConfig":
        if not self.tools_key or not self.usage_key:
            raise ValueError("Storage keys cannot be empty")
        if self.tools_key == self.usage_key:
            raise ValueError("Tools and usage must be stored under different keys")
        return self


class SearchConfig(BaseModel):
    """Fuzzy ranking weights and bonuses."""

    name_weight: float = Field(default=1.0, description="Weight of the name field")
    tags_weight: float = Field(default=0.6, description="Weight of the best matching tag")
    description_weight: float = Field(default=0.3, description="Weight of the description")
    consecutive_bonus: float = Field(default=1.0, description="Bonus per adjacent match")
    boundary_bonus: float = Field(default=0.8, description="Bonus for word-start matches")
    case_bonus: float = Field(default=0.1, description="Bonus for exact-case matches")

    @field_validator("name_weight", "tags_weight", "description_weight")
    @classmethod
    def validate_weight(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Field weights must be positive")
        return v

    @field_validator("consecutive_bonus", "boundary_bonus", "case_bonus")
    @classmethod
    def validate_bonus(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Scoring bonuses cannot be negative")
        return v

    @model_validator(mode="after")
    def validate_weight_order(self) -> "SearchConfig":
        if not (self.name_weight >= self.tags_weight >= self.description_weight):
            raise ValueError("Weights must rank name >= tags >= description")
        return self


class Config(BaseSettings):
    """Main configuration class."""

    debug: bool = Field(default=False, description="Enable debug mode")
    config_dir: str = Field(
        default="~/.config/toolstudio",
        description="Configuration directory"
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)

    model_config = SettingsConfigDict(
        env_prefix="TOOLSTUDIO_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    def get_config_dir(self) -> Path:
        """Get configuration directory path."""
        return Path(os.path.expanduser(self.config_dir))

    def get_log_file(self) -> Optional[Path]:
        """Get log file path."""
        if self.logging.file:
            log_path = Path(os.path.expanduser(self.logging.file))
            if not log_path.is_absolute():
                log_path = self.get_config_dir() / log_path
            return log_path
        return None

    @property
    def database_path(self) -> Path:
        """Get database path."""
        db_path = os.getenv("TOOLSTUDIO_DB_PATH")
        if db_path:
            return Path(os.path.expanduser(db_path))

        return self.get_config_dir() / self.storage.database_file


class ConfigManager:
    """Configuration manager with hierarchical loading."""

    def __init__(self):
        self._config: Optional[Config] = None

    def load_config(
        self,
        config_files: Optional[List[Union[str, Path]]] = None,
        **overrides: Any,
    ) -> Config:
        """
        Load configuration from multiple sources.

        Later files override earlier ones; keyword overrides win over files.

        Args:
            config_files: List of configuration files to load
            **overrides: Configuration overrides

        Returns:
            Loaded configuration
        """
        if self._config is not None:
            return self._config

        if config_files is None:
            config_files = [
                "/etc/toolstudio/config.toml",
                "~/.config/toolstudio/config.toml",
                "./.toolstudio.toml",
            ]

        config_data = {}

        for config_file in config_files:
            file_path = Path(os.path.expanduser(str(config_file)))
            if file_path.exists():
                try:
                    file_data = toml.load(file_path)
                    config_data.update(file_data)
                    logger.debug(f"Loaded configuration from {file_path}")
                except (toml.TomlDecodeError, OSError) as e:
                    logger.warning(f"Failed to load config from {file_path}: {e}")

        config_data.update(overrides)

        self._config = Config(**config_data)

        return self._config

    def get_config(self) -> Config:
        """Get current configuration."""
        if self._config is None:
            return self.load_config()
        return self._config

    def reload_config(self, **overrides: Any) -> Config:
        """Reload configuration."""
        self._config = None
        return self.load_config(**overrides)


# Global configuration manager
_config_manager = ConfigManager()

# Convenience functions
load_config = _config_manager.load_config
get_config = _config_manager.get_config
reload_config = _config_manager.reload_config
