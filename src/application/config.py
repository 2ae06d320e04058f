"""Application configuration for the sales engine."""

from enum import Enum
from typing import Optional

from src.application.errors import ConfigurationError
from src.application.ports import SettingsSource


class Environment(Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class LogFormat(Enum):
    """Log renderer."""

    JSON = "json"
    CONSOLE = "console"


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Config:
    """Application configuration loaded from a settings source."""

    def __init__(self, settings: SettingsSource):
        """Initialize configuration with a settings source."""
        self.settings = settings
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from the settings source."""
        # Environment
        environment = (self.settings.get("ENVIRONMENT", "development") or "development").lower()
        try:
            self.ENVIRONMENT = Environment(environment)
        except ValueError:
            raise ConfigurationError("ENVIRONMENT", f"unknown environment {environment!r}")

        # Logging
        self.LOG_LEVEL = (self.settings.get("LOG_LEVEL", "INFO") or "INFO").upper()
        log_format = (self.settings.get("LOG_FORMAT", "json") or "json").lower()
        try:
            self.LOG_FORMAT = LogFormat(log_format)
        except ValueError:
            raise ConfigurationError("LOG_FORMAT", f"unknown log format {log_format!r}")

        # Snapshot cache
        self.SNAPSHOT_CACHE_TTL_SECONDS = self._get_int("SNAPSHOT_CACHE_TTL_SECONDS", 60)

        # Document writes
        self.WRITE_BATCH_SIZE = self._get_int("WRITE_BATCH_SIZE", 450)

        # Optional YAML with packaging rules, fee schedules and calculations
        self.ENGINE_CONFIG_PATH: Optional[str] = self.settings.get("ENGINE_CONFIG_PATH") or None

    def _get_int(self, key: str, default: int) -> int:
        raw = self.settings.get(key, str(default))
        try:
            return int(str(raw).strip())
        except (TypeError, ValueError):
            raise ConfigurationError(key, f"expected an integer, got {raw!r}")

    @property
    def json_logs(self) -> bool:
        return self.LOG_FORMAT == LogFormat.JSON

    def validate(self) -> None:
        """Validate critical configuration values."""
        if self.LOG_LEVEL not in LOG_LEVELS:
            raise ConfigurationError("LOG_LEVEL", f"must be one of {', '.join(LOG_LEVELS)}")

        if self.SNAPSHOT_CACHE_TTL_SECONDS < 0:
            raise ConfigurationError("SNAPSHOT_CACHE_TTL_SECONDS", "must not be negative")

        # Document store limit is 500 writes per batch
        if not 1 <= self.WRITE_BATCH_SIZE <= 500:
            raise ConfigurationError("WRITE_BATCH_SIZE", "must be between 1 and 500")

        if self.ENVIRONMENT == Environment.PRODUCTION and self.LOG_FORMAT != LogFormat.JSON:
            raise ConfigurationError("LOG_FORMAT", "production requires json logs")

    def reload(self) -> None:
        """Reload configuration from the settings source."""
        self._load_config()
        self.validate()


# Global configuration instance
_config: Optional[Config] = None


def get_config(settings: Optional[SettingsSource] = None) -> Config:
    """
    Get or create global configuration instance.

    Args:
        settings: SettingsSource implementation. Required on first call.

    Returns:
        Configuration instance

    Raises:
        ConfigurationError: If settings is None and no global config exists
    """
    global _config
    if _config is None:
        if settings is None:
            raise ConfigurationError(
                "settings",
                "a SettingsSource must be provided when creating Config for the first time",
            )
        _config = Config(settings)
        _config.validate()
    return _config


def reset_config() -> None:
    """Drop the global configuration instance."""
    global _config
    _config = None
