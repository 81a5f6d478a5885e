"""Application configuration for MetricHub."""

from enum import Enum
from typing import Optional

from metrichub.application.ports import SettingsProvider


class Environment(Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class LogFormat(Enum):
    JSON = "json"
    CONSOLE = "console"


class Config:
    """Application configuration backed by a settings provider."""

    def __init__(self, settings: SettingsProvider):
        """Initialize configuration with settings provider."""
        self.settings = settings
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from settings provider."""
        # Environment
        self.ENVIRONMENT = Environment(self.settings.get("ENVIRONMENT", "development").lower())

        # Logging
        self.LOG_LEVEL = self.settings.get("LOG_LEVEL", "INFO").upper()
        self.LOG_FORMAT = LogFormat(self.settings.get("LOG_FORMAT", "json").lower())

        # Ingestion
        self.METRICS_CACHE_TTL_SECONDS = self._get_int("METRICS_CACHE_TTL_SECONDS", 300)
        self.UNMATCHED_HEADERS_MAX = self._get_int("UNMATCHED_HEADERS_MAX", 500)
        self.DEFAULT_SHEET_NAME = self.settings.get("DEFAULT_SHEET_NAME", "Dashboard")
        self.SHEET_RANGE = self.settings.get("SHEET_RANGE", "A1:Z1000")

        # Google Sheets
        self.GOOGLE_SHEETS_API_KEY = self.settings.get("GOOGLE_SHEETS_API_KEY") or None
        self.GOOGLE_SHEETS_ACCESS_TOKEN = self.settings.get("GOOGLE_SHEETS_ACCESS_TOKEN") or None
        self.GOOGLE_SHEETS_TIMEOUT_SECONDS = float(
            self.settings.get("GOOGLE_SHEETS_TIMEOUT_SECONDS", "30")
        )
        self.GOOGLE_SHEETS_RETRIES = self._get_int("GOOGLE_SHEETS_RETRIES", 2)

        # Operator tables (built-in defaults when unset)
        self.ALIAS_TABLE_PATH = self.settings.get("ALIAS_TABLE_PATH") or None
        self.THRESHOLDS_PATH = self.settings.get("THRESHOLDS_PATH") or None

    def _get_int(self, key: str, default: int) -> int:
        raw = self.settings.get(key, str(default))
        try:
            return int(raw)
        except (TypeError, ValueError):
            raise ValueError(f"{key} must be an integer, got {raw!r}") from None

    @property
    def json_logs(self) -> bool:
        return self.LOG_FORMAT == LogFormat.JSON

    @property
    def has_google_credentials(self) -> bool:
        return bool(self.GOOGLE_SHEETS_API_KEY or self.GOOGLE_SHEETS_ACCESS_TOKEN)

    def validate(self) -> None:
        """Validate critical configuration values."""
        if self.METRICS_CACHE_TTL_SECONDS <= 0:
            raise ValueError("METRICS_CACHE_TTL_SECONDS must be positive")

        if self.UNMATCHED_HEADERS_MAX <= 0:
            raise ValueError("UNMATCHED_HEADERS_MAX must be positive")

        if self.GOOGLE_SHEETS_TIMEOUT_SECONDS <= 0:
            raise ValueError("GOOGLE_SHEETS_TIMEOUT_SECONDS must be positive")

        if self.GOOGLE_SHEETS_RETRIES < 0:
            raise ValueError("GOOGLE_SHEETS_RETRIES must not be negative")

        if self.LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL {self.LOG_LEVEL} is not a valid level")

        # Production must be able to reach the spreadsheets
        if self.ENVIRONMENT == Environment.PRODUCTION and not self.has_google_credentials:
            raise ValueError(
                "GOOGLE_SHEETS_API_KEY or GOOGLE_SHEETS_ACCESS_TOKEN must be set in production"
            )

    def reload(self) -> None:
        """Reload configuration from settings provider."""
        self.settings.refresh_cache()
        self._load_config()
        self.validate()


# Global configuration instance
_config: Optional[Config] = None


def get_config(settings: Optional[SettingsProvider] = None) -> Config:
    """
    Get or create global configuration instance.

    Args:
        settings: SettingsProvider implementation. Required on first call.

    Returns:
        Configuration instance

    Raises:
        ValueError: If settings is None and no global config exists
    """
    global _config
    if _config is None:
        if settings is None:
            raise ValueError(
                "SettingsProvider must be provided when creating Config for the first time. "
                "Infrastructure dependencies are injected from the composition root."
            )
        _config = Config(settings)
        _config.validate()
    return _config


def reset_config() -> None:
    """Drop the global configuration instance."""
    global _config
    _config = None
