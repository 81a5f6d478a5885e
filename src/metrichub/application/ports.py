"""Application ports (interfaces) for MetricHub.

This module defines the contracts between the application layer and external systems.
All external dependencies must be implemented through these interfaces.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from metrichub.domain.metrics.engine import IngestionResult

SheetRows = List[List[Any]]


class SheetSource(ABC):
    """Port for reading raw rows from a spreadsheet-like source."""

    @abstractmethod
    def fetch_values(self, source_id: str, sheet_name: str) -> SheetRows:
        """
        Fetch the values of one sheet.

        Args:
            source_id: Spreadsheet identifier
            sheet_name: Tab name

        Returns:
            Array of rows; the first row holds the headers

        Raises:
            SheetFetchError: If the source cannot be read
        """
        pass


class IngestionCache(ABC):
    """Port for short-lived caching of ingestion results."""

    @abstractmethod
    def get(self, key: str) -> Optional[IngestionResult]:
        """
        Get a cached result.

        Args:
            key: Cache key (source_id:sheet_name)

        Returns:
            Cached result if present and not expired, None otherwise
        """
        pass

    @abstractmethod
    def set(self, key: str, result: IngestionResult, ttl_seconds: Optional[int] = None) -> None:
        """
        Store a result.

        Args:
            key: Cache key
            result: Result to store
            ttl_seconds: Time to live; the cache default when None
        """
        pass

    @abstractmethod
    def invalidate(self, key: str) -> None:
        """
        Drop a cached result.

        Args:
            key: Cache key
        """
        pass


class SettingsProvider(ABC):
    """Port for reading configuration values."""

    @abstractmethod
    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get a setting value.

        Args:
            key: Setting name
            default: Value returned when the setting is missing

        Returns:
            Setting value or default
        """
        pass

    @abstractmethod
    def refresh_cache(self) -> None:
        """Re-read settings from their source."""
        pass
