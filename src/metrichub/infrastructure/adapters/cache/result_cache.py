"""Ingestion result cache adapter for MetricHub.

Spreadsheet snapshots are re-read at most once per TTL window for each
source and sheet; a forced refresh invalidates the entry first.
"""

import threading
import time
from typing import Any, Callable, Dict, Optional

from metrichub.application.ports import IngestionCache
from metrichub.domain.metrics.engine import IngestionResult
from metrichub.shared.logging import get_logger
from metrichub.shared.logging.context import get_correlation_id


class InMemoryResultCache(IngestionCache):
    """
    In-memory TTL cache of ingestion results.

    Expired entries are removed when read and swept on every store. The clock is injectable so tests
    can move time forward.
    """

    def __init__(
        self,
        default_ttl_seconds: int = 300,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize in-memory result cache.

        Args:
            default_ttl_seconds: Default time-to-live for cached entries
            clock: Source of the current time in seconds
        """
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be positive")

        self._logger = get_logger("infrastructure.result_cache")
        self._cache: Dict[str, Dict[str, Any]] = {}
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()

        self._logger.info(
            "ingestion_cache_initialized",
            implementation="in_memory",
            default_ttl_seconds=default_ttl_seconds,
            correlation_id=get_correlation_id()
        )

    def get(self, key: str) -> Optional[IngestionResult]:
        """
        Get a cached result with expiration checking.

        Args:
            key: Cache key

        Returns:
            Cached result if available and not expired, None otherwise
        """
        current_time = self._clock()

        with self._lock:
            cache_entry = self._cache.get(key)
            if cache_entry is not None and cache_entry["expires_at"] <= current_time:
                del self._cache[key]
                expired = cache_entry
                cache_entry = None
            else:
                expired = None

        if expired is not None:
            self._logger.info(
                "ingestion_cache_expired",
                cache_key=key,
                expired_at=expired["expires_at"],
                current_time=current_time,
                correlation_id=get_correlation_id()
            )
            return None

        if cache_entry is None:
            self._logger.info(
                "ingestion_cache_miss",
                cache_key=key,
                correlation_id=get_correlation_id()
            )
            return None

        self._logger.info(
            "ingestion_cache_hit",
            cache_key=key,
            age_seconds=current_time - cache_entry["stored_at"],
            ttl_remaining=cache_entry["expires_at"] - current_time,
            correlation_id=get_correlation_id()
        )
        return cache_entry["data"]

    def set(self, key: str, result: IngestionResult, ttl_seconds: Optional[int] = None) -> None:
        """
        Store a result with TTL.

        Args:
            key: Cache key
            result: Result to cache
            ttl_seconds: Time to live in seconds, None for default
        """
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        current_time = self._clock()
        expires_at = current_time + ttl

        with self._lock:
            expired_keys = [
                cached_key for cached_key, entry in self._cache.items()
                if entry["expires_at"] <= current_time
            ]
            for cached_key in expired_keys:
                del self._cache[cached_key]
            self._cache[key] = {
                "data": result,
                "stored_at": current_time,
                "expires_at": expires_at,
                "ttl_seconds": ttl,
            }
            total = len(self._cache)

        self._logger.info(
            "ingestion_cache_stored",
            cache_key=key,
            ttl_seconds=ttl,
            expires_at=expires_at,
            total_cached_entries=total,
            expired_entries_swept=len(expired_keys),
            correlation_id=get_correlation_id()
        )

    def invalidate(self, key: str) -> None:
        """
        Drop a cached result.

        Args:
            key: Cache key
        """
        with self._lock:
            removed = self._cache.pop(key, None) is not None

        self._logger.info(
            "ingestion_cache_invalidated",
            cache_key=key,
            removed=removed,
            correlation_id=get_correlation_id()
        )

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            cleared = len(self._cache)
            self._cache.clear()

        self._logger.info(
            "ingestion_cache_cleared",
            entries_cleared=cleared,
            correlation_id=get_correlation_id()
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
