"""Test the in-memory ingestion result cache."""

import pytest

from metrichub.infrastructure.adapters.cache.result_cache import InMemoryResultCache


@pytest.fixture
def result(engine, sheet_rows):
    return engine.process(sheet_rows)


class TestInMemoryResultCache:
    """Test TTL behavior."""

    def test_miss(self, clock):
        assert InMemoryResultCache(clock=clock).get("missing") is None

    def test_hit_within_ttl(self, clock, result):
        cache = InMemoryResultCache(default_ttl_seconds=60, clock=clock)
        cache.set("sheet:Dashboard", result)
        clock.advance(59)

        assert cache.get("sheet:Dashboard") is result

    def test_expires_after_ttl(self, clock, result):
        cache = InMemoryResultCache(default_ttl_seconds=60, clock=clock)
        cache.set("sheet:Dashboard", result)
        clock.advance(60)

        assert cache.get("sheet:Dashboard") is None
        assert len(cache) == 0

    def test_explicit_ttl(self, clock, result):
        cache = InMemoryResultCache(default_ttl_seconds=60, clock=clock)
        cache.set("sheet:Dashboard", result, ttl_seconds=600)
        clock.advance(300)

        assert cache.get("sheet:Dashboard") is result

    def test_invalidate(self, clock, result):
        cache = InMemoryResultCache(clock=clock)
        cache.set("sheet:Dashboard", result)

        cache.invalidate("sheet:Dashboard")
        cache.invalidate("never-stored")

        assert cache.get("sheet:Dashboard") is None

    def test_clear(self, clock, result):
        cache = InMemoryResultCache(clock=clock)
        cache.set("a", result)
        cache.set("b", result)

        cache.clear()

        assert len(cache) == 0

    def test_rejects_non_positive_ttl(self):
        with pytest.raises(ValueError):
            InMemoryResultCache(default_ttl_seconds=0)

    def test_store_sweeps_expired_entries(self, clock, result):
        cache = InMemoryResultCache(default_ttl_seconds=60, clock=clock)
        cache.set("old:Dashboard", result)
        cache.set("long:Dashboard", result, ttl_seconds=600)
        clock.advance(60)

        cache.set("new:Dashboard", result)

        assert len(cache) == 2
        assert cache.get("long:Dashboard") is result
        assert cache.get("new:Dashboard") is result
