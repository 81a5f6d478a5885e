"""Test logging context helpers."""

import structlog

from metrichub.shared.logging import (
    bind_request_context,
    clear_request_context,
    get_correlation_id,
    source_context,
    with_request_context,
    with_source_context,
)
from metrichub.shared.logging.context import get_request_id, get_source_id


class TestRequestContext:

    def test_bind_and_clear(self):
        request_id = bind_request_context("req_abc")

        assert request_id == "req_abc"
        assert get_request_id() == "req_abc"
        assert get_correlation_id() == "req_abc"
        assert structlog.contextvars.get_contextvars()["request_id"] == "req_abc"

        clear_request_context()

        assert get_request_id() is None
        assert get_correlation_id() is None

    def test_generated_request_id(self):
        request_id = bind_request_context()
        clear_request_context()

        assert request_id.startswith("req_")

    def test_decorator(self):
        @with_request_context(request_id="req_1", correlation_id="corr_1")
        def handler():
            return get_request_id(), get_correlation_id()

        assert handler() == ("req_1", "corr_1")
        assert get_request_id() is None


class TestSourceContext:

    def test_context_manager(self):
        with source_context("sheet-1"):
            assert get_source_id() == "sheet-1"
            assert structlog.contextvars.get_contextvars()["source_id"] == "sheet-1"

        assert get_source_id() is None
        assert "source_id" not in structlog.contextvars.get_contextvars()

    def test_nested_contexts_restore_outer_source(self):
        with source_context("outer"):
            with source_context("inner"):
                assert get_source_id() == "inner"
            assert get_source_id() == "outer"

    def test_decorator(self):
        @with_source_context("sheet-2")
        def ingest():
            return get_source_id()

        assert ingest() == "sheet-2"
        assert get_source_id() is None
