"""
Context management for structured logging.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterator, Optional, TypeVar

import structlog

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
_source_id: ContextVar[Optional[str]] = ContextVar("source_id", default=None)

T = TypeVar("T")


def with_request_context(
    request_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to add request context to all logs within a function.

    Args:
        request_id: Unique request identifier
        correlation_id: Correlation ID for distributed tracing

    Returns:
        Decorated function with logging context
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        def wrapper(*args: Any, **kwargs: Any) -> T:
            req_id = request_id or generate_request_id()
            corr_id = correlation_id or req_id

            _request_id.set(req_id)
            _correlation_id.set(corr_id)

            structlog.contextvars.clear_contextvars()
            structlog.contextvars.bind_contextvars(
                request_id=req_id,
                correlation_id=corr_id,
            )

            try:
                return func(*args, **kwargs)
            finally:
                structlog.contextvars.clear_contextvars()
                _request_id.set(None)
                _correlation_id.set(None)

        return wrapper
    return decorator


def with_source_context(source_id: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to add the spreadsheet source to all logs within a function.

    Args:
        source_id: Spreadsheet / ads-export identifier
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        def wrapper(*args: Any, **kwargs: Any) -> T:
            with source_context(source_id):
                return func(*args, **kwargs)

        return wrapper
    return decorator


@contextmanager
def source_context(source_id: str) -> Iterator[None]:
    """Bind the spreadsheet source for the duration of a block."""
    token = _source_id.set(source_id)
    try:
        with structlog.contextvars.bound_contextvars(source_id=source_id):
            yield
    finally:
        _source_id.reset(token)


def bind_request_context(request_id: Optional[str] = None) -> str:
    """Bind a request/correlation id for the current context and return it."""
    req_id = request_id or generate_request_id()
    _request_id.set(req_id)
    _correlation_id.set(req_id)
    structlog.contextvars.bind_contextvars(request_id=req_id, correlation_id=req_id)
    return req_id


def clear_request_context() -> None:
    """Clear request context bound with bind_request_context."""
    structlog.contextvars.clear_contextvars()
    _request_id.set(None)
    _correlation_id.set(None)


def generate_request_id() -> str:
    """Generate a unique request ID."""
    return f"req_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return _request_id.get()


def get_source_id() -> Optional[str]:
    """Get the current source ID from context."""
    return _source_id.get()
