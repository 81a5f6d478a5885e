"""Domain errors for MetricHub."""


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str) -> None:
        """
        Initialize domain error.

        Args:
            message: Error message (must not carry credentials)
        """
        super().__init__(message)
        self.message = message


class AliasConflictError(DomainError):
    """Raised when one alias is registered under two canonical keys."""

    def __init__(self, alias: str, first_key: str, second_key: str) -> None:
        message = (
            f"Alias '{alias}' is registered under both '{first_key}' and '{second_key}'"
        )
        super().__init__(message)
        self.alias = alias
        self.first_key = first_key
        self.second_key = second_key


class UnknownMetricKeyError(DomainError):
    """Raised when a canonical metric key is not part of the vocabulary."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Unknown canonical metric key: {key}")
        self.key = key


class InvalidThresholdError(DomainError):
    """Raised when threshold bounds do not partition the line in their direction."""

    def __init__(self, metric_key: str, reason: str) -> None:
        super().__init__(f"Invalid threshold for {metric_key}: {reason}")
        self.metric_key = metric_key
        self.reason = reason


class InvalidMetricValueError(DomainError):
    """Raised when a metric value cannot be classified (NaN or infinite)."""

    def __init__(self, metric_key: str, value: object) -> None:
        super().__init__(f"Metric {metric_key} has a non-finite value: {value!r}")
        self.metric_key = metric_key
        self.value = value


class InsufficientRowsError(DomainError):
    """Raised when a sheet snapshot has no header row or no data row."""

    def __init__(self, rows: int) -> None:
        super().__init__(f"At least a header row and one data row are required, got {rows} row(s)")
        self.rows = rows
