"""Application layer errors for MetricHub."""

from typing import Optional


class ApplicationError(Exception):
    """Base exception for all application layer errors."""

    def __init__(self, message: str) -> None:
        """
        Initialize application error.

        Args:
            message: Error message (must not carry credentials)
        """
        super().__init__(message)
        self.message = message


class ValidationError(ApplicationError):
    """Raised when input validation fails."""

    def __init__(self, field: str, message: str) -> None:
        """
        Initialize validation error.

        Args:
            field: Field name that failed validation
            message: Error message
        """
        super().__init__(f"{field}: {message}")
        self.field = field
        self.validation_message = message


class SheetFetchError(ApplicationError):
    """Raised when the upstream spreadsheet cannot be read."""

    def __init__(self, source_id: str, reason: str, status_code: Optional[int] = None) -> None:
        """
        Initialize sheet fetch error.

        Args:
            source_id: Spreadsheet identifier
            reason: Short failure description
            status_code: Upstream HTTP status, when there was a response
        """
        # The spreadsheet id is not repeated in the message; it is logged masked
        super().__init__(f"Could not read spreadsheet: {reason}")
        self.source_id = source_id
        self.reason = reason
        self.status_code = status_code


class InsufficientDataError(ApplicationError):
    """Raised when a spreadsheet has no data row below its headers."""

    def __init__(self, source_id: str, rows: int) -> None:
        super().__init__(f"Spreadsheet does not contain enough data ({rows} row(s))")
        self.source_id = source_id
        self.rows = rows
