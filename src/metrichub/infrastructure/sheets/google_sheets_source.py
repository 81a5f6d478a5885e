"""Google Sheets source adapter.

Reads one tab of a spreadsheet through the Sheets v4 values API and returns
the raw array of rows. Authentication is an API key (public sheets) or an
OAuth bearer token (service account). Both travel in request headers so
credentials never appear in URLs or the logs.
"""

import time
from typing import Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, Field, SecretStr

from metrichub.application.errors import SheetFetchError
from metrichub.application.ports import SheetRows, SheetSource
from metrichub.shared.logging import get_logger
from metrichub.shared.logging.context import get_correlation_id

logger = get_logger("infrastructure.sheets.google")


class GoogleSheetsConfig(BaseModel):
    """Configuration for the Google Sheets client."""

    api_key: Optional[SecretStr] = Field(default=None, description="Sheets API key")
    access_token: Optional[SecretStr] = Field(default=None, description="OAuth bearer token")
    api_host: str = Field(default="https://sheets.googleapis.com", description="Sheets API host")
    value_range: str = Field(default="A1:Z1000", description="Cell range read from each tab")
    timeout_seconds: float = Field(default=30, gt=0, description="API timeout")
    retries: int = Field(default=2, ge=0, description="Connection retries")


class GoogleSheetsSource(SheetSource):
    """SheetSource backed by the Google Sheets values API."""

    def __init__(
        self,
        config: Optional[GoogleSheetsConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize Google Sheets source.

        Args:
            config: Client configuration
            transport: httpx transport override (tests use httpx.MockTransport)
        """
        self.config = config or GoogleSheetsConfig()

        headers = {"Accept": "application/json"}
        if self.config.access_token is not None:
            headers["Authorization"] = f"Bearer {self.config.access_token.get_secret_value()}"
        if self.config.api_key is not None:
            headers["x-goog-api-key"] = self.config.api_key.get_secret_value()

        self._client = httpx.Client(
            base_url=self.config.api_host,
            headers=headers,
            timeout=self.config.timeout_seconds,
            transport=transport or httpx.HTTPTransport(retries=self.config.retries),
        )

        logger.info(
            "google_sheets_source_initialized",
            api_host=self.config.api_host,
            value_range=self.config.value_range,
            auth="token" if self.config.access_token else ("api_key" if self.config.api_key else "none"),
        )

    def build_range(self, sheet_name: str) -> str:
        """A1 range for a tab, e.g. 'Dashboard'!A1:Z1000."""
        escaped = sheet_name.replace("'", "''")
        return f"'{escaped}'!{self.config.value_range}"

    def fetch_values(self, source_id: str, sheet_name: str) -> SheetRows:
        """
        Fetch the values of one tab.

        Args:
            source_id: Spreadsheet id
            sheet_name: Tab name

        Returns:
            Array of rows, header row first

        Raises:
            SheetFetchError: On missing credentials, transport errors or a non-2xx response
        """
        if self.config.api_key is None and self.config.access_token is None:
            raise SheetFetchError(source_id, "Google Sheets credentials are not configured")

        start_time = time.time()
        path = f"/v4/spreadsheets/{quote(source_id, safe='')}/values/{quote(self.build_range(sheet_name), safe='')}"
        try:
            response = self._client.get(path)
        except httpx.HTTPError as e:
            logger.error(
                "google_sheets_transport_error",
                source_id=source_id,
                sheet_name=sheet_name,
                error_type=e.__class__.__name__,
                duration_ms=(time.time() - start_time) * 1000,
                correlation_id=get_correlation_id(),
            )
            raise SheetFetchError(source_id, f"transport error ({e.__class__.__name__})") from e

        if not response.is_success:
            logger.error(
                "google_sheets_api_error",
                source_id=source_id,
                sheet_name=sheet_name,
                status_code=response.status_code,
                duration_ms=(time.time() - start_time) * 1000,
                correlation_id=get_correlation_id(),
            )
            raise SheetFetchError(
                source_id,
                f"Google Sheets API returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SheetFetchError(source_id, "invalid JSON in Google Sheets response") from e

        rows = (data.get("values") or []) if isinstance(data, dict) else []

        logger.info(
            "google_sheets_values_fetched",
            source_id=source_id,
            sheet_name=sheet_name,
            row_count=len(rows),
            column_count=len(rows[0]) if rows else 0,
            duration_ms=(time.time() - start_time) * 1000,
            correlation_id=get_correlation_id(),
        )
        return rows

    def close(self) -> None:
        self._client.close()
