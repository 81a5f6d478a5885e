"""Test log sanitization."""

import pytest

from metrichub.shared.logging import mask_sensitive_data, sanitize_for_log
from metrichub.shared.logging.sanitizers import MaskingProcessor


class TestSanitizeForLog:
    """Test credential redaction and id masking."""

    @pytest.mark.parametrize("field", ["api_key", "access_token", "Authorization", "client_secret"])
    def test_credentials_are_redacted(self, field):
        assert sanitize_for_log({field: "value"})[field] == "***REDACTED***"

    def test_source_id_is_partially_masked(self):
        sanitized = sanitize_for_log({"source_id": "1AbCdEfGhIjKlMnOpQrStUvWxYz0123456789"})

        assert sanitized["source_id"] == "1AbC***6789"

    def test_cache_key_masks_the_spreadsheet_id(self):
        sanitized = sanitize_for_log({"cache_key": "1AbCdEfGhIjKlMnOpQrStUvWxYz0123456789:Dashboard"})

        assert sanitized["cache_key"] == "1AbC***6789:Dashboard"

    def test_processor_masks_cache_key(self):
        event = MaskingProcessor()(None, "info", {"event": "cache_hit", "cache_key": "1AbCdEfGhIjK:Dashboard"})

        assert event["cache_key"] == "1AbC***hIjK:Dashboard"
        assert "dEfG" not in event["cache_key"]

    def test_url_query_is_dropped(self):
        sanitized = sanitize_for_log({"url": "https://sheets.googleapis.com/v4/spreadsheets/x?key=abc"})

        assert sanitized["url"] == "https://sheets.googleapis.com/v4/spreadsheets/x"

    def test_nested_values(self):
        sanitized = sanitize_for_log({
            "request": {"access_token": "t", "sheet_name": "Dashboard"},
            "items": [{"api_key": "k"}, "plain"],
            "source_id": None,
        })

        assert sanitized["request"] == {"access_token": "***REDACTED***", "sheet_name": "Dashboard"}
        assert sanitized["items"] == [{"api_key": "***REDACTED***"}, "plain"]
        assert sanitized["source_id"] is None

    def test_processor(self):
        event = MaskingProcessor()(None, "info", {"event": "x", "api_key": "k"})

        assert event == {"event": "x", "api_key": "***REDACTED***"}


class TestMaskSensitiveData:

    @pytest.mark.parametrize("data_type,value,expected", [
        ("source_id", "short", "***"),
        ("spreadsheet_id", "1AbCdEfGhIjK", "1AbC***hIjK"),
        ("cache_key", "1AbCdEfGhIjK:Resumo 2024", "1AbC***hIjK:Resumo 2024"),
        ("email", "analista@agencia.com.br", "a***@agencia.com.br"),
        ("email", "ab@x.com", "***@x.com"),
        ("other", "anything", "***MASKED***"),
        ("source_id", "", "***"),
    ])
    def test_masking(self, data_type, value, expected):
        assert mask_sensitive_data(data_type, value) == expected
