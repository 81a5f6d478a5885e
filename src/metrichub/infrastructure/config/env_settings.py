"""Environment-backed settings provider."""

import os
from typing import Dict, Mapping, Optional

from metrichub.application.ports import SettingsProvider


class EnvSettingsProvider(SettingsProvider):
    """
    Reads settings from process environment variables.

    Values are snapshotted at construction; refresh_cache re-reads them.
    An explicit mapping replaces the environment (tests, scripts).
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None, prefix: str = "METRICHUB_"):
        self._environ = environ
        self._prefix = prefix
        self._values: Dict[str, str] = {}
        self.refresh_cache()

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Prefixed name wins over the bare name (METRICHUB_LOG_LEVEL over LOG_LEVEL)."""
        prefixed = f"{self._prefix}{key}"
        if prefixed in self._values:
            return self._values[prefixed]
        return self._values.get(key, default)

    def refresh_cache(self) -> None:
        source = self._environ if self._environ is not None else os.environ
        self._values = dict(source)
