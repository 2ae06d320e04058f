"""Settings sources backed by the process environment or a plain mapping."""

import os
from typing import Mapping, Optional

from src.application.ports import SettingsSource


class EnvironmentSettingsSource(SettingsSource):
    """Read settings from environment variables, optionally prefixed."""

    def __init__(self, prefix: str = "", environ: Optional[Mapping[str, str]] = None):
        """
        Initialize the environment-backed settings source.

        Args:
            prefix: Prefix prepended to every key (e.g. "PAINEL_")
            environ: Mapping to read from (defaults to os.environ)
        """
        self._prefix = prefix
        self._environ = environ if environ is not None else os.environ

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._environ.get(f"{self._prefix}{key}")
        if value is None or value == "":
            return default
        return value


class DictSettingsSource(SettingsSource):
    """Settings from an explicit mapping, for scripts and tests."""

    def __init__(self, values: Mapping[str, str]):
        self._values = dict(values)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._values.get(key, default)
