"""
reconciler/collaborators/preferences.py

Settings-backed preference store and mode flags.
Values come from config.settings; runtime overrides are kept in memory.
"""

from typing import Any, Optional

from config import Settings, settings


class SettingsPreferences:
    """Preference reads keyed by name, falling back to config.settings."""

    def __init__(self, source: Optional[Settings] = None) -> None:
        self._source = source or settings
        self._overrides: dict[str, Any] = {}

    def put(self, key: str, value: Any) -> None:
        self._overrides[key] = value

    def _lookup(self, key: str, default: Any) -> Any:
        if key in self._overrides:
            return self._overrides[key]
        return getattr(self._source, key, default)

    def get_bool(self, key: str, default: bool) -> bool:
        value = self._lookup(key, default)
        return value if isinstance(value, bool) else default

    def get_long(self, key: str, default: int) -> int:
        value = self._lookup(key, default)
        if isinstance(value, bool) or not isinstance(value, int):
            return default
        return value


class SettingsRuntimeMode:
    """Client-only and engineering mode flags from config.settings."""

    def __init__(self, source: Optional[Settings] = None) -> None:
        source = source or settings
        self.client_only_mode = source.client_only_mode
        self._engineering = source.engineering_mode

    def engineering_mode(self) -> bool:
        return self._engineering


class SettingsReadingSource:
    """Whether the remote store is the configured glucose source."""

    def __init__(self, source: Optional[Settings] = None) -> None:
        self._source = source or settings

    def is_enabled(self) -> bool:
        return self._source.reading_source_enabled
