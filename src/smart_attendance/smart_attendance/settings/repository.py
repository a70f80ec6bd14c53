from __future__ import annotations

from typing import Optional, Protocol


class SettingsRepository(Protocol):
    """Key/value store for opaque settings blobs (JSON text)."""

    def get_value(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_value(self, key: str, value: str) -> None:
        raise NotImplementedError
