from __future__ import annotations

from typing import Protocol

from .model import NotificationEvent


class AlertRepository(Protocol):
    def insert(self, event: NotificationEvent) -> None:
        raise NotImplementedError
