from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import FrozenSet

from ..core.enums import NotificationType, Severity


@dataclass(frozen=True)
class NotificationEvent:
    """Alert emitted once per terminal verification failure. Write-only."""

    id: str
    type: NotificationType
    student_id: str
    classroom_id: str
    timestamp: datetime
    message: str
    recipients: FrozenSet[str]
    severity: Severity = Severity.MEDIUM

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "student_id": self.student_id,
            "classroom_id": self.classroom_id,
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
            "recipients": sorted(self.recipients),
            "severity": self.severity.value,
        }
