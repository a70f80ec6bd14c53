from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..model import AttendanceRecord


@dataclass(frozen=True)
class ModeDecision:
    """What to do with a freshly built record.

    record=None means the tap produces no attendance row at all.
    """

    record: Optional[AttendanceRecord]
    requires_face: bool = False


class VerificationStrategy(ABC):
    """Strategy Pattern: encapsulate how one authentication mode treats an RFID tap."""

    @abstractmethod
    def decide(self, record: AttendanceRecord) -> ModeDecision:
        raise NotImplementedError
