from __future__ import annotations

from ..model import AttendanceRecord
from .base import ModeDecision, VerificationStrategy


class FaceOnlyStrategy(VerificationStrategy):
    """Attendance comes from the face pathway only; RFID taps are acknowledged and dropped."""

    def decide(self, record: AttendanceRecord) -> ModeDecision:
        return ModeDecision(record=None)
