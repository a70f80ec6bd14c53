from __future__ import annotations

from ...core.enums import RecordStatus, VerificationMethod
from ..model import AttendanceRecord
from .base import ModeDecision, VerificationStrategy


class RfidOnlyStrategy(VerificationStrategy):
    """The card tap alone marks the student present."""

    def decide(self, record: AttendanceRecord) -> ModeDecision:
        return ModeDecision(
            record=record.advance(status=RecordStatus.PRESENT, verification_method=VerificationMethod.RFID_ONLY)
        )


class RfidOrFaceStrategy(RfidOnlyStrategy):
    """Either factor suffices; an RFID tap is therefore handled like rfid_only."""
