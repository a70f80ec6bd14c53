from __future__ import annotations

from ...core.enums import VerificationMethod
from ..model import AttendanceRecord
from .base import ModeDecision, VerificationStrategy


class DualAuthStrategy(VerificationStrategy):
    """RFID opens a pending record that a face match must confirm."""

    def decide(self, record: AttendanceRecord) -> ModeDecision:
        return ModeDecision(
            record=record.advance(verification_method=VerificationMethod.RFID_PENDING),
            requires_face=True,
        )
