from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import RecordStatus, VerificationMethod
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def create(self, record: AttendanceRecord) -> None:
        raise NotImplementedError

    def update_verification(
        self,
        *,
        record_id: str,
        status: RecordStatus,
        verification_method: VerificationMethod,
        face_verified: bool,
        confidence_score: Optional[float],
        retry_count: int,
    ) -> bool:
        """Atomic single-row update of the verification columns."""

        raise NotImplementedError

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_recent(self, *, limit: int, classroom_id: Optional[str] = None) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
