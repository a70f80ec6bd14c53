from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import new_id, now_local, parse_iso_datetime
from ..common.validators import require_non_empty
from ..core.enums import RecordStatus, VerificationMethod
from ..core.exceptions import DomainError, ValidationError


@dataclass(frozen=True)
class RFIDEvent:
    """A card tap reported by a reader. Consumed exactly once by the orchestrator."""

    device_id: str
    card_id: str
    classroom_id: str
    timestamp: datetime
    student_id: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RFIDEvent":
        if not isinstance(payload, Mapping):
            raise ValidationError("RFID event payload must be a JSON object")

        raw_ts = payload.get("timestamp")
        if raw_ts is not None and not isinstance(raw_ts, str):
            raise ValidationError(f"timestamp must be an ISO-8601 string, got {raw_ts!r}")
        try:
            timestamp = parse_iso_datetime(raw_ts) if raw_ts else now_local()
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid timestamp: {raw_ts!r}") from None

        return cls(
            device_id=str(payload.get("device_id") or "").strip(),
            card_id=require_non_empty(payload.get("card_id"), "card_id"),
            classroom_id=require_non_empty(payload.get("classroom_id"), "classroom_id"),
            timestamp=timestamp,
            student_id=(str(payload["student_id"]).strip() or None) if payload.get("student_id") else None,
        )


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance verdict for a student in a classroom.

    Transitions are made with ``advance`` which refuses to touch a terminal record.
    """

    id: str
    student_id: str
    classroom_id: str
    timestamp: datetime
    verification_method: VerificationMethod
    status: RecordStatus
    rfid_verified: bool = True
    face_verified: bool = False
    timetable_id: Optional[str] = None
    confidence_score: Optional[float] = None
    retry_count: int = 0

    @classmethod
    def pending(
        cls,
        *,
        student_id: str,
        classroom_id: str,
        timestamp: datetime,
        timetable_id: Optional[str] = None,
    ) -> "AttendanceRecord":
        return cls(
            id=new_id(),
            student_id=student_id,
            classroom_id=classroom_id,
            timetable_id=timetable_id,
            timestamp=timestamp,
            verification_method=VerificationMethod.RFID_ONLY,
            status=RecordStatus.PENDING,
            rfid_verified=True,
            face_verified=False,
            retry_count=0,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def advance(self, **changes) -> "AttendanceRecord":
        if self.is_terminal:
            raise DomainError(f"Attendance record {self.id} is already {self.status.value}")
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "student_id": self.student_id,
            "classroom_id": self.classroom_id,
            "timetable_id": self.timetable_id,
            "timestamp": self.timestamp.isoformat(),
            "verification_method": self.verification_method.value,
            "rfid_verified": self.rfid_verified,
            "face_verified": self.face_verified,
            "status": self.status.value,
            "confidence_score": self.confidence_score,
            "retry_count": self.retry_count,
        }
