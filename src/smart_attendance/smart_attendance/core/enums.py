from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles known to the attendance system."""

    ADMIN = "admin"
    DEPARTMENT_HEAD = "department_head"
    TEACHER = "teacher"
    STUDENT = "student"
    TECHNICAL_STAFF = "technical_staff"


class AuthMode(str, Enum):
    """How an RFID tap is turned into attendance."""

    RFID_ONLY = "rfid_only"
    FACE_ONLY = "face_only"
    DUAL_AUTH = "dual_auth"
    RFID_OR_FACE = "rfid_or_face"


class VerificationMethod(str, Enum):
    RFID_ONLY = "rfid_only"
    FACE_ONLY = "face_only"
    DUAL_VERIFIED = "dual_verified"
    RFID_PENDING = "rfid_pending"


class RecordStatus(str, Enum):
    """Lifecycle of an attendance record: PENDING -> PRESENT | FAILED."""

    PENDING = "pending"
    PRESENT = "present"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not RecordStatus.PENDING


class FailureReason(str, Enum):
    NO_CAMERA = "no_camera"
    MAX_RETRIES = "max_retries"
    NO_MATCH = "no_match"


class NotificationType(str, Enum):
    ATTENDANCE_FAILURE = "attendance_failure"
    FACE_NOT_DETECTED = "face_not_detected"
    RFID_MISMATCH = "rfid_mismatch"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
