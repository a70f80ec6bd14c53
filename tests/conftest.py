from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, time
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
import pytest

from src.smart_attendance.smart_attendance.attendance.model import AttendanceRecord, RFIDEvent
from src.smart_attendance.smart_attendance.attendance.orchestrator import VerificationOrchestrator
from src.smart_attendance.smart_attendance.attendance.retry import RetryController
from src.smart_attendance.smart_attendance.classrooms.model import Camera, Classroom
from src.smart_attendance.smart_attendance.core.enums import RecordStatus, Role, VerificationMethod
from src.smart_attendance.smart_attendance.face.model import FaceMatchResult
from src.smart_attendance.smart_attendance.notifications.model import NotificationEvent
from src.smart_attendance.smart_attendance.notifications.service import NotificationDispatcher
from src.smart_attendance.smart_attendance.timetable.model import TimetablePeriod
from src.smart_attendance.smart_attendance.users.model import User

# Monday
TAP_TIME = datetime(2025, 3, 3, 9, 0, 0)


@dataclass
class InMemoryUsers:
    users: Dict[str, User]

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def find_active_by_rfid(self, card_id: str, *, role: Role) -> Optional[User]:
        for u in self.users.values():
            if u.rfid_card_id == card_id and u.role == role and u.is_active:
                return u
        return None

    def list_by_role(self, role: Role) -> Sequence[User]:
        return [u for u in self.users.values() if u.role == role and u.is_active]


@dataclass
class InMemoryClassrooms:
    classrooms: Dict[str, Classroom]

    def get_by_id(self, classroom_id: str) -> Optional[Classroom]:
        return self.classrooms.get(classroom_id)


@dataclass
class InMemoryCameras:
    cameras: Dict[str, Camera]
    lookups: int = 0

    def find_online_for_classroom(self, classroom_id: str) -> Optional[Camera]:
        self.lookups += 1
        cam = self.cameras.get(classroom_id)
        return cam if cam and cam.is_online else None


@dataclass
class InMemoryTimetable:
    periods: List[TimetablePeriod]

    def find_period(self, *, classroom_id: str, day_of_week: int, at: time) -> Optional[TimetablePeriod]:
        for p in self.periods:
            if p.classroom_id == classroom_id and p.day_of_week == day_of_week and p.covers(at):
                return p
        return None


class InMemoryAttendance:
    """Mirrors the MySQL repository: updates only touch rows still pending."""

    def __init__(self, *, failing_creates: int = 0, failing_updates: int = 0):
        self.records: Dict[str, AttendanceRecord] = {}
        self.created: List[AttendanceRecord] = []
        self.updates: List[dict] = []
        self.failing_creates = failing_creates
        self.failing_updates = failing_updates

    def create(self, record: AttendanceRecord) -> None:
        if self.failing_creates > 0:
            self.failing_creates -= 1
            raise ConnectionError("database unavailable")
        self.records[record.id] = record
        self.created.append(record)

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
        if self.failing_updates > 0:
            self.failing_updates -= 1
            raise ConnectionError("database unavailable")
        current = self.records.get(record_id)
        if current is None or current.status != RecordStatus.PENDING:
            return False
        self.updates.append({"record_id": record_id, "status": status})
        self.records[record_id] = replace(
            current,
            status=status,
            verification_method=verification_method,
            face_verified=face_verified,
            confidence_score=confidence_score,
            retry_count=retry_count,
        )
        return True

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        return self.records.get(record_id)

    def list_recent(self, *, limit: int, classroom_id: Optional[str] = None) -> Sequence[AttendanceRecord]:
        items = [r for r in self.records.values() if classroom_id is None or r.classroom_id == classroom_id]
        items.sort(key=lambda r: r.timestamp, reverse=True)
        return items[:limit]


class InMemoryAlerts:
    def __init__(self, *, fail: bool = False):
        self.events: List[NotificationEvent] = []
        self.fail = fail

    def insert(self, event: NotificationEvent) -> None:
        if self.fail:
            raise ConnectionError("alerts table unavailable")
        self.events.append(event)


class StaticFrames:
    def __init__(self, frame: Optional[np.ndarray] = None):
        self.frame = np.zeros((8, 8, 3), dtype=np.uint8) if frame is None else frame
        self.calls = 0

    def grab(self, camera: Camera) -> Optional[np.ndarray]:
        self.calls += 1
        return self.frame


class ScriptedMatcher:
    """Returns the scripted results in order, then no match forever."""

    def __init__(self, results: Sequence[FaceMatchResult] = ()):
        self.results = list(results)
        self.calls = 0

    def match_face(self, frame: np.ndarray, student_id: str, threshold: float) -> FaceMatchResult:
        self.calls += 1
        if self.results:
            return self.results.pop(0)
        return FaceMatchResult.no_match(student_id)


@dataclass
class World:
    users: InMemoryUsers
    classrooms: InMemoryClassrooms
    cameras: InMemoryCameras
    timetable: InMemoryTimetable
    attendance: InMemoryAttendance = field(default_factory=InMemoryAttendance)
    alerts: InMemoryAlerts = field(default_factory=InMemoryAlerts)
    frames: StaticFrames = field(default_factory=StaticFrames)
    matcher: ScriptedMatcher = field(default_factory=ScriptedMatcher)
    clock: Callable[[], datetime] = lambda: TAP_TIME

    def dispatcher(self) -> NotificationDispatcher:
        return NotificationDispatcher(self.alerts, self.users, self.classrooms, self.timetable, clock=self.clock)

    def orchestrator(self, **kwargs) -> VerificationOrchestrator:
        kwargs.setdefault("persist_backoff_seconds", 0.0)
        return VerificationOrchestrator(
            self.attendance,
            self.users,
            self.timetable,
            RetryController(self.cameras, self.frames, self.matcher),
            self.dispatcher(),
            **kwargs,
        )


def _tap(card_id: str = "CARD-S1", classroom_id: str = "room-1", **extra) -> RFIDEvent:
    return RFIDEvent(device_id="reader-1", card_id=card_id, classroom_id=classroom_id, timestamp=TAP_TIME, **extra)


@pytest.fixture
def tap() -> Callable[..., RFIDEvent]:
    return _tap


@pytest.fixture
def world() -> World:
    users = {
        "s1": User("s1", "Alice Student", "alice@school.test", Role.STUDENT, rfid_card_id="CARD-S1"),
        "s2": User("s2", "Bob Student", "bob@school.test", Role.STUDENT, rfid_card_id="CARD-S2"),
        "gone": User("gone", "Old Student", "old@school.test", Role.STUDENT, rfid_card_id="CARD-OLD", is_active=False),
        "t-period": User("t-period", "Period Teacher", "tp@school.test", Role.TEACHER),
        "t-room": User("t-room", "Room Teacher", "tr@school.test", Role.TEACHER, rfid_card_id="CARD-T"),
        "a1": User("a1", "Admin One", "a1@school.test", Role.ADMIN),
        "a2": User("a2", "Admin Two", "a2@school.test", Role.ADMIN),
    }
    return World(
        users=InMemoryUsers(users),
        classrooms=InMemoryClassrooms(
            {
                "room-1": Classroom("room-1", "Room 1", assigned_teacher_id="t-room"),
                "room-2": Classroom("room-2", "Room 2", assigned_teacher_id="t-period"),
            }
        ),
        cameras=InMemoryCameras({"room-1": Camera("cam-1", "Front", "rtsp://cam-1", "room-1", is_online=True)}),
        timetable=InMemoryTimetable(
            [
                TimetablePeriod("tt-1", "room-1", "Algebra", 0, time(8, 0), time(10, 0), teacher_id="t-period"),
                TimetablePeriod("tt-2", "room-2", "Biology", 0, time(8, 0), time(10, 0), teacher_id="t-period"),
            ]
        ),
    )
