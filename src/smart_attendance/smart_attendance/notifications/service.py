from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Set

from ..attendance.model import AttendanceRecord
from ..classrooms.repository import ClassroomRepository
from ..common.datetime_utils import new_id, now_local
from ..core.enums import FailureReason, NotificationType, Role, Severity
from ..timetable.repository import TimetableRepository
from ..users.repository import UserRepository
from .model import NotificationEvent
from .repository import AlertRepository

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Builds and stores one alert per failed verification.

    Recipients are the teacher of the period currently running in the classroom,
    the classroom's assigned teacher and every admin. Dispatch is fire-and-forget:
    nothing raised here ever reaches the verification workflow.
    """

    def __init__(
        self,
        alerts: AlertRepository,
        users: UserRepository,
        classrooms: ClassroomRepository,
        timetable: TimetableRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._alerts = alerts
        self._users = users
        self._classrooms = classrooms
        self._timetable = timetable
        self._clock = clock

    def send_failure_notifications(self, record: AttendanceRecord, reason: FailureReason) -> Optional[NotificationEvent]:
        try:
            event = self.build_event(record, reason)
        except Exception:
            logger.exception("Could not build failure notification for record %s", record.id)
            return None

        try:
            self._alerts.insert(event)
        except Exception:
            logger.exception("Could not store failure notification %s for record %s", event.id, record.id)
            return None

        logger.info("Failure notification %s (%s) sent to %s", event.id, reason.value, sorted(event.recipients))
        return event

    def build_event(self, record: AttendanceRecord, reason: FailureReason) -> NotificationEvent:
        now = self._clock()
        student = self._users.get_by_id(record.student_id)
        name = student.full_name if student else "Unknown"

        return NotificationEvent(
            id=new_id(),
            type=NotificationType.FACE_NOT_DETECTED if reason == FailureReason.NO_CAMERA else NotificationType.ATTENDANCE_FAILURE,
            student_id=record.student_id,
            classroom_id=record.classroom_id,
            timestamp=now,
            message=(
                f"Attendance verification failed for {name}. "
                f"RFID detected but face recognition failed ({reason.value})."
            ),
            recipients=frozenset(self.resolve_recipients(record.classroom_id, now)),
            severity=Severity.MEDIUM,
        )

    def resolve_recipients(self, classroom_id: str, now: datetime) -> Set[str]:
        recipients: Set[str] = set()

        period = self._timetable.find_period(classroom_id=classroom_id, day_of_week=now.weekday(), at=now.time())
        if period and period.teacher_id:
            recipients.add(period.teacher_id)

        classroom = self._classrooms.get_by_id(classroom_id)
        if classroom and classroom.assigned_teacher_id:
            recipients.add(classroom.assigned_teacher_id)

        recipients.update(admin.user_id for admin in self._users.list_by_role(Role.ADMIN))
        return recipients
