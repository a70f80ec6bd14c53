from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.orchestrator import VerificationOrchestrator
from .attendance.repository import AttendanceRepository
from .attendance.retry import RetryController
from .classrooms.mysql_classroom_repository import MySQLCameraRepository, MySQLClassroomRepository
from .core.constants import ATTEMPT_GRACE_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .face.cache import FaceDataCache
from .face.camera import OpenCVFrameGrabber
from .face.encoder import FaceRecognitionEncoder
from .face.matcher import EmbeddingFaceMatcher
from .face.mysql_face_repository import MySQLFaceDataRepository
from .face.service import FaceEnrollmentService
from .notifications.mysql_alert_repository import MySQLAlertRepository
from .notifications.service import NotificationDispatcher
from .runtime import VerificationRuntime
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.service import SettingsService
from .timetable.mysql_timetable_repository import MySQLTimetableRepository
from .users.mysql_user_repository import MySQLUserRepository


@dataclass(frozen=True)
class Container:
    attendance_repo: AttendanceRepository
    settings_service: SettingsService
    face_cache: FaceDataCache
    face_enrollment: FaceEnrollmentService
    orchestrator: VerificationOrchestrator
    runtime: VerificationRuntime

    conn: Optional[DatabaseConnection] = None


def build_container(
    *,
    db_config: dict,
    submit_timeout: float = 30.0,
    attempt_grace_seconds: float = ATTEMPT_GRACE_SECONDS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    users_repo = MySQLUserRepository(conn)
    classrooms_repo = MySQLClassroomRepository(conn)
    cameras_repo = MySQLCameraRepository(conn)
    timetable_repo = MySQLTimetableRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    alerts_repo = MySQLAlertRepository(conn)

    faces_repo = MySQLFaceDataRepository(conn)
    encoder = FaceRecognitionEncoder()
    face_cache = FaceDataCache(faces_repo)
    matcher = EmbeddingFaceMatcher(encoder, face_cache)
    retry_controller = RetryController(cameras_repo, OpenCVFrameGrabber(), matcher)

    notifier = NotificationDispatcher(alerts_repo, users_repo, classrooms_repo, timetable_repo)
    orchestrator = VerificationOrchestrator(
        attendance_repo,
        users_repo,
        timetable_repo,
        retry_controller,
        notifier,
        attempt_grace_seconds=attempt_grace_seconds,
    )

    return Container(
        conn=conn,
        attendance_repo=attendance_repo,
        settings_service=SettingsService(MySQLSettingsRepository(conn)),
        face_cache=face_cache,
        face_enrollment=FaceEnrollmentService(faces_repo, encoder, face_cache),
        orchestrator=orchestrator,
        runtime=VerificationRuntime(orchestrator, submit_timeout=submit_timeout),
    )
