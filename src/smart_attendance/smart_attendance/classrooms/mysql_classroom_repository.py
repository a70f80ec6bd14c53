from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Camera, Classroom
from .repository import CameraRepository, ClassroomRepository


class MySQLClassroomRepository(ClassroomRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, classroom_id: str) -> Optional[Classroom]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT classroom_id, name, assigned_teacher_id, is_active
                FROM classrooms
                WHERE classroom_id=%s
                """,
                (classroom_id,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return Classroom(
                classroom_id=str(row["classroom_id"]),
                name=row["name"],
                assigned_teacher_id=row.get("assigned_teacher_id"),
                is_active=bool(row.get("is_active", True)),
            )


class MySQLCameraRepository(CameraRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_online_for_classroom(self, classroom_id: str) -> Optional[Camera]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT camera_id, camera_name, stream_url, classroom_id, is_online
                FROM cameras
                WHERE classroom_id=%s AND is_online=1
                ORDER BY camera_id
                LIMIT 1
                """,
                (classroom_id,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return Camera(
                camera_id=str(row["camera_id"]),
                camera_name=row["camera_name"],
                stream_url=row["stream_url"],
                classroom_id=row.get("classroom_id"),
                is_online=bool(row["is_online"]),
            )
