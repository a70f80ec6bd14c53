from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .repository import FaceDataRepository


class MySQLFaceDataRepository(FaceDataRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_enrolled(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id AS student_id, full_name, face_encoding
                FROM users
                WHERE role='student' AND is_active=1 AND face_encoding IS NOT NULL
                """
            )
            return fetchall(cur)

    def save_encoding(self, student_id: str, face_encoding: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users SET face_encoding=%s
                WHERE user_id=%s AND role='student' AND is_active=1
                """,
                (face_encoding, student_id),
            )
            return cur.rowcount > 0
