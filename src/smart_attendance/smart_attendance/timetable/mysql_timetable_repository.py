from __future__ import annotations

from datetime import time
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_time
from .model import TimetablePeriod
from .repository import TimetableRepository


class MySQLTimetableRepository(TimetableRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_period(self, *, classroom_id: str, day_of_week: int, at: time) -> Optional[TimetablePeriod]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT period_id, classroom_id, teacher_id, subject_name, day_of_week, start_time, end_time
                FROM timetable
                WHERE classroom_id=%s AND day_of_week=%s
                  AND start_time <= %s AND end_time >= %s
                  AND is_active=1
                ORDER BY start_time DESC
                LIMIT 1
                """,
                (classroom_id, int(day_of_week), at, at),
            )
            row = fetchone(cur)
            if not row:
                return None
            return TimetablePeriod(
                period_id=str(row["period_id"]),
                classroom_id=str(row["classroom_id"]),
                teacher_id=row.get("teacher_id"),
                subject_name=row["subject_name"],
                day_of_week=int(row["day_of_week"]),
                start_time=normalize_mysql_time(row["start_time"]),
                end_time=normalize_mysql_time(row["end_time"]),
            )
