from __future__ import annotations

import json

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .model import NotificationEvent
from .repository import AlertRepository


class MySQLAlertRepository(AlertRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(self, event: NotificationEvent) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO alerts(alert_id, alert_type, severity, message, student_id, classroom_id, recipients, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    event.id,
                    event.type.value,
                    event.severity.value,
                    event.message,
                    event.student_id,
                    event.classroom_id,
                    json.dumps(sorted(event.recipients)),
                    event.timestamp,
                ),
            )
