from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import RecordStatus, VerificationMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_RECORD_COLUMNS = """
    record_id, student_id, classroom_id, timetable_id, recorded_at,
    verification_method, rfid_verified, face_verified, status, confidence_score, retry_count
"""


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    confidence = r.get("confidence_score")
    return AttendanceRecord(
        id=str(r["record_id"]),
        student_id=str(r["student_id"]),
        classroom_id=str(r["classroom_id"]),
        timetable_id=r.get("timetable_id"),
        timestamp=r["recorded_at"],
        verification_method=VerificationMethod(r["verification_method"]),
        rfid_verified=bool(r["rfid_verified"]),
        face_verified=bool(r["face_verified"]),
        status=RecordStatus(r["status"]),
        confidence_score=float(confidence) if confidence is not None else None,
        retry_count=int(r.get("retry_count") or 0),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, record: AttendanceRecord) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(
                    record_id, student_id, classroom_id, timetable_id, recorded_at,
                    verification_method, rfid_verified, face_verified, status, confidence_score, retry_count
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    record.id,
                    record.student_id,
                    record.classroom_id,
                    record.timetable_id,
                    record.timestamp,
                    record.verification_method.value,
                    int(record.rfid_verified),
                    int(record.face_verified),
                    record.status.value,
                    record.confidence_score,
                    record.retry_count,
                ),
            )

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
        # Terminal rows are never rewritten.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, verification_method=%s, face_verified=%s, confidence_score=%s, retry_count=%s
                WHERE record_id=%s AND status='pending'
                """,
                (status.value, verification_method.value, int(face_verified), confidence_score, retry_count, record_id),
            )
            return cur.rowcount > 0

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE record_id=%s", (record_id,))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_recent(self, *, limit: int, classroom_id: Optional[str] = None) -> Sequence[AttendanceRecord]:
        clauses = []
        params: list[object] = []
        if classroom_id:
            clauses.append("classroom_id=%s")
            params.append(classroom_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records
                {where}
                ORDER BY recorded_at DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]
