from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Iterable

from werkzeug.security import generate_password_hash

from ..core.constants import ATTENDANCE_CONFIG_KEY
from ..settings.model import DEFAULT_CONFIG
from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql usable regardless of the configured database name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal splitter: ';' ends a statement unless quoted; '--' comments dropped.
    buf: list[str] = []
    quote: str | None = None
    escape = False

    for line in sql.splitlines(keepends=True):
        if quote is None and line.lstrip().startswith("--"):
            continue
        for ch in line:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif quote is not None:
                if ch == quote:
                    quote = None
            elif ch in ("'", '"'):
                quote = ch
            elif ch == ";":
                stmt = "".join(buf).strip()
                buf.clear()
                if stmt:
                    yield stmt
                continue
            buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    conn_factory = DatabaseConnection(DBConfig.from_mapping(db_config))
    conn = conn_factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{conn_factory.config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def _run_script(db_config: dict, path: str | Path) -> None:
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))
    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    _run_script(db_config, schema_path)
    logger.info("Schema applied from %s", schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    _run_script(db_config, seed_path)
    logger.info("Seed applied from %s", seed_path)


def ensure_demo_data(db_config: dict) -> None:
    """Idempotent demo rows: admin, teacher, student with RFID card, classroom, camera, default policy."""

    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor(dictionary=True)

        def upsert_user(user_id: str, full_name: str, email: str, password: str, role: str, rfid_card_id=None) -> None:
            cur.execute(
                """
                INSERT INTO users(user_id, full_name, email, password_hash, role, rfid_card_id, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,1)
                ON DUPLICATE KEY UPDATE full_name=VALUES(full_name), role=VALUES(role),
                    rfid_card_id=VALUES(rfid_card_id), is_active=1
                """,
                (user_id, full_name, email, generate_password_hash(password), role, rfid_card_id),
            )

        upsert_user("user-admin", "System Administrator", "admin@institute.edu", "Admin@123", "admin")
        upsert_user("user-teacher", "John Teacher", "teacher@institute.edu", "Teacher@123", "teacher")
        upsert_user("user-student", "Jane Student", "student@institute.edu", "Student@123", "student", "CARD0001")

        cur.execute(
            """
            INSERT INTO classrooms(classroom_id, name, assigned_teacher_id, is_active)
            VALUES('room-101', 'Room 101', 'user-teacher', 1)
            ON DUPLICATE KEY UPDATE assigned_teacher_id=VALUES(assigned_teacher_id)
            """
        )
        cur.execute(
            """
            INSERT INTO cameras(camera_id, camera_name, stream_url, classroom_id, is_online)
            VALUES('cam-101', 'Room 101 front', '0', 'room-101', 1)
            ON DUPLICATE KEY UPDATE stream_url=VALUES(stream_url)
            """
        )
        cur.execute(
            """
            INSERT IGNORE INTO settings(setting_key, setting_value)
            VALUES(%s, %s)
            """,
            (ATTENDANCE_CONFIG_KEY, json.dumps(DEFAULT_CONFIG.to_dict())),
        )

        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
