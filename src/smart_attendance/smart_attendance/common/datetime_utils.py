from __future__ import annotations

from datetime import datetime, time
from uuid import uuid4


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp as sent by RFID readers (a trailing 'Z' is accepted).

    Timestamps with an offset are converted to naive local time, the clock the
    timetable and the DATETIME columns use.
    """
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_hhmm(value: str) -> time:
    """Parse 'HH:MM' or 'HH:MM:SS' into time."""
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time string: {value!r}")
    seconds = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
    return time(hour=int(parts[0]), minute=int(parts[1]), second=seconds)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def new_id() -> str:
    return uuid4().hex
