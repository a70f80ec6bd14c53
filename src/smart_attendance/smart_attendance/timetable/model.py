from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional


@dataclass(frozen=True)
class TimetablePeriod:
    """One weekly slot of a classroom timetable. day_of_week: 0=Monday .. 6=Sunday."""

    period_id: str
    classroom_id: str
    subject_name: str
    day_of_week: int
    start_time: time
    end_time: time
    teacher_id: Optional[str] = None

    def covers(self, at: time) -> bool:
        return self.start_time <= at <= self.end_time
