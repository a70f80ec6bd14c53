from __future__ import annotations

from datetime import time
from typing import Optional, Protocol

from .model import TimetablePeriod


class TimetableRepository(Protocol):
    def find_period(self, *, classroom_id: str, day_of_week: int, at: time) -> Optional[TimetablePeriod]:
        """Active period of the classroom where start_time <= at <= end_time."""

        raise NotImplementedError
