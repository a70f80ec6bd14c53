from __future__ import annotations

from typing import Optional, Protocol

from .model import Camera, Classroom


class ClassroomRepository(Protocol):
    def get_by_id(self, classroom_id: str) -> Optional[Classroom]:
        raise NotImplementedError


class CameraRepository(Protocol):
    def find_online_for_classroom(self, classroom_id: str) -> Optional[Camera]:
        """Return one online camera mounted in the classroom, if any."""

        raise NotImplementedError
