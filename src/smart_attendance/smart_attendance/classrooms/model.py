from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Classroom:
    classroom_id: str
    name: str
    assigned_teacher_id: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class Camera:
    """A classroom camera; only the stream address matters to verification."""

    camera_id: str
    camera_name: str
    stream_url: str
    classroom_id: Optional[str]
    is_online: bool = False
