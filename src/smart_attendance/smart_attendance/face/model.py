from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class FaceMatchResult:
    matched: bool
    confidence: float
    student_id: Optional[str] = None

    @classmethod
    def no_match(cls, student_id: Optional[str] = None) -> "FaceMatchResult":
        return cls(matched=False, confidence=0.0, student_id=student_id)


@dataclass(frozen=True)
class StudentFaceData:
    """Enrolled face of one student (encoding as produced by the face encoder)."""

    student_id: str
    full_name: str
    encoding: np.ndarray = field(repr=False, compare=False)
