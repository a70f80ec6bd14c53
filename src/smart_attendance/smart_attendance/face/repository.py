from __future__ import annotations

from typing import Protocol, Sequence


class FaceDataRepository(Protocol):
    def list_enrolled(self) -> Sequence[dict]:
        """Rows of active students with a stored encoding.

        Keys: student_id, full_name, face_encoding (JSON array text).
        """

        raise NotImplementedError

    def save_encoding(self, student_id: str, face_encoding: str) -> bool:
        """Store the JSON encoding on an active student; False when no such student."""

        raise NotImplementedError
