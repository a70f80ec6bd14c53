from __future__ import annotations

import json
import logging
import threading
from typing import Dict, Optional

import numpy as np

from .model import StudentFaceData
from .repository import FaceDataRepository

logger = logging.getLogger(__name__)


class FaceDataCache:
    """Process-wide cache of enrolled student faces.

    Two distinct states: not loaded (``is_loaded`` is False) and loaded, which may
    hold zero faces. ``get`` loads lazily on first use; ``invalidate`` drops
    everything so the next access reloads from the repository.
    """

    def __init__(self, source: FaceDataRepository):
        self._source = source
        self._lock = threading.Lock()
        self._faces: Optional[Dict[str, StudentFaceData]] = None

    @property
    def is_loaded(self) -> bool:
        return self._faces is not None

    def load(self) -> int:
        faces: Dict[str, StudentFaceData] = {}
        for row in self._source.list_enrolled():
            student_id = str(row["student_id"])
            try:
                encoding = np.asarray(json.loads(row["face_encoding"]), dtype=np.float64)
            except (TypeError, ValueError):
                logger.warning("Student %s has an unreadable face encoding, skipped", student_id)
                continue
            if encoding.ndim != 1 or encoding.size == 0:
                logger.warning("Student %s has a malformed face encoding (shape=%s), skipped", student_id, encoding.shape)
                continue
            faces[student_id] = StudentFaceData(student_id=student_id, full_name=row.get("full_name") or "", encoding=encoding)

        with self._lock:
            self._faces = faces
        logger.info("Loaded %d enrolled faces", len(faces))
        return len(faces)

    def invalidate(self) -> None:
        with self._lock:
            self._faces = None

    def reload(self) -> int:
        self.invalidate()
        return self.load()

    def get(self, student_id: str) -> Optional[StudentFaceData]:
        if not self.is_loaded:
            self.load()
        with self._lock:
            return (self._faces or {}).get(student_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._faces or {})
