from __future__ import annotations

import logging
from typing import List, Optional, Protocol

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class FaceEncoder(Protocol):
    def encode(self, frame: np.ndarray) -> List[np.ndarray]:
        """Return one encoding per face found in the frame (may be empty)."""

        raise NotImplementedError


def to_rgb(img: Optional[np.ndarray]) -> Optional[np.ndarray]:
    """Normalize a decoded OpenCV image (BGR, BGRA or grayscale) into contiguous RGB uint8."""

    if img is None:
        return None
    if img.ndim == 3 and img.shape[2] == 4:
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    elif img.ndim == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)

    rgb = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
    return np.ascontiguousarray(rgb, dtype=np.uint8)


def decode_image(data: bytes) -> Optional[np.ndarray]:
    """Decode encoded image bytes (JPEG/PNG/...) into an OpenCV image, or None."""

    if not data:
        return None
    nparr = np.frombuffer(data, np.uint8)
    return cv2.imdecode(nparr, cv2.IMREAD_UNCHANGED)


class FaceRecognitionEncoder(FaceEncoder):
    """128-d dlib encodings via the ``face_recognition`` package (installed with the ``face`` extra).

    The package is imported on first use so the service can start, and run
    RFID-only modes, on hosts without dlib.
    """

    def __init__(self, *, model: str = "hog", upsample: int = 1):
        self._fr = None
        self._model = model
        self._upsample = int(upsample)

    def _backend(self):
        if self._fr is None:
            import face_recognition

            self._fr = face_recognition
            logger.info("face_recognition backend loaded (model=%s)", self._model)
        return self._fr

    def encode(self, frame: np.ndarray) -> List[np.ndarray]:
        rgb = to_rgb(frame)
        if rgb is None:
            return []

        fr = self._backend()
        boxes = fr.face_locations(rgb, number_of_times_to_upsample=self._upsample, model=self._model)
        if not boxes:
            logger.debug("No face found in frame")
            return []
        return list(fr.face_encodings(rgb, boxes))
