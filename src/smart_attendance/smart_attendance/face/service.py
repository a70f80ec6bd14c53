from __future__ import annotations

import json
import logging

import numpy as np

from ..core.exceptions import NotFoundError, ValidationError
from .cache import FaceDataCache
from .encoder import FaceEncoder, decode_image
from .repository import FaceDataRepository

logger = logging.getLogger(__name__)


class FaceEnrollmentService:
    """Stores a student's reference encoding computed from one photo."""

    def __init__(self, faces: FaceDataRepository, encoder: FaceEncoder, cache: FaceDataCache):
        self._faces = faces
        self._encoder = encoder
        self._cache = cache

    def enroll(self, student_id: str, image: bytes) -> np.ndarray:
        frame = decode_image(image)
        if frame is None:
            raise ValidationError("Image could not be decoded")

        encodings = self._encoder.encode(frame)
        if not encodings:
            raise ValidationError("No face found in the image")
        if len(encodings) > 1:
            raise ValidationError(f"{len(encodings)} faces found in the image, expected exactly one")

        encoding = np.asarray(encodings[0], dtype=np.float64)
        if not self._faces.save_encoding(student_id, json.dumps(encoding.tolist())):
            raise NotFoundError(f"Active student {student_id} not found")

        # Next lookup reloads, so running verifications see the new face.
        self._cache.invalidate()
        logger.info("Face enrolled for student %s (%d dims)", student_id, encoding.size)
        return encoding
