from __future__ import annotations

import logging
from typing import Protocol, Sequence

import numpy as np

from .cache import FaceDataCache
from .encoder import FaceEncoder
from .model import FaceMatchResult

logger = logging.getLogger(__name__)


class FaceMatcher(Protocol):
    def match_face(self, frame: np.ndarray, student_id: str, threshold: float) -> FaceMatchResult:
        """``matched`` must equal ``confidence >= threshold``."""

        raise NotImplementedError


def distance_to_similarity(distance: float) -> float:
    """Map a Euclidean embedding distance onto (0, 1]; 0 distance -> 1.0."""
    return 1.0 / (1.0 + max(0.0, float(distance)))


def best_similarity(candidates: Sequence[np.ndarray], known: np.ndarray) -> float:
    if len(candidates) == 0:
        return 0.0
    matrix = np.stack([np.asarray(c, dtype=np.float64) for c in candidates], axis=0)
    if matrix.shape[1] != known.shape[0]:
        logger.warning("Encoding size mismatch: frame=%d enrolled=%d", matrix.shape[1], known.shape[0])
        return 0.0
    distances = np.linalg.norm(matrix - known, axis=1)
    return distance_to_similarity(float(distances.min()))


class EmbeddingFaceMatcher(FaceMatcher):
    """Compares every face in the frame with the student's enrolled encoding."""

    def __init__(self, encoder: FaceEncoder, cache: FaceDataCache):
        self._encoder = encoder
        self._cache = cache

    def match_face(self, frame: np.ndarray, student_id: str, threshold: float) -> FaceMatchResult:
        enrolled = self._cache.get(student_id)
        if enrolled is None:
            logger.warning("No enrolled face for student %s", student_id)
            return FaceMatchResult.no_match(student_id)

        candidates = self._encoder.encode(frame)
        if not candidates:
            return FaceMatchResult.no_match(student_id)

        confidence = best_similarity(candidates, enrolled.encoding)
        return FaceMatchResult(matched=confidence >= threshold, confidence=confidence, student_id=student_id)
