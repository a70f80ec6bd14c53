from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from ..classrooms.model import Camera
from ..classrooms.repository import CameraRepository
from ..common.async_utils import run_blocking
from ..face.camera import FrameGrabber
from ..face.matcher import FaceMatcher
from ..face.model import FaceMatchResult
from ..settings.model import AttendanceConfig

logger = logging.getLogger(__name__)


class CancelToken:
    """Cancel handle for one verification loop. Checked before every attempt and every delay."""

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """Wait up to ``seconds``; returns True if cancelled meanwhile."""
        if seconds <= 0:
            await asyncio.sleep(0)
            return self.cancelled
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True


class RetryStatus(str, Enum):
    MATCHED = "matched"
    NO_CAMERA = "no_camera"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RetryOutcome:
    status: RetryStatus
    attempts: int
    confidence: float = 0.0

    @property
    def matched(self) -> bool:
        return self.status == RetryStatus.MATCHED


class RetryController:
    """Serial, bounded face-match loop for one record.

    Attempt 1 runs immediately; attempt n+1 starts only after attempt n finished
    and the configured interval elapsed. A classroom without an online camera
    ends the loop at once.
    """

    def __init__(self, cameras: CameraRepository, frames: FrameGrabber, matcher: FaceMatcher):
        self._cameras = cameras
        self._frames = frames
        self._matcher = matcher

    async def run(self, *, student_id: str, classroom_id: str, config: AttendanceConfig, token: CancelToken) -> RetryOutcome:
        attempt = 0
        best = 0.0

        while True:
            if token.cancelled:
                return RetryOutcome(RetryStatus.CANCELLED, attempt, best)

            attempt += 1
            logger.info("Face verification attempt %d/%d for student %s", attempt, config.face_retry_count, student_id)

            camera = await run_blocking(self._cameras.find_online_for_classroom, classroom_id)
            if camera is None:
                logger.warning("No camera feed available for classroom %s", classroom_id)
                return RetryOutcome(RetryStatus.NO_CAMERA, attempt, best)

            result = await self._attempt(camera, student_id, config.face_match_threshold)
            best = max(best, result.confidence)
            if result.matched and result.confidence >= config.face_match_threshold:
                return RetryOutcome(RetryStatus.MATCHED, attempt, result.confidence)

            if attempt >= config.face_retry_count:
                logger.warning("Face not matched for student %s after %d attempts", student_id, attempt)
                return RetryOutcome(RetryStatus.EXHAUSTED, attempt, best)

            logger.debug("Face not matched, retrying in %dms", config.face_retry_interval_ms)
            if token.cancelled or await token.sleep(config.retry_interval_seconds):
                return RetryOutcome(RetryStatus.CANCELLED, attempt, best)

    async def _attempt(self, camera: Camera, student_id: str, threshold: float) -> FaceMatchResult:
        frame = await run_blocking(self._frames.grab, camera)
        if frame is None:
            return FaceMatchResult.no_match(student_id)

        try:
            return await run_blocking(self._matcher.match_face, frame, student_id, threshold)
        except Exception:
            logger.exception("Face matcher failed for student %s on camera %s", student_id, camera.camera_id)
            return FaceMatchResult.no_match(student_id)
