from __future__ import annotations

import logging
from typing import Optional, Protocol

import cv2
import numpy as np

from ..classrooms.model import Camera

logger = logging.getLogger(__name__)


class FrameGrabber(Protocol):
    def grab(self, camera: Camera) -> Optional[np.ndarray]:
        raise NotImplementedError


class OpenCVFrameGrabber(FrameGrabber):
    """Reads a single frame from a camera stream (RTSP/HTTP URL or device index)."""

    def __init__(self, *, warmup_frames: int = 1):
        self._warmup_frames = max(0, int(warmup_frames))

    def grab(self, camera: Camera) -> Optional[np.ndarray]:
        source = int(camera.stream_url) if camera.stream_url.isdigit() else camera.stream_url
        cap = cv2.VideoCapture(source)
        try:
            if not cap.isOpened():
                logger.warning("Camera %s (%s) could not be opened", camera.camera_id, camera.stream_url)
                return None

            # Network streams often hand out a stale buffered frame first.
            for _ in range(self._warmup_frames):
                cap.grab()

            ok, frame = cap.read()
            if not ok or frame is None:
                logger.warning("Camera %s returned no frame", camera.camera_id)
                return None
            return frame
        finally:
            cap.release()
