"""
Webcam stream owned by a capture session.
"""
import logging
from typing import Optional

import cv2
import numpy as np

from .config import CameraConfig
from .errors import CameraAccessError

logger = logging.getLogger(__name__)


class CameraStream:
    """OpenCV VideoCapture wrapper with an explicit open/release lifecycle."""

    def __init__(self, cfg: CameraConfig):
        """Initialize with camera configuration; the device is not touched yet."""
        self.cfg = cfg
        self.cap: Optional[cv2.VideoCapture] = None

    @property
    def is_open(self) -> bool:
        return self.cap is not None and self.cap.isOpened()

    def open(self) -> None:
        """
        Open the device at the requested resolution.

        Raises:
            CameraAccessError: if the device cannot be opened
        """
        cap = cv2.VideoCapture(self.cfg.index)
        if not cap.isOpened():
            cap.release()
            raise CameraAccessError(f"Failed to open camera {self.cfg.index}")

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.cfg.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.cfg.height)
        cap.set(cv2.CAP_PROP_FPS, self.cfg.fps)
        self.cap = cap

        actual_width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info(f"🎥 Camera {self.cfg.index} opened at {actual_width}x{actual_height}")

    def read(self) -> Optional[np.ndarray]:
        """Return the next frame (mirrored if configured), or None on a read miss."""
        if self.cap is None:
            return None
        ret, frame = self.cap.read()
        if not ret or frame is None:
            return None
        if self.cfg.mirror:
            frame = cv2.flip(frame, 1)
        return frame

    def release(self) -> None:
        """Release the device. Safe to call more than once."""
        if self.cap is None:
            return
        cap, self.cap = self.cap, None
        cap.release()
        logger.info(f"Camera {self.cfg.index} released")
