"""
Freezes a frame into an encoded still image.
"""
import logging
import time
from pathlib import Path
from typing import Callable, Union

import cv2
import numpy as np

from .config import CaptureConfig
from .errors import GestureShutterError
from .types import CapturedImage

logger = logging.getLogger(__name__)


class CaptureTrigger:
    """Encodes frames to JPEG at a fixed quality."""

    def __init__(self, cfg: CaptureConfig, clock: Callable[[], float] = time.time):
        """
        Initialize the capture trigger.

        Args:
            cfg: Capture configuration (quality, filename prefix)
            clock: Wall-clock source used for identifiers
        """
        self.cfg = cfg
        self.clock = clock

    def capture(self, frame_bgr: np.ndarray) -> CapturedImage:
        """
        Encode a BGR frame.

        Args:
            frame_bgr: Frame to freeze; it is not modified

        Returns:
            CapturedImage with JPEG bytes and a generated identifier
        """
        if frame_bgr is None or frame_bgr.size == 0:
            raise GestureShutterError("Cannot capture an empty frame")

        ok, buffer = cv2.imencode(".jpg", frame_bgr, [cv2.IMWRITE_JPEG_QUALITY, self.cfg.jpeg_quality])
        if not ok:
            raise GestureShutterError("JPEG encoding failed")

        captured_at = self.clock()
        image_id = f"{self.cfg.filename_prefix}-{round(captured_at * 1000)}"
        height, width = frame_bgr.shape[:2]

        image = CapturedImage(
            image_id=image_id,
            filename=f"{image_id}.jpg",
            data=buffer.tobytes(),
            mime_type="image/jpeg",
            width=width,
            height=height,
            captured_at=captured_at
        )
        logger.info(f"📷 Captured {image.filename} ({width}x{height}, {len(image.data)} bytes)")
        return image


def save_image(image: CapturedImage, output_dir: Union[str, Path]) -> Path:
    """Write a captured image into output_dir and return its path."""
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / image.filename
    path.write_bytes(image.data)
    logger.info(f"💾 Saved {path}")
    return path
