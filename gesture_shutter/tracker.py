"""
Hand landmark detection using the MediaPipe HandLandmarker task.
"""
import logging
from pathlib import Path
from typing import List, Optional, Union

import cv2
import mediapipe as mp
import numpy as np
import requests
from mediapipe.tasks.python import BaseOptions
from mediapipe.tasks.python import vision

from .config import MediaPipeConfig
from .errors import ModelLoadError
from .types import Landmark

logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK_SIZE = 1 << 16


def ensure_model(path: Union[str, Path], url: Optional[str] = None, timeout: float = 30.0) -> Path:
    """
    Make sure the model bundle exists locally, downloading it if needed.

    Args:
        path: Where the .task bundle lives
        url: Download source used when the file is missing
        timeout: Per-request timeout in seconds

    Returns:
        Path to the model bundle

    Raises:
        ModelLoadError: if the file is missing and cannot be downloaded
    """
    model_path = Path(path)
    if model_path.exists():
        return model_path
    if not url:
        raise ModelLoadError(f"Hand landmark model not found: {model_path}")

    logger.info(f"⏬ Downloading hand landmark model from {url}")
    model_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = model_path.with_suffix(model_path.suffix + ".tmp")
    try:
        with requests.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            with open(temp_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    f.write(chunk)
        temp_path.replace(model_path)
    except (requests.RequestException, OSError) as e:
        temp_path.unlink(missing_ok=True)
        raise ModelLoadError(f"Failed to download hand landmark model: {e}") from e

    logger.info(f"✅ Model saved to {model_path}")
    return model_path


class HandsTracker:
    """Hand landmark tracker using MediaPipe HandLandmarker in VIDEO mode."""

    def __init__(self, cfg: MediaPipeConfig):
        """
        Load the model.

        Args:
            cfg: MediaPipe configuration

        Raises:
            ModelLoadError: if the model cannot be fetched or initialised
        """
        self.cfg = cfg
        model_path = ensure_model(cfg.model_path, cfg.model_url)

        delegate = BaseOptions.Delegate.GPU if cfg.delegate == "GPU" else BaseOptions.Delegate.CPU
        options = vision.HandLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=str(model_path), delegate=delegate),
            running_mode=vision.RunningMode.VIDEO,
            num_hands=cfg.num_hands,
            min_hand_detection_confidence=cfg.min_hand_detection_confidence,
            min_hand_presence_confidence=cfg.min_hand_presence_confidence,
            min_tracking_confidence=cfg.min_tracking_confidence
        )
        try:
            self._landmarker = vision.HandLandmarker.create_from_options(options)
        except (RuntimeError, ValueError) as e:
            raise ModelLoadError(f"Failed to initialise hand landmarker: {e}") from e
        logger.info(f"✅ Hand landmark model loaded ({cfg.delegate})")

    def detect(self, frame_bgr: np.ndarray, timestamp_ms: int) -> Optional[List[Landmark]]:
        """
        Process a frame and return hand landmarks.

        Args:
            frame_bgr: Input frame in BGR format
            timestamp_ms: Strictly increasing frame timestamp

        Returns:
            List of 21 landmarks in [0..1] range, or None if no hand detected
        """
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)
        result = self._landmarker.detect_for_video(mp_image, timestamp_ms)

        if not result.hand_landmarks:
            return None

        return [Landmark(lm.x, lm.y, lm.z) for lm in result.hand_landmarks[0]]

    def close(self) -> None:
        """Release the landmarker."""
        self._landmarker.close()
        logger.info("Hand landmark model released")
