"""
Gesture Shutter

Reads webcam frames, detects hand landmarks using MediaPipe, and takes a
photo once the user has held up 1, then 2, then 3 fingers, followed by a
3-2-1 countdown.
"""

__version__ = "0.1.0"

from .types import (
    Landmark,
    Handedness,
    HandReading,
    SequencerState,
    CapturedImage,
    SessionPhase,
    SessionSnapshot,
    HandDetectorProto,
    CameraProto,
)
from .errors import GestureShutterError, ModelLoadError, CameraAccessError, ConfigError
from .config import load_config, Cfg
from .landmarks import classify_hand, count_extended_fingers, detect_handedness
from .gestures import HoldTimer, StageSequencer
from .countdown import CountdownController
from .capture import CaptureTrigger, save_image
from .session import CaptureSession

__all__ = [
    "Landmark",
    "Handedness",
    "HandReading",
    "SequencerState",
    "CapturedImage",
    "SessionPhase",
    "SessionSnapshot",
    "HandDetectorProto",
    "CameraProto",
    "GestureShutterError",
    "ModelLoadError",
    "CameraAccessError",
    "ConfigError",
    "load_config",
    "Cfg",
    "classify_hand",
    "count_extended_fingers",
    "detect_handedness",
    "HoldTimer",
    "StageSequencer",
    "CountdownController",
    "CaptureTrigger",
    "save_image",
    "CaptureSession",
]
