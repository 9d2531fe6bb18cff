"""
Configuration management for the gesture-confirmed capture controller.
"""
import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass

from dotenv import load_dotenv

from .errors import ConfigError

CONFIG_ENV_VAR = "GESTURE_SHUTTER_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.default.yaml"


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int
    width: int
    height: int
    fps: int
    mirror: bool  # selfie view; the handedness heuristic assumes this convention
    max_read_failures: int


@dataclass
class MediaPipeConfig:
    """MediaPipe HandLandmarker configuration settings."""
    model_path: str
    model_url: Optional[str]
    num_hands: int
    min_hand_detection_confidence: float
    min_hand_presence_confidence: float
    min_tracking_confidence: float
    delegate: str


@dataclass
class ChallengeConfig:
    """Finger-count challenge configuration."""
    stages: List[int]
    hold_ms: int
    countdown_seconds: int
    tick_interval_s: float


@dataclass
class CaptureConfig:
    """Still image output configuration."""
    jpeg_quality: int
    filename_prefix: str
    output_dir: str


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    show_preview: bool
    show_landmarks: bool
    window_name: str


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str
    progress_log_interval_ms: int
    finger_report_interval_ms: int


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig
    mediapipe: MediaPipeConfig
    challenge: ChallengeConfig
    capture: CaptureConfig
    display: DisplayConfig
    logging: LoggingConfig


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses $GESTURE_SHUTTER_CONFIG
              and falls back to the packaged config.default.yaml

    Returns:
        Configuration object with all settings
    """
    if path is None:
        load_dotenv()
        path = os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    cfg = _dict_to_config(data)
    validate_config(cfg)
    return cfg


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name)
    if not isinstance(section, dict):
        raise ConfigError(f"Missing config section: {name}")
    return section


def _require(section: Dict[str, Any], section_name: str, key: str) -> Any:
    if key not in section:
        raise ConfigError(f"Missing config key: {section_name}.{key}")
    return section[key]


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    camera_data = _section(data, 'camera')
    camera = CameraConfig(
        index=int(_require(camera_data, 'camera', 'index')),
        width=int(_require(camera_data, 'camera', 'width')),
        height=int(_require(camera_data, 'camera', 'height')),
        fps=int(camera_data.get('fps', 30)),
        mirror=bool(camera_data.get('mirror', True)),
        max_read_failures=int(camera_data.get('max_read_failures', 30))
    )

    mp_data = _section(data, 'mediapipe')
    mediapipe = MediaPipeConfig(
        model_path=str(_require(mp_data, 'mediapipe', 'model_path')),
        model_url=mp_data.get('model_url'),
        num_hands=int(mp_data.get('num_hands', 1)),
        min_hand_detection_confidence=float(mp_data.get('min_hand_detection_confidence', 0.5)),
        min_hand_presence_confidence=float(mp_data.get('min_hand_presence_confidence', 0.5)),
        min_tracking_confidence=float(mp_data.get('min_tracking_confidence', 0.5)),
        delegate=str(mp_data.get('delegate', 'CPU')).upper()
    )

    challenge_data = _section(data, 'challenge')
    challenge = ChallengeConfig(
        stages=[int(s) for s in _require(challenge_data, 'challenge', 'stages')],
        hold_ms=int(_require(challenge_data, 'challenge', 'hold_ms')),
        countdown_seconds=int(challenge_data.get('countdown_seconds', 3)),
        tick_interval_s=float(challenge_data.get('tick_interval_s', 1.0))
    )

    capture_data = _section(data, 'capture')
    capture = CaptureConfig(
        jpeg_quality=int(capture_data.get('jpeg_quality', 95)),
        filename_prefix=str(capture_data.get('filename_prefix', 'photo')),
        output_dir=str(capture_data.get('output_dir', 'captures'))
    )

    display_data = data.get('display') or {}
    display = DisplayConfig(
        show_preview=bool(display_data.get('show_preview', True)),
        show_landmarks=bool(display_data.get('show_landmarks', True)),
        window_name=str(display_data.get('window_name', 'Take Photo'))
    )

    logging_data = data.get('logging') or {}
    logging_cfg = LoggingConfig(
        level=str(logging_data.get('level', 'INFO')).upper(),
        progress_log_interval_ms=int(logging_data.get('progress_log_interval_ms', 500)),
        finger_report_interval_ms=int(logging_data.get('finger_report_interval_ms', 1000))
    )

    return Cfg(
        camera=camera,
        mediapipe=mediapipe,
        challenge=challenge,
        capture=capture,
        display=display,
        logging=logging_cfg
    )


def validate_config(cfg: Cfg) -> None:
    """Raise ConfigError if any setting is out of range."""
    stages = cfg.challenge.stages
    if not stages:
        raise ConfigError("challenge.stages must not be empty")
    if any(s < 0 or s > 5 for s in stages):
        raise ConfigError(f"challenge.stages must be finger counts 0-5, got {stages}")
    if any(b <= a for a, b in zip(stages, stages[1:])):
        raise ConfigError(f"challenge.stages must be strictly increasing, got {stages}")
    if cfg.challenge.hold_ms <= 0:
        raise ConfigError("challenge.hold_ms must be positive")
    if cfg.challenge.countdown_seconds < 1:
        raise ConfigError("challenge.countdown_seconds must be at least 1")
    if cfg.challenge.tick_interval_s <= 0:
        raise ConfigError("challenge.tick_interval_s must be positive")
    if not 0 <= cfg.capture.jpeg_quality <= 100:
        raise ConfigError("capture.jpeg_quality must be within 0-100")
    if cfg.mediapipe.delegate not in ("CPU", "GPU"):
        raise ConfigError(f"mediapipe.delegate must be CPU or GPU, got {cfg.mediapipe.delegate}")
    if cfg.camera.max_read_failures < 1:
        raise ConfigError("camera.max_read_failures must be at least 1")
