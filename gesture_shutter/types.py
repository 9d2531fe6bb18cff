"""
Type definitions for the gesture-confirmed capture controller.
"""
import enum
from dataclasses import dataclass, field
from typing import FrozenSet, NamedTuple, Optional, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np


class Landmark(NamedTuple):
    """One tracked hand point in normalized image coordinates."""
    x: float
    y: float
    z: float = 0.0


Hand = Sequence[Landmark]


class Handedness(str, enum.Enum):
    """Which thumb test applies to the tracked hand."""
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class HandReading:
    """Result of classifying one hand."""
    count: int
    handedness: Optional[Handedness]
    extended: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SequencerState:
    """Snapshot of the stage sequencer.

    ``active_stage`` is None once every stage is completed.
    """
    active_stage: Optional[int]
    hold_start: Optional[float]
    completed: FrozenSet[int] = frozenset()

    @property
    def all_complete(self) -> bool:
        return self.active_stage is None


@dataclass(frozen=True)
class CapturedImage:
    """Encoded still handed to the consumer."""
    image_id: str
    filename: str
    data: bytes
    mime_type: str
    width: int
    height: int
    captured_at: float


class SessionPhase(str, enum.Enum):
    """Lifecycle of a capture session."""
    IDLE = "idle"
    LOADING = "loading"
    RUNNING = "running"
    COUNTDOWN = "countdown"
    CAPTURED = "captured"
    CLOSED = "closed"
    FAILED = "failed"


@dataclass(frozen=True)
class SessionSnapshot:
    """Everything a view needs to render the capture screen."""
    phase: SessionPhase
    stages: Tuple[int, ...]
    current_stage: Optional[int]
    stage_completed: Tuple[bool, ...]
    hold_progress: float  # 0.0 - 1.0
    countdown: Optional[int]
    detected_fingers: int
    hand_visible: bool = False
    landmarks: Tuple[Landmark, ...] = field(default=(), repr=False)

    @property
    def is_loading(self) -> bool:
        return self.phase in (SessionPhase.IDLE, SessionPhase.LOADING)

    @property
    def hold_percent(self) -> int:
        return int(round(self.hold_progress * 100))


@runtime_checkable
class HandDetectorProto(Protocol):
    """Opaque hand-landmark model: 0 or 1 hands per frame."""

    def detect(self, frame_bgr: np.ndarray, timestamp_ms: int) -> Optional[Sequence[Landmark]]:
        """Return 21 landmarks for the first hand, or None."""
        ...

    def close(self) -> None:
        """Release the model."""
        ...


@runtime_checkable
class CameraProto(Protocol):
    """Live video source owned by one session."""

    def open(self) -> None:
        """Start the stream; raise CameraAccessError on failure, holding nothing."""
        ...

    def read(self) -> Optional[np.ndarray]:
        """Return the next BGR frame, or None on a read miss."""
        ...

    def release(self) -> None:
        """Stop the stream. Safe to call more than once."""
        ...
