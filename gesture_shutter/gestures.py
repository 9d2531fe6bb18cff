"""
Hold-confirmed finger-count challenge: show 1, then 2, then 3 fingers.
"""
import logging
from typing import Optional, Set, Tuple

from .config import Cfg
from .errors import ConfigError
from .types import SequencerState

logger = logging.getLogger(__name__)


class HoldTimer:
    """
    Tracks an uninterrupted run of matching observations in wall-clock time.

    Features:
    - Progress is elapsed / required, capped at 1.0
    - Any mismatch clears the hold immediately (no grace period)
    - Confirms exactly once per hold start
    """

    def __init__(self, required_s: float):
        """Initialize timer with the hold duration in seconds."""
        if required_s <= 0:
            raise ValueError("required_s must be positive")
        self.required_s = required_s
        self.hold_start: Optional[float] = None
        self.progress: float = 0.0
        self._confirmed = False

    def observe(self, matched: bool, t_now: float) -> bool:
        """
        Feed one observation.

        Args:
            matched: Whether the observed count equals the target right now
            t_now: Current timestamp in seconds

        Returns:
            True on the single observation that completes the hold
        """
        if not matched:
            self.reset()
            return False

        if self.hold_start is None:
            self.hold_start = t_now
            self._confirmed = False

        elapsed = self.elapsed(t_now)
        self.progress = min(1.0, elapsed / self.required_s)

        if elapsed >= self.required_s and not self._confirmed:
            self._confirmed = True
            return True
        return False

    def elapsed(self, t_now: float) -> float:
        """Seconds since the current hold started, 0.0 when not holding."""
        if self.hold_start is None:
            return 0.0
        return max(0.0, t_now - self.hold_start)

    @property
    def is_holding(self) -> bool:
        return self.hold_start is not None

    def reset(self) -> None:
        """Clear the hold and its progress."""
        self.hold_start = None
        self.progress = 0.0
        self._confirmed = False


class StageSequencer:
    """
    Advances through the configured stages in increasing order.

    Each stage requires its finger count to be held for challenge.hold_ms.
    A wrong count only resets the active stage's hold; completed stages are
    never revisited.
    """

    def __init__(self, cfg: Cfg):
        """Initialize sequencer from configuration."""
        self.cfg = cfg
        stages = tuple(cfg.challenge.stages)
        if not stages or any(b <= a for a, b in zip(stages, stages[1:])):
            raise ConfigError(f"Stages must be non-empty and strictly increasing: {stages}")

        self.stages: Tuple[int, ...] = stages
        self.timer = HoldTimer(cfg.challenge.hold_ms / 1000.0)
        self._index = 0
        self._completed: Set[int] = set()
        self._progress_log_interval_s = max(cfg.logging.progress_log_interval_ms, 1) / 1000.0
        self._last_progress_bucket = -1

    @property
    def active_stage(self) -> Optional[int]:
        """Stage currently required, or None once all stages are complete."""
        if self._index >= len(self.stages):
            return None
        return self.stages[self._index]

    @property
    def is_complete(self) -> bool:
        return self.active_stage is None

    @property
    def hold_progress(self) -> float:
        return self.timer.progress

    @property
    def state(self) -> SequencerState:
        return SequencerState(
            active_stage=self.active_stage,
            hold_start=self.timer.hold_start,
            completed=frozenset(self._completed)
        )

    def stage_completed(self) -> Tuple[bool, ...]:
        """Completion flag per configured stage, in stage order."""
        return tuple(stage in self._completed for stage in self.stages)

    def update(self, finger_count: Optional[int], t_now: float) -> Optional[int]:
        """
        Evaluate one frame's finger count.

        Args:
            finger_count: Extended fingers this frame (None if no hand detected)
            t_now: Current timestamp in seconds

        Returns:
            The stage completed by this frame, None otherwise
        """
        stage = self.active_stage
        if stage is None:
            return None

        was_holding = self.timer.is_holding
        matched = finger_count is not None and finger_count == stage
        confirmed = self.timer.observe(matched, t_now)

        if not matched:
            if was_holding:
                logger.debug(f"❌ Stage {stage}: reset (detected {finger_count} fingers, need {stage})")
            self._last_progress_bucket = -1
            return None

        if not was_holding:
            logger.debug(f"✅ Stage {stage}: started holding {finger_count} finger(s)")
        self._log_progress(stage, t_now)

        if not confirmed:
            return None

        self._completed.add(stage)
        self._index += 1
        self.timer.reset()
        self._last_progress_bucket = -1

        if self.is_complete:
            logger.info(f"🎊 Stage {stage} completed, all stages done")
        else:
            logger.info(f"🎉 Stage {stage} completed, moving to stage {self.active_stage}")
        return stage

    def _log_progress(self, stage: int, t_now: float) -> None:
        """Log hold progress once per interval bucket of held time."""
        elapsed = self.timer.elapsed(t_now)
        bucket = int(elapsed // self._progress_log_interval_s)
        if bucket == self._last_progress_bucket:
            return
        self._last_progress_bucket = bucket
        logger.debug(
            f"⏱️  Stage {stage}: hold progress {self.timer.progress * 100:.0f}% "
            f"({elapsed * 1000:.0f}ms / {self.timer.required_s * 1000:.0f}ms)"
        )

    def reset(self) -> None:
        """Return to the first stage with nothing completed."""
        self._index = 0
        self._completed.clear()
        self.timer.reset()
        self._last_progress_bucket = -1
