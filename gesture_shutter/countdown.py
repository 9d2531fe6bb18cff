"""
Visible 3-2-1 countdown that fires the shutter.
"""
import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class CountdownController:
    """
    Counts down once per tick on the event loop, independent of frame rate.

    ``remaining`` is None while inactive. A tick at remaining <= 1 fires
    exactly once and deactivates; cancel() deactivates without firing.
    """

    def __init__(self, seconds: int = 3, interval_s: float = 1.0):
        if seconds < 1:
            raise ValueError("seconds must be at least 1")
        self.seconds = seconds
        self.interval_s = interval_s
        self.remaining: Optional[int] = None
        self._on_fire: Optional[Callable[[], None]] = None
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def active(self) -> bool:
        return self.remaining is not None

    def start(self, on_fire: Callable[[], None]) -> bool:
        """
        Begin counting down from ``seconds``.

        Must be called from within a running event loop.

        Returns:
            False if a countdown is already active
        """
        if self.active:
            logger.debug("Countdown already active, ignoring start")
            return False
        self.remaining = self.seconds
        self._on_fire = on_fire
        logger.info(f"⏳ Countdown started at {self.remaining}")
        self._schedule()
        return True

    def tick(self) -> None:
        """Advance the countdown by one step."""
        self._clear_handle()
        if self.remaining is None:
            return

        if self.remaining <= 1:
            on_fire = self._on_fire
            self.remaining = None
            self._on_fire = None
            logger.info("📸 Countdown finished")
            if on_fire is not None:
                on_fire()
            return

        self.remaining -= 1
        logger.debug(f"Countdown: {self.remaining}")
        self._schedule()

    def cancel(self) -> None:
        """Stop the countdown without firing."""
        if self.remaining is not None:
            logger.info(f"Countdown cancelled at {self.remaining}")
        self._clear_handle()
        self.remaining = None
        self._on_fire = None

    def _schedule(self) -> None:
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.interval_s, self.tick)

    def _clear_handle(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
