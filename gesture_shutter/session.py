"""
Capture session: owns the camera and the hand model for one photo, and
drives the finger-count challenge, the countdown and the capture.
"""
import asyncio
import functools
import logging
import time
from contextlib import AsyncExitStack
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from .camera import CameraStream
from .capture import CaptureTrigger
from .config import Cfg
from .countdown import CountdownController
from .errors import CameraAccessError, GestureShutterError, ModelLoadError
from .gestures import StageSequencer
from .landmarks import classify_hand
from .types import (
    CameraProto,
    CapturedImage,
    HandDetectorProto,
    HandReading,
    Landmark,
    SessionPhase,
    SessionSnapshot,
)

logger = logging.getLogger(__name__)

ImageCallback = Callable[[CapturedImage], None]
FrameCallback = Callable[[np.ndarray, SessionSnapshot], None]
ErrorCallback = Callable[[GestureShutterError], None]

FINISHED_PHASES = (SessionPhase.CAPTURED, SessionPhase.CLOSED, SessionPhase.FAILED)


def load_hands_tracker(cfg: Cfg) -> HandDetectorProto:
    """Default detector factory: MediaPipe HandLandmarker."""
    from .tracker import HandsTracker
    return HandsTracker(cfg.mediapipe)


def _release(name: str, release: Callable[[], None]) -> None:
    """Best-effort release; failures are logged and never propagate."""
    try:
        release()
    except Exception as e:
        logger.warning(f"Ignoring error while releasing {name}: {e}")


def _close_abandoned_detector(load: "asyncio.Future[HandDetectorProto]") -> None:
    """Close a detector whose load finished after the session gave up on it."""
    if load.cancelled() or load.exception() is not None:
        return
    logger.debug("Closing hand model that finished loading after cancellation")
    _release("hand model", load.result().close)


def _release_abandoned_camera(camera: CameraProto, opening: "asyncio.Future[None]") -> None:
    """Release a camera whose open finished after the session gave up on it."""
    if opening.cancelled() or opening.exception() is not None:
        return
    logger.debug("Releasing camera that finished opening after cancellation")
    _release("camera", camera.release)


class CaptureSession:
    """
    One gesture-confirmed capture, from model load to image (or cancel).

    Startup is a scoped acquisition: the detector and the camera are each
    registered for release as soon as it is acquired, and a close or failure at
    any point unwinds whatever was acquired. After startup every frame cycle
    is synchronous: read, detect, classify, sequence, and start the countdown
    once all stages are held. The countdown ticks on the event loop, so the
    two timelines only interleave at ``await`` points.

    All state a view needs is read fresh from this object via snapshot().
    """

    def __init__(
        self,
        cfg: Cfg,
        on_image_ready: ImageCallback,
        on_closed: Optional[Callable[[], None]] = None,
        *,
        on_error: Optional[ErrorCallback] = None,
        on_frame: Optional[FrameCallback] = None,
        detector_factory: Optional[Callable[[], HandDetectorProto]] = None,
        camera_factory: Optional[Callable[[], CameraProto]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the session. Nothing is acquired until open().

        Args:
            cfg: Configuration
            on_image_ready: Called exactly once with the captured image
            on_closed: Called when the session is cancelled without an image
            on_error: Called with the fatal error when startup or the camera fails
            on_frame: Called after every processed frame with the current snapshot
            detector_factory: Builds the hand detector (blocking; run off-loop)
            camera_factory: Builds the (unopened) camera
            clock: Monotonic wall-clock source in seconds
        """
        self.cfg = cfg
        self.on_image_ready = on_image_ready
        self.on_closed = on_closed
        self.on_error = on_error
        self.on_frame = on_frame
        self.clock = clock
        self._detector_factory = detector_factory or (lambda: load_hands_tracker(cfg))
        self._camera_factory = camera_factory or (lambda: CameraStream(cfg.camera))

        self.sequencer = StageSequencer(cfg)
        self.countdown = CountdownController(
            seconds=cfg.challenge.countdown_seconds,
            interval_s=cfg.challenge.tick_interval_s
        )
        self.trigger = CaptureTrigger(cfg.capture)

        self.phase = SessionPhase.IDLE
        self.detector: Optional[HandDetectorProto] = None
        self.camera: Optional[CameraProto] = None
        self.image: Optional[CapturedImage] = None
        self.error: Optional[GestureShutterError] = None
        self.last_frame: Optional[np.ndarray] = None
        self.landmarks: Tuple[Landmark, ...] = ()
        self.detected_fingers = 0

        self._stack = AsyncExitStack()
        self._closing = False
        self._read_failures = 0
        self._last_timestamp_ms = -1
        self._finger_report_interval_s = cfg.logging.finger_report_interval_ms / 1000.0
        self._last_finger_report: Optional[float] = None

    @property
    def finished(self) -> bool:
        return self.phase in FINISHED_PHASES

    async def __aenter__(self) -> "CaptureSession":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # -- lifecycle -----------------------------------------------------

    async def open(self) -> bool:
        """
        Load the hand model, then open the camera.

        Returns:
            True when ready for step(); False if close() was called meanwhile

        Raises:
            ModelLoadError: if the model cannot be loaded
            CameraAccessError: if the camera cannot be opened
        """
        if self._closing and self.phase is SessionPhase.CLOSED:
            logger.debug("Session closed before startup, nothing to open")
            return False
        if self.phase is not SessionPhase.IDLE:
            raise GestureShutterError(f"Session already started ({self.phase.value})")

        self.phase = SessionPhase.LOADING
        logger.info("⏳ Loading hand landmark model...")
        try:
            self.detector = await self._load_detector()
            if self._closing:
                return await self._abandon_startup()

            self.camera = await self._open_camera()
            if self._closing:
                return await self._abandon_startup()
        except GestureShutterError as exc:
            if self._closing:
                logger.debug(f"Ignoring startup error after close: {exc}")
                return await self._abandon_startup()
            await self._fail(exc)
            raise

        self.phase = SessionPhase.RUNNING
        logger.info(f"🎯 Capture session running, stages: {list(self.sequencer.stages)}")
        return True

    async def _load_detector(self) -> HandDetectorProto:
        load = asyncio.ensure_future(asyncio.to_thread(self._detector_factory))
        try:
            detector = await asyncio.shield(load)
        except asyncio.CancelledError:
            load.add_done_callback(_close_abandoned_detector)
            raise
        except ModelLoadError:
            raise
        except Exception as e:
            raise ModelLoadError(f"Failed to load hand landmark model: {e}") from e

        self._stack.callback(_release, "hand model", detector.close)
        return detector

    async def _open_camera(self) -> CameraProto:
        try:
            camera = self._camera_factory()
        except Exception as e:
            raise CameraAccessError(f"Failed to create camera: {e}") from e
        opening = asyncio.ensure_future(asyncio.to_thread(camera.open))
        try:
            await asyncio.shield(opening)
        except asyncio.CancelledError:
            # The worker thread cannot be stopped; release once it is done.
            opening.add_done_callback(functools.partial(_release_abandoned_camera, camera))
            raise
        except CameraAccessError:
            raise
        except Exception as e:
            raise CameraAccessError(f"Failed to open camera: {e}") from e

        self._stack.callback(_release, "camera", camera.release)
        return camera

    async def _abandon_startup(self) -> bool:
        logger.info("Startup abandoned, session was closed")
        await self._release_resources()
        return False

    def _mark_failed(self, exc: GestureShutterError) -> None:
        self.phase = SessionPhase.FAILED
        self.error = exc
        self._closing = True
        self.countdown.cancel()
        logger.error(f"❌ Capture session failed: {exc}")

    async def _fail(self, exc: GestureShutterError) -> None:
        self._mark_failed(exc)
        await self._release_resources()
        if self.on_error is not None:
            self.on_error(exc)

    async def _release_resources(self) -> None:
        await self._stack.aclose()
        self.detector = None
        self.camera = None

    def close(self) -> None:
        """
        Cancel the session. Safe to call at any time and more than once.

        Stops the countdown and the frame loop and fires on_closed if no image
        was delivered. Resources are released by aclose() or by run().
        """
        if self._closing:
            return
        self._closing = True
        self.countdown.cancel()
        if self.phase in (SessionPhase.CAPTURED, SessionPhase.FAILED):
            return

        self.phase = SessionPhase.CLOSED
        logger.info("Capture session closed")
        if self.on_closed is not None:
            self.on_closed()

    async def aclose(self) -> None:
        """close() and release the camera and the hand model."""
        self.close()
        await self._release_resources()

    async def run(self) -> SessionPhase:
        """
        Run the whole session: startup, frame loop, teardown.

        Returns:
            Final phase (CAPTURED or CLOSED)

        Raises:
            ModelLoadError, CameraAccessError: fatal failures, after cleanup
            GestureShutterError: if the countdown capture could not be encoded
        """
        try:
            if not await self.open():
                return self.phase
            while self.step():
                await asyncio.sleep(0)
            if self.error is not None:
                raise self.error
        except GestureShutterError as exc:
            if self.phase is not SessionPhase.FAILED:
                await self._fail(exc)
            raise
        finally:
            await self.aclose()
        return self.phase

    # -- per-frame cycle -----------------------------------------------

    def step(self) -> bool:
        """
        Pull one frame and process it.

        Returns:
            False once the session has finished

        Raises:
            CameraAccessError: after too many consecutive read failures
        """
        if self.finished or self._closing:
            return False
        if self.camera is None or self.detector is None:
            raise GestureShutterError("Session is not open")

        frame = self.camera.read()
        if frame is None:
            self._read_failures += 1
            logger.warning(f"Failed to read frame from camera ({self._read_failures} in a row)")
            if self._read_failures >= self.cfg.camera.max_read_failures:
                raise CameraAccessError(f"Camera stopped delivering frames after {self._read_failures} attempts")
            return True
        self._read_failures = 0

        t_now = self.clock()
        landmarks = self.detector.detect(frame, self._next_timestamp_ms(t_now))
        self.process_frame(frame, landmarks, t_now)

        if self.on_frame is not None and not self.finished:
            self.on_frame(frame, self.snapshot())
        return not self.finished

    def process_frame(self, frame: np.ndarray, landmarks: Optional[Sequence[Landmark]],
                      t_now: Optional[float] = None) -> None:
        """
        Update session state from one frame and its detected hand.

        Args:
            frame: Current BGR frame; kept as the capture buffer
            landmarks: 21 landmarks of the detected hand, or None
            t_now: Frame time in seconds (defaults to the session clock)
        """
        if self.finished:
            return
        if t_now is None:
            t_now = self.clock()

        self.last_frame = frame
        reading: Optional[HandReading] = None
        if landmarks is not None and len(landmarks) > 0:
            reading = classify_hand(landmarks)
            self.landmarks = tuple(landmarks)
        else:
            self.landmarks = ()
        self.detected_fingers = reading.count if reading is not None else 0
        self._report_fingers(reading, t_now)

        if self.countdown.active or self.sequencer.is_complete:
            return

        self.sequencer.update(reading.count if reading is not None else None, t_now)
        if self.sequencer.is_complete:
            self._start_countdown()

    def _start_countdown(self) -> None:
        self.phase = SessionPhase.COUNTDOWN
        self.countdown.start(self._on_countdown_fired)

    def _on_countdown_fired(self) -> None:
        if self.last_frame is None:
            logger.warning("Countdown finished without a frame to capture")
            return
        try:
            self._deliver(self.last_frame)
        except GestureShutterError as exc:
            # Raised on the event loop, outside run(); run() re-raises it.
            self._mark_failed(exc)
            if self.on_error is not None:
                self.on_error(exc)

    def capture_now(self) -> bool:
        """
        Capture the current frame immediately, skipping the challenge.

        Returns:
            True if an image was delivered
        """
        if self.finished or self._closing:
            logger.debug("Manual capture ignored, session finished")
            return False
        if self.last_frame is None:
            logger.warning("Manual capture requested before the first frame")
            return False
        logger.info("Manual capture requested")
        return self._deliver(self.last_frame)

    def _deliver(self, frame: np.ndarray) -> bool:
        if self.image is not None or self._closing:
            return False
        image = self.trigger.capture(frame)
        self.image = image
        self.phase = SessionPhase.CAPTURED
        self.countdown.cancel()
        self.on_image_ready(image)
        return True

    def _next_timestamp_ms(self, t_now: float) -> int:
        timestamp_ms = max(int(t_now * 1000), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms
        return timestamp_ms

    def _report_fingers(self, reading: Optional[HandReading], t_now: float) -> None:
        """Rate-limited finger count report."""
        if reading is None or not logger.isEnabledFor(logging.DEBUG):
            return
        if (self._last_finger_report is not None
                and t_now - self._last_finger_report < self._finger_report_interval_s):
            return
        self._last_finger_report = t_now
        logger.debug(
            f"🖐️ Detected {reading.count} fingers: [{', '.join(reading.extended)}] "
            f"| Stage: {self.sequencer.active_stage}"
        )

    # -- view ----------------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        """Current state as seen by a view."""
        return SessionSnapshot(
            phase=self.phase,
            stages=self.sequencer.stages,
            current_stage=self.sequencer.active_stage,
            stage_completed=self.sequencer.stage_completed(),
            hold_progress=self.sequencer.hold_progress,
            countdown=self.countdown.remaining,
            detected_fingers=self.detected_fingers,
            hand_visible=bool(self.landmarks),
            landmarks=self.landmarks
        )
