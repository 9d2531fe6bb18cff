"""
Desktop application: take one photo once the finger challenge is held.
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np

from .capture import save_image
from .config import Cfg, load_config
from .errors import GestureShutterError
from .overlay import draw_overlay
from .session import CaptureSession
from .types import CapturedImage, SessionPhase, SessionSnapshot

logger = logging.getLogger(__name__)

SUBMIT_KEYS = (ord('s'), ord(' '))
CANCEL_KEYS = (ord('q'), 27)


class CaptureApp:
    """Runs a capture session with an OpenCV preview window."""

    def __init__(self, config: Cfg):
        """Initialize the application with configuration."""
        self.config = config
        self.saved_path: Optional[Path] = None
        self.session = CaptureSession(
            config,
            on_image_ready=self._on_image_ready,
            on_closed=self._on_closed,
            on_frame=self._on_frame if config.display.show_preview else None
        )

    def _on_image_ready(self, image: CapturedImage) -> None:
        self.saved_path = save_image(image, self.config.capture.output_dir)

    def _on_closed(self) -> None:
        logger.info("Capture cancelled, no photo taken")

    def _on_frame(self, frame: np.ndarray, snapshot: SessionSnapshot) -> None:
        view = draw_overlay(frame.copy(), snapshot, self.config.display.show_landmarks)
        cv2.imshow(self.config.display.window_name, view)
        self._handle_key(cv2.waitKey(1) & 0xFF)

    def _handle_key(self, key: int) -> None:
        if key in CANCEL_KEYS:
            self.session.close()
        elif key in SUBMIT_KEYS:
            self.session.capture_now()

    def _show_loading(self) -> None:
        blank = np.zeros((self.config.camera.height, self.config.camera.width, 3), dtype=np.uint8)
        cv2.imshow(self.config.display.window_name, draw_overlay(blank, self.session.snapshot()))
        cv2.waitKey(1)

    async def run(self) -> Optional[Path]:
        """Run the session and return where the photo was saved, if any."""
        stages = " -> ".join(str(s) for s in self.config.challenge.stages)
        print(f"Starting {self.config.display.window_name}")
        print(f"🎯 Show {stages} fingers, holding each for {self.config.challenge.hold_ms}ms")
        print("Press 's' to submit now, 'q' to cancel")

        if self.config.display.show_preview:
            self._show_loading()
        try:
            phase = await self.session.run()
        finally:
            if self.config.display.show_preview:
                cv2.destroyAllWindows()

        if phase is SessionPhase.CAPTURED:
            print(f"✅ Photo saved to {self.saved_path}")
        return self.saved_path


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Gesture-confirmed photo capture")
    parser.add_argument("--config", help="Path to a YAML config file")
    parser.add_argument("--camera", type=int, help="Camera index (overrides config)")
    parser.add_argument("--output-dir", help="Directory for captured photos (overrides config)")
    parser.add_argument("--no-preview", action="store_true", help="Run without a preview window")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the application."""
    args = parse_args(argv)
    try:
        config = load_config(args.config)
    except (FileNotFoundError, GestureShutterError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.camera is not None:
        config.camera.index = args.camera
    if args.output_dir:
        config.capture.output_dir = args.output_dir
    if args.no_preview:
        config.display.show_preview = False

    logging.basicConfig(level=config.logging.level, format="[%(levelname)s] %(name)s: %(message)s")

    app = CaptureApp(config)
    try:
        saved = asyncio.run(app.run())
    except KeyboardInterrupt:
        print("\nCapture interrupted by user")
        return 130
    except GestureShutterError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0 if saved is not None else 1


if __name__ == "__main__":
    sys.exit(main())
