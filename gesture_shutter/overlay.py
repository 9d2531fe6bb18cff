"""
Draws the capture screen on top of preview frames.
"""
from typing import Sequence, Tuple

import cv2
import numpy as np

from .landmarks import HAND_CONNECTIONS
from .types import Landmark, SessionSnapshot

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
GREEN = (0, 200, 0)
YELLOW = (0, 220, 255)
GREY = (128, 128, 128)
BLUE = (200, 110, 30)

FONT = cv2.FONT_HERSHEY_SIMPLEX


def _plural(n: int) -> str:
    return "finger" if n == 1 else "fingers"


def _dim(frame: np.ndarray, alpha: float) -> None:
    """Darken the whole frame in place."""
    frame[:] = cv2.addWeighted(frame, 1.0 - alpha, np.zeros_like(frame), alpha, 0)


def _panel(frame: np.ndarray, top_left: Tuple[int, int], bottom_right: Tuple[int, int],
           color: Tuple[int, int, int] = BLACK, alpha: float = 0.7) -> None:
    """Blend a filled rectangle into the frame in place."""
    x1, y1 = max(top_left[0], 0), max(top_left[1], 0)
    x2, y2 = min(bottom_right[0], frame.shape[1]), min(bottom_right[1], frame.shape[0])
    if x2 <= x1 or y2 <= y1:
        return
    roi = frame[y1:y2, x1:x2]
    fill = np.full_like(roi, color)
    roi[:] = cv2.addWeighted(fill, alpha, roi, 1.0 - alpha, 0)


def draw_landmarks(frame: np.ndarray, landmarks: Sequence[Landmark]) -> np.ndarray:
    """
    Draw hand connections and landmarks on the frame.

    Args:
        frame: Input frame
        landmarks: Hand landmarks in [0..1] range

    Returns:
        Frame with the hand drawn
    """
    height, width = frame.shape[:2]
    points = [(int(lm[0] * width), int(lm[1] * height)) for lm in landmarks]

    for start, end in HAND_CONNECTIONS:
        if start < len(points) and end < len(points):
            cv2.line(frame, points[start], points[end], (0, 255, 0), 3)
    for px, py in points:
        cv2.circle(frame, (px, py), 5, (0, 0, 255), -1)

    return frame


def draw_overlay(frame: np.ndarray, snapshot: SessionSnapshot, show_landmarks: bool = True) -> np.ndarray:
    """
    Render loading, stage, hold progress and countdown indicators.

    Args:
        frame: Preview frame, modified in place
        snapshot: Session state to render
        show_landmarks: Whether to draw the tracked hand

    Returns:
        The annotated frame
    """
    height, width = frame.shape[:2]

    if show_landmarks and snapshot.landmarks:
        draw_landmarks(frame, snapshot.landmarks)

    if snapshot.is_loading:
        _dim(frame, 0.7)
        cv2.putText(frame, "Loading AI Model...", (width // 2 - 190, height // 2), FONT, 1.2, WHITE, 3)
        cv2.putText(frame, "This may take a few seconds", (width // 2 - 170, height // 2 + 40),
                    FONT, 0.7, GREY, 1)
        return frame

    if snapshot.countdown is not None:
        _dim(frame, 0.5)
        text = str(snapshot.countdown)
        (tw, th), _ = cv2.getTextSize(text, FONT, 8, 16)
        cv2.putText(frame, text, ((width - tw) // 2, (height + th) // 2), FONT, 8, WHITE, 16)
        return frame

    stage = snapshot.current_stage
    if stage is not None:
        total = len(snapshot.stages)
        index = snapshot.stages.index(stage) + 1
        _panel(frame, (10, 10), (430, 50), BLUE, 0.9)
        cv2.putText(frame, f"Need: {stage} {_plural(stage)} (Stage {index}/{total})", (20, 38),
                    FONT, 0.7, WHITE, 2)

        if snapshot.detected_fingers == stage and snapshot.hold_progress > 0:
            _panel(frame, (10, 60), (270, 110))
            cv2.putText(frame, f"Hold Progress: {snapshot.hold_percent}%", (20, 80), FONT, 0.5, WHITE, 1)
            cv2.rectangle(frame, (20, 90), (260, 102), GREY, -1)
            filled = 20 + int(240 * snapshot.hold_progress)
            cv2.rectangle(frame, (20, 90), (filled, 102), GREEN, -1)

    # Stage indicator row
    row_top = 120
    _panel(frame, (10, row_top), (20 + 70 * len(snapshot.stages), row_top + 80))
    for i, (target, done) in enumerate(zip(snapshot.stages, snapshot.stage_completed)):
        cx = 45 + 70 * i
        cy = row_top + 30
        if done:
            color = GREEN
        elif target == stage:
            color = YELLOW
        else:
            color = GREY
        cv2.circle(frame, (cx, cy), 20, color, -1)
        label = "OK" if done else str(target)
        text_color = BLACK if color == YELLOW else WHITE
        (tw, th), _ = cv2.getTextSize(label, FONT, 0.6, 2)
        cv2.putText(frame, label, (cx - tw // 2, cy + th // 2), FONT, 0.6, text_color, 2)
        cv2.putText(frame, f"{target} {_plural(target)}", (cx - 30, cy + 40), FONT, 0.4, WHITE, 1)

    # Instructions
    sequence = " -> ".join(f"{s} {_plural(s)}" for s in snapshot.stages)
    _panel(frame, (10, height - 100), (width - 10, height - 10))
    cv2.putText(frame, f"Complete {len(snapshot.stages)} stages in order: {sequence}", (20, height - 70),
                FONT, 0.6, WHITE, 2)
    cv2.putText(frame, "Hold each gesture to complete it", (20, height - 45), FONT, 0.5, YELLOW, 1)
    cv2.putText(frame, "Press 's' to submit now, 'q' to cancel", (20, height - 20), FONT, 0.5, WHITE, 1)

    return frame
