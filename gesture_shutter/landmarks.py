"""
Finger counting from 21-point hand landmarks.
"""
from typing import List, Optional, Sequence, Tuple

from .types import HandReading, Handedness, Landmark

NUM_LANDMARKS = 21

WRIST = 0
THUMB_IP = 3
THUMB_TIP = 4
MIDDLE_MCP = 9

# (name, tip index, pip index)
FINGERS: List[Tuple[str, int, int]] = [
    ("Index", 8, 6),
    ("Middle", 12, 10),
    ("Ring", 16, 14),
    ("Pinky", 20, 18),
]

# Bone pairs used when drawing a hand skeleton
HAND_CONNECTIONS: List[Tuple[int, int]] = [
    (0, 1), (1, 2), (2, 3), (3, 4),
    (0, 5), (5, 6), (6, 7), (7, 8),
    (5, 9), (9, 10), (10, 11), (11, 12),
    (9, 13), (13, 14), (14, 15), (15, 16),
    (13, 17), (0, 17), (17, 18), (18, 19), (19, 20),
]


def is_well_formed(landmarks: Optional[Sequence[Landmark]]) -> bool:
    """True if the input holds exactly one hand's worth of points."""
    return landmarks is not None and len(landmarks) == NUM_LANDMARKS


def detect_handedness(landmarks: Sequence[Landmark]) -> Handedness:
    """
    Guess which hand is shown.

    This is a heuristic, not anatomical handedness: a hand whose middle-finger
    base lies to the right of the wrist in image space is treated as a right
    hand. The answer flips with the camera's mirroring, so it assumes the
    selfie-style (horizontally mirrored) preview configured by camera.mirror.

    Args:
        landmarks: List of 21 hand landmarks

    Returns:
        Handedness used to pick the thumb test direction
    """
    if landmarks[MIDDLE_MCP][0] > landmarks[WRIST][0]:
        return Handedness.RIGHT
    return Handedness.LEFT


def is_thumb_extended(landmarks: Sequence[Landmark], handedness: Handedness) -> bool:
    """Thumb tip lies outside its IP joint along the hand's lateral axis."""
    tip_x = landmarks[THUMB_TIP][0]
    ip_x = landmarks[THUMB_IP][0]
    if handedness is Handedness.RIGHT:
        return tip_x > ip_x
    return tip_x < ip_x


def classify_hand(landmarks: Optional[Sequence[Landmark]]) -> HandReading:
    """
    Classify one hand into an extended-finger count.

    Malformed input (anything other than 21 points) yields a count of 0.
    No temporal smoothing happens here.

    Args:
        landmarks: List of 21 hand landmarks, or None

    Returns:
        HandReading with count (0-5), handedness and extended finger names
    """
    if not is_well_formed(landmarks):
        return HandReading(count=0, handedness=None)

    handedness = detect_handedness(landmarks)
    extended: List[str] = []

    if is_thumb_extended(landmarks, handedness):
        extended.append("Thumb")

    for name, tip_idx, pip_idx in FINGERS:
        if landmarks[tip_idx][1] < landmarks[pip_idx][1]:  # tip y < pip y (inverted y-axis)
            extended.append(name)

    return HandReading(count=len(extended), handedness=handedness, extended=tuple(extended))


def count_extended_fingers(landmarks: Optional[Sequence[Landmark]]) -> int:
    """
    Count the number of extended fingers.

    Args:
        landmarks: List of 21 hand landmarks

    Returns:
        Number of extended fingers (0-5)
    """
    return classify_hand(landmarks).count


def to_landmarks(points: Sequence[Sequence[float]]) -> List[Landmark]:
    """Convert (x, y) or (x, y, z) sequences into Landmark tuples."""
    return [Landmark(float(p[0]), float(p[1]), float(p[2]) if len(p) > 2 else 0.0) for p in points]
