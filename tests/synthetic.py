"""
Synthetic hand landmarks for tests.

Hands are laid out upright with the wrist at the bottom. A right hand has its
middle-finger base to the right of the wrist and its thumb on the right side;
a left hand is the horizontal mirror image.
"""
from typing import Iterable, List

from gesture_shutter.types import Landmark

FINGER_NAMES = ("thumb", "index", "middle", "ring", "pinky")

# x column and MCP y for index, middle, ring, pinky (right hand)
_FINGER_LAYOUT = {
    "index": (0.56, 0.60),
    "middle": (0.52, 0.59),
    "ring": (0.48, 0.60),
    "pinky": (0.44, 0.62),
}

COUNT_TO_FINGERS = {
    0: (),
    1: ("index",),
    2: ("index", "middle"),
    3: ("index", "middle", "ring"),
    4: ("index", "middle", "ring", "pinky"),
    5: FINGER_NAMES,
}


def make_hand(extended: Iterable[str] = (), left: bool = False) -> List[Landmark]:
    """Build 21 landmarks with the named fingers extended."""
    extended = set(extended)
    unknown = extended - set(FINGER_NAMES)
    if unknown:
        raise ValueError(f"Unknown fingers: {unknown}")

    points = [(0.50, 0.80)]  # wrist

    # thumb: CMC, MCP, IP, TIP
    points += [(0.56, 0.75), (0.60, 0.70), (0.63, 0.66)]
    points.append((0.67, 0.62) if "thumb" in extended else (0.58, 0.64))

    for name in ("index", "middle", "ring", "pinky"):
        x, mcp_y = _FINGER_LAYOUT[name]
        pip_y = mcp_y - 0.08
        dip_y = mcp_y - 0.13
        tip_y = mcp_y - 0.18 if name in extended else mcp_y - 0.02
        points += [(x, mcp_y), (x, pip_y), (x, dip_y), (x, tip_y)]

    if left:
        points = [(1.0 - x, y) for x, y in points]
    return [Landmark(x, y, 0.0) for x, y in points]


def hand_showing(count: int, left: bool = False) -> List[Landmark]:
    """Hand with ``count`` fingers extended (thumb only counted at 5)."""
    return make_hand(COUNT_TO_FINGERS[count], left=left)


def transform(landmarks: List[Landmark], scale: float, dx: float, dy: float) -> List[Landmark]:
    """Uniformly scale then translate every point."""
    return [Landmark(lm.x * scale + dx, lm.y * scale + dy, lm.z * scale) for lm in landmarks]
