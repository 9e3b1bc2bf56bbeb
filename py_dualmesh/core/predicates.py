"""
Stateless geometry helpers used by the triangulator.

None of these are robust: they evaluate their formulas directly in floating
point, so near-cocircular quadruples may be classified either way.
"""

import math
from typing import NamedTuple, Tuple


class Point(NamedTuple):
    """Immutable 2D position."""
    x: float
    y: float


def pseudo_angle(dx: float, dy: float) -> float:
    """Monotonic stand-in for atan2(dy, dx), mapped to [0, 1)."""
    if dx == 0 and dy == 0:
        return 0.0
    p = dx / (abs(dx) + abs(dy))
    if dy > 0:
        return (3 - p) / 4
    return (1 + p) / 4


def dist2(ax: float, ay: float, bx: float, by: float) -> float:
    """Squared euclidean distance."""
    dx = ax - bx
    dy = ay - by
    return dx * dx + dy * dy


def in_circle(ax: float, ay: float, bx: float, by: float, cx: float, cy: float,
              px: float, py: float) -> bool:
    """
    True if p lies strictly inside the circumcircle of (a, b, c).

    The triangle must be positively oriented according to orient2d.
    """
    dx = ax - px
    dy = ay - py
    ex = bx - px
    ey = by - py
    fx = cx - px
    fy = cy - py

    ap = dx * dx + dy * dy
    bp = ex * ex + ey * ey
    cp = fx * fx + fy * fy

    return (dx * (ey * cp - bp * fy) -
            dy * (ex * cp - bp * fx) +
            ap * (ex * fy - ey * fx)) < 0


def _circumcenter_offset(ax: float, ay: float, bx: float, by: float,
                         cx: float, cy: float) -> Tuple[float, float]:
    dx = bx - ax
    dy = by - ay
    ex = cx - ax
    ey = cy - ay

    denominator = dx * ey - dy * ex
    if denominator == 0:
        return math.inf, math.inf

    bl = dx * dx + dy * dy
    cl = ex * ex + ey * ey
    d = 0.5 / denominator

    return (ey * bl - dy * cl) * d, (dx * cl - ex * bl) * d


def circumradius(ax: float, ay: float, bx: float, by: float, cx: float, cy: float) -> float:
    """
    Squared circumradius of (a, b, c).

    Collinear or coincident triples have no circumcircle and return infinity.
    """
    x, y = _circumcenter_offset(ax, ay, bx, by, cx, cy)
    return x * x + y * y


def circumcenter(ax: float, ay: float, bx: float, by: float, cx: float, cy: float) -> Tuple[float, float]:
    """Circumcenter of (a, b, c); infinite for collinear triples."""
    x, y = _circumcenter_offset(ax, ay, bx, by, cx, cy)
    return ax + x, ay + y
