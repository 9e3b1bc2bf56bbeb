"""
Orientation predicate for three points in the plane.

Uses the fast floating-point determinant guarded by Shewchuk's first error
bound. When the bound cannot certify the sign, the caller either gets an
AmbiguousOrientationError or, with ``exact=True``, a sign computed with exact
rational arithmetic.
"""

import sys
from fractions import Fraction

from .errors import AmbiguousOrientationError

EPSILON = 1.1102230246251565e-16  # 2^-53
CCW_ERRBOUND_A = (3 + 16 * EPSILON) * EPSILON

_SMALLEST = sys.float_info.min * sys.float_info.epsilon


def orient2d(ax: float, ay: float, bx: float, by: float, cx: float, cy: float,
             exact: bool = False) -> float:
    """
    Twice the signed area of triangle (a, b, c).

    Positive when the points turn counter-clockwise in screen coordinates
    (y axis pointing down), negative when clockwise, zero when collinear.

    Args:
        ax, ay, bx, by, cx, cy: Point coordinates
        exact: Fall back to exact arithmetic instead of raising

    Returns:
        Determinant whose sign is reliable

    Raises:
        AmbiguousOrientationError: If the fast path is inconclusive and
            ``exact`` is False
    """
    detleft = (ay - cy) * (bx - cx)
    detright = (ax - cx) * (by - cy)
    det = detleft - detright

    detsum = abs(detleft + detright)
    if abs(det) >= CCW_ERRBOUND_A * detsum:
        return det

    if not exact:
        raise AmbiguousOrientationError(
            f"Near-degenerate input: orientation of ({ax}, {ay}), ({bx}, {by}), "
            f"({cx}, {cy}) is below the floating-point error bound"
        )
    return orient2d_exact(ax, ay, bx, by, cx, cy)


def orient2d_exact(ax: float, ay: float, bx: float, by: float, cx: float, cy: float) -> float:
    """Same determinant as orient2d, evaluated without rounding error."""
    fcx = Fraction(cx)
    fcy = Fraction(cy)
    det = (Fraction(ay) - fcy) * (Fraction(bx) - fcx) - (Fraction(ax) - fcx) * (Fraction(by) - fcy)

    result = float(det)
    # keep the sign when the magnitude underflows
    if result == 0.0 and det != 0:
        result = _SMALLEST if det > 0 else -_SMALLEST
    return result
