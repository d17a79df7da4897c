"""Quest experience curve (Hermite spline baked from the game's AnimationCurve)."""
from typing import NamedTuple, Sequence


class CurvePoint(NamedTuple):
    time: float
    value: float
    in_slope: float
    out_slope: float


# Keyframes copied from the game's quest experience curve asset.
EXPERIENCE_CURVE: tuple[CurvePoint, ...] = (
    CurvePoint(0, 0, 0, 0),
    CurvePoint(1, 50, 24.20684, 24.20684),
    CurvePoint(2.1287553, 172.16977, 101.716446, 101.716446),
    CurvePoint(4.1287556, 508.20282, 228.4089, 228.4089),
    CurvePoint(6.871251, 834.99994, 170.70514, 170.70514),
    CurvePoint(20, 13383.37, 766.77057, 766.77057),
    CurvePoint(22.302576, 17512.82, 1284.807, 1284.807),
    CurvePoint(25.363678, 28459.07, 2037.1912, 2037.1912),
)


def evaluate_curve(points: Sequence[CurvePoint], x: float) -> float:
    """
    Evaluate a cubic Hermite curve at x.

    Points must be sorted by time. Inputs outside the keyed range clamp to
    the first/last value; the curve is never extrapolated.
    """
    if x < points[0].time:
        return points[0].value
    if x > points[-1].time:
        return points[-1].value

    for p1, p2 in zip(points, points[1:]):
        if p1.time <= x <= p2.time:
            break
    else:
        return points[-1].value

    span = p2.time - p1.time
    t = (x - p1.time) / span
    h00 = (1 + 2 * t) * (1 - t) ** 2
    h10 = t * (1 - t) ** 2
    h01 = t ** 2 * (3 - 2 * t)
    h11 = t ** 2 * (t - 1)

    return (
        h00 * p1.value
        + h10 * span * p1.out_slope
        + h01 * p2.value
        + h11 * span * p2.in_slope
    )


def experience_for_level(level: float) -> float:
    """Base quest experience for a quest of the given level."""
    return evaluate_curve(EXPERIENCE_CURVE, level)
