"""
go2ctl.angles - Heading arithmetic on the (-pi, pi] circle
"""

from __future__ import annotations

import math

TAU = 2.0 * math.pi


def normalize_angle(rad: float) -> float:
    """
    Wrap an angle into the half-open interval (-pi, pi].

    Every finite input maps to exactly one value, so the result is safe to
    subtract from another normalized heading. ``pi`` stays ``pi`` and ``-pi``
    maps to ``pi``.

    Args:
        rad: Angle in radians.

    Returns:
        The equivalent angle in (-pi, pi].
    """
    rad = float(rad)
    if not math.isfinite(rad):
        raise ValueError(f"Cannot normalize non-finite angle: {rad!r}")
    wrapped = math.remainder(rad, TAU)
    if wrapped <= -math.pi:
        wrapped += TAU
    return wrapped


def angle_error(target: float, current: float) -> float:
    """Signed shortest rotation from ``current`` to ``target``."""
    return normalize_angle(normalize_angle(target) - normalize_angle(current))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def sign(value: float) -> float:
    return 1.0 if value > 0.0 else -1.0
