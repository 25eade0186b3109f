"""
Mathematical helper functions.

Guarded deltas/ratios and symmetric saturating normalization.
"""

import math

import numpy as np

EPSILON = 1e-12


def safe_delta(current: float, previous: float) -> float:
    """
    Relative change (current - previous) / previous.

    Returns:
        0.0 when previous is ~0 or any value is non-finite (neutral delta)
    """
    if not (math.isfinite(current) and math.isfinite(previous)) or abs(previous) < EPSILON:
        return 0.0
    delta = (current - previous) / previous
    return delta if math.isfinite(delta) else 0.0


def safe_ratio(current: float, previous: float) -> float:
    """
    Ratio current / previous.

    Returns:
        1.0 when previous is ~0 or any value is non-finite (neutral ratio)
    """
    if not (math.isfinite(current) and math.isfinite(previous)) or abs(previous) < EPSILON:
        return 1.0
    ratio = current / previous
    return ratio if math.isfinite(ratio) else 1.0


def clamp(value: float, lo: float, hi: float) -> float:
    return float(np.clip(value, lo, hi))


def normalise(value: float, cap: float) -> float:
    """
    Map a signed value into [0, 1] around a symmetric cap.

    -cap → 0, 0 → 0.5, +cap → 1; values beyond the cap saturate.
    """
    clamped = clamp(value, -cap, cap)
    return (clamped + cap) / (2 * cap)
