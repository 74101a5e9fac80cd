"""Gain domain helpers for volume automation.

Envelope values in this package are linear amplitude factors: 1.0 leaves the
signal untouched (0 dB) and 0.0 is silence. Hosts that store volume lanes in
another domain convert through their own `gain_to_envelope_value`.
"""

from __future__ import annotations

import math

UNITY_GAIN = 1.0  # 0 dB
SILENT_GAIN = 0.0  # -inf dB

# Envelope point shapes (segment curve from a point to the next one).
SHAPE_LINEAR = 0
SHAPE_SQUARE = 1
SHAPE_SLOW = 2  # slow start/end
SHAPE_FAST_START = 3
SHAPE_FAST_END = 4
SHAPE_BEZIER = 5

SHAPE_NAMES = {
    SHAPE_LINEAR: "linear",
    SHAPE_SQUARE: "square",
    SHAPE_SLOW: "slow",
    SHAPE_FAST_START: "fast_start",
    SHAPE_FAST_END: "fast_end",
    SHAPE_BEZIER: "bezier",
}


def parse_shape(value: int | str) -> int:
    """Accept a shape id (0-5) or its name."""
    if isinstance(value, int):
        if value not in SHAPE_NAMES:
            raise ValueError(f"unknown envelope shape: {value}")
        return value
    s = str(value).strip().lower()
    if s.isdigit():
        return parse_shape(int(s))
    for k, name in SHAPE_NAMES.items():
        if name == s:
            return k
    raise ValueError(f"unknown envelope shape: {value}")


def db_to_gain(db: float) -> float:
    if db == -math.inf:
        return SILENT_GAIN
    return 10.0 ** (db / 20.0)


def gain_to_db(gain: float) -> float:
    if gain <= 0:
        return -math.inf
    return 20.0 * math.log10(gain)


def shape_curve(shape: int, x: float) -> float:
    """Normalized progress (0..1) of a segment with the given shape."""
    x = max(0.0, min(1.0, float(x)))
    if shape == SHAPE_SQUARE:
        return 0.0
    if shape in {SHAPE_SLOW, SHAPE_BEZIER}:
        return x * x * (3.0 - 2.0 * x)
    if shape == SHAPE_FAST_START:
        return 1.0 - (1.0 - x) ** 3
    if shape == SHAPE_FAST_END:
        return x**3
    return x
