"""
Mathematical utility functions for Rara Avis.

Value clamping, interpolation and angle arithmetic used by the
navigation and playback code.
"""

import math
from typing import Union

Number = Union[int, float]


def clamp(value: Number, min_val: Number, max_val: Number) -> Number:
    """
    Constrain a value to a range.
    
    Example:
        >>> clamp(1.5, 0.0, 1.0)
        1.0
        >>> clamp(-0.5, 0.0, 1.0)
        0.0
    """
    return max(min_val, min(max_val, value))


def lerp(a: Number, b: Number, t: float) -> float:
    """
    Linear interpolation between two values.
    
    Args:
        a: Start value
        b: End value
        t: Interpolation factor (0.0 = a, 1.0 = b)
        
    Example:
        >>> lerp(0.0, 10.0, 0.5)
        5.0
    """
    return a + (b - a) * t


def inverse_lerp(a: Number, b: Number, value: Number) -> float:
    """
    Inverse linear interpolation - find t given a value between a and b.
    
    Example:
        >>> inverse_lerp(0.0, 10.0, 2.5)
        0.25
    """
    if b - a == 0:
        return 0.0
    return (value - a) / (b - a)


def normalize_angle(degrees: float) -> float:
    """
    Wrap an angle into [0, 360).
    
    Example:
        >>> normalize_angle(-90.0)
        270.0
        >>> normalize_angle(450.0)
        90.0
    """
    result = degrees % 360.0
    # -1e-15 % 360 rounds to 360.0
    if result >= 360.0:
        result -= 360.0
    return result


def shortest_angle_delta(from_deg: float, to_deg: float) -> float:
    """
    Signed shortest rotation from one heading to another, in (-180, 180].
    
    Example:
        >>> shortest_angle_delta(350.0, 10.0)
        20.0
        >>> shortest_angle_delta(10.0, 350.0)
        -20.0
        >>> shortest_angle_delta(0.0, 180.0)
        180.0
    """
    diff = (to_deg - from_deg) % 360.0
    if diff > 180.0:
        diff -= 360.0
    return diff


def step_towards_angle(current: float, target: float, max_step: float) -> float:
    """
    Rotate a heading towards a target by at most max_step degrees.
    
    Snaps onto the target once it is within reach. The result is
    normalized into [0, 360).
    
    Example:
        >>> step_towards_angle(350.0, 10.0, 0.5)
        350.5
        >>> step_towards_angle(0.0, 0.3, 0.5)
        0.3
    """
    diff = shortest_angle_delta(current, target)
    if abs(diff) <= max_step:
        return normalize_angle(target)
    return normalize_angle(current + math.copysign(max_step, diff))


def db_to_linear(db: float, floor_db: float = -60.0) -> float:
    """
    Convert decibels to a linear 0-1 amplitude, with silence below floor_db.
    
    Example:
        >>> db_to_linear(0.0)
        1.0
        >>> db_to_linear(-80.0)
        0.0
    """
    if db <= floor_db:
        return 0.0
    return 10.0 ** (db / 20.0)
