"""
Utility functions for Rara Avis.
"""

from .math_utils import clamp, lerp, normalize_angle, shortest_angle_delta, step_towards_angle
from .geo import (
    is_valid_coordinate,
    parse_coordinate,
    forward_azimuth,
    approx_distance_km,
    squared_planar_distance,
)
from .rng import SeededRNG, RNGManager
from .validators import ValidationError

__all__ = [
    'clamp',
    'lerp',
    'normalize_angle',
    'shortest_angle_delta',
    'step_towards_angle',
    'is_valid_coordinate',
    'parse_coordinate',
    'forward_azimuth',
    'approx_distance_km',
    'squared_planar_distance',
    'SeededRNG',
    'RNGManager',
    'ValidationError',
]
