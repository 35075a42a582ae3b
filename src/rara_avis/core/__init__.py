"""
Core runtime components for Rara Avis.
"""

from .state import GeoPoint, TerrainReading, TickContext, WandererState, NavState
from .clock import SimulationClock, RealTimeClock

__all__ = [
    'GeoPoint',
    'TerrainReading',
    'TickContext',
    'WandererState',
    'NavState',
    'SimulationClock',
    'RealTimeClock',
]
