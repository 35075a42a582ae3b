"""
Rara Avis

An autonomous map wanderer that turns the places it drifts over into an
ambient soundscape of nearby bird and field recordings.

Main entry points:
- RaraAvisEngine: The tick loop wiring viewport, terrain, Wanderer and Director
- Wanderer: Navigation state machine
- Director: Sample pools and voice scheduling
- load_config: For loading configuration from JSON files

Example:
    >>> from rara_avis import RaraAvisEngine
    >>> engine = RaraAvisEngine(view, classifier, player, bio, ambient)   # doctest: +SKIP
    >>> snapshot = engine.tick()                                          # doctest: +SKIP
"""

__version__ = "0.3.0"
__author__ = "Rara Avis Project"

# Lazy imports to avoid circular dependencies
def __getattr__(name):
    if name == 'RaraAvisEngine':
        from .engine import RaraAvisEngine
        return RaraAvisEngine
    elif name == 'SoundscapeSnapshot':
        from .engine import SoundscapeSnapshot
        return SoundscapeSnapshot
    elif name == 'Wanderer':
        from .navigation import Wanderer
        return Wanderer
    elif name == 'Director':
        from .audio import Director
        return Director
    elif name == 'load_config':
        from .config import load_config
        return load_config
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    'RaraAvisEngine',
    'SoundscapeSnapshot',
    'Wanderer',
    'Director',
    'load_config',
]
