"""
Map viewport abstraction.

The wanderer never renders anything: it reads the camera center, checks
whether the user is touching the map, and asks the host to jump the
camera. SimulatedMapView plays the host's part in headless runs.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..core.state import GeoPoint


class MapView(ABC):
    """Host map camera."""
    
    @abstractmethod
    def get_center(self) -> Optional[GeoPoint]:
        """Current camera center, or None before the map is ready."""
    
    @property
    @abstractmethod
    def is_interacting(self) -> bool:
        """True while the user is dragging, zooming or rotating."""
    
    @abstractmethod
    def jump_to(self, center: GeoPoint) -> None:
        """Move the camera without animation."""


class SimulatedMapView(MapView):
    """
    In-memory camera.
    
    Interaction ends with a short settle delay, and wheel zooms count as
    an interaction until the wheel has been quiet for a while, so the
    wanderer does not fight the tail of a gesture.
    
    Args:
        center: Initial center
        clock: Anything with a ``now`` attribute; without one the settle
            delays are ignored
    """
    
    SETTLE_SECONDS = 0.1
    WHEEL_DEBOUNCE_SECONDS = 0.3
    
    def __init__(self, center: Optional[GeoPoint] = None, clock: Optional[Any] = None):
        self.center = center
        self.clock = clock
        self.jump_count = 0
        self._pressed = False
        self._busy_until = float('-inf')
    
    def _now(self) -> float:
        return self.clock.now if self.clock is not None else float('inf')
    
    def get_center(self) -> Optional[GeoPoint]:
        return self.center
    
    @property
    def is_interacting(self) -> bool:
        return self._pressed or self._now() < self._busy_until
    
    def jump_to(self, center: GeoPoint) -> None:
        self.center = center
        self.jump_count += 1
    
    def begin_interaction(self) -> None:
        self._pressed = True
    
    def end_interaction(self) -> None:
        self._pressed = False
        self._busy_until = self._now() + self.SETTLE_SECONDS
    
    def wheel(self) -> None:
        """Register a scroll-wheel zoom step."""
        self._busy_until = self._now() + self.WHEEL_DEBOUNCE_SECONDS
    
    def drag_to(self, center: GeoPoint) -> None:
        """User pan: move the camera as part of an interaction."""
        self.center = center
    
    def __repr__(self) -> str:
        return f"SimulatedMapView(center={self.center}, interacting={self.is_interacting})"
