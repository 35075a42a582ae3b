"""
Per-tick state containers for Rara Avis.

Configuration is static; the types here change every tick. The host
builds one TickContext per frame and hands it, together with the single
TerrainReading for that frame, to both the Wanderer and the Director.
"""

from dataclasses import dataclass, field
import math
from typing import Any, Dict, Optional, TYPE_CHECKING
from enum import Enum

from ..config.models import TerrainType, WanderMode

if TYPE_CHECKING:
    from ..config.models import Landmark


class NavState(Enum):
    """Navigation state machine states."""
    DRIFT = "drift"
    WATER_AVOID = "water_avoid"
    ESCAPE = "escape"


@dataclass(frozen=True)
class GeoPoint:
    """A map center in degrees."""
    lat: float
    lng: float
    
    @property
    def is_valid(self) -> bool:
        return math.isfinite(self.lat) and math.isfinite(self.lng)
    
    @property
    def is_degenerate(self) -> bool:
        """Unset or unusable center, e.g. (0, 0) before the map has loaded."""
        if not self.is_valid:
            return True
        return self.lat == 0.0 and self.lng == 0.0
    
    def to_dict(self) -> Dict[str, float]:
        return {'lat': self.lat, 'lng': self.lng}


@dataclass(frozen=True)
class TerrainReading:
    """
    Terrain classification of one viewport center.
    
    Attributes:
        type: Coarse classification
        density: Map feature density (0.0 to 1.0)
        elevation: Best-effort ground height in meters
    """
    type: TerrainType = TerrainType.MIX
    density: float = 0.0
    elevation: float = 0.0
    
    @property
    def is_water(self) -> bool:
        return self.type == TerrainType.WATER
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'density': self.density,
            'elevation': self.elevation,
        }


@dataclass
class TickContext:
    """
    Shared per-frame context.
    
    Carries what would otherwise be ambient host state (the time, the
    camera center, whether the user is touching the map).
    """
    now: float
    center: Optional[GeoPoint]
    is_interacting: bool = False
    tick: int = 0


@dataclass
class WandererState:
    """
    Mutable navigation state.
    
    Exactly one of drift, water avoidance or escape is active at a time.
    """
    bearing: float = 90.0
    target_bearing: float = 90.0
    speed: float = 0.00005
    mode: WanderMode = WanderMode.RANDOM
    nav_state: NavState = NavState.DRIFT
    escape_target: Optional['Landmark'] = None
    water_entry_time: Optional[float] = None
    is_wandering: bool = True
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            'bearing': self.bearing,
            'target_bearing': self.target_bearing,
            'speed': self.speed,
            'mode': self.mode.value,
            'nav_state': self.nav_state.value,
            'escape_target': self.escape_target.name if self.escape_target else None,
            'water_entry_time': self.water_entry_time,
            'is_wandering': self.is_wandering,
        }
