"""
Autonomous navigation for Rara Avis.

The Wanderer steers the map camera across the globe. Each tick it reads
the terrain under the center, runs a three-state machine (drift, water
avoidance, escape), eases the heading towards the target bearing and
returns the next center for the host to jump to.

States:
    DRIFT        Random walk over land
    WATER_AVOID  Over water past the grace period; home in on the
                 nearest landmark
    ESCAPE       Stuck near a landmark that is surrounded by water; fly
                 to a distant one until landfall
"""

import math
from typing import Any, Dict, Optional

from ..config.models import Landmark, TerrainType, WanderMode, WandererConfig
from ..config.landmarks import DEFAULT_LANDMARKS
from ..core.state import GeoPoint, NavState, TerrainReading, TickContext, WandererState
from ..utils.geo import approx_distance_km, forward_azimuth, wrap_longitude
from ..utils.math_utils import clamp, normalize_angle, step_towards_angle
from ..utils.rng import SeededRNG
from ..utils.validators import validate_range
from .landmarks import LandmarkTable


class Wanderer:
    """
    Navigation state machine.
    
    The host calls update() once per frame with the shared tick context
    and the terrain reading for the current center. update() returns the
    next center, or None when the camera should stay put (wandering
    stopped, user interacting, no usable center).
    
    Example:
        >>> wanderer = Wanderer(rng=SeededRNG(seed=1))
        >>> ctx = TickContext(now=0.0, center=GeoPoint(lat=48.85, lng=2.35))
        >>> nxt = wanderer.update(ctx, TerrainReading(type=TerrainType.URBAN, elevation=35.0))
        >>> nxt is not None
        True
    """
    
    def __init__(self,
                 config: Optional[WandererConfig] = None,
                 landmarks: Optional[LandmarkTable] = None,
                 rng: Optional[SeededRNG] = None,
                 logger: Optional[Any] = None):
        """
        Initialize the wanderer.
        
        Args:
            config: Navigation tunables
            landmarks: Landmark table (defaults to the built-in set)
            rng: Random source for steering
            logger: Optional DebugLogger
        """
        self.config = config or WandererConfig()
        self.landmarks = landmarks if landmarks is not None else LandmarkTable(DEFAULT_LANDMARKS)
        self.rng = rng or SeededRNG(name="wander")
        self.logger = logger
        
        cfg = self.config
        self.state = WandererState(
            bearing=normalize_angle(cfg.initial_bearing),
            target_bearing=normalize_angle(cfg.initial_bearing),
            speed=cfg.speed_level * cfg.speed_per_level,
        )
    
    # =========================================================================
    # Properties
    # =========================================================================
    
    @property
    def bearing(self) -> float:
        return self.state.bearing
    
    @property
    def target_bearing(self) -> float:
        return self.state.target_bearing
    
    @property
    def nav_state(self) -> NavState:
        return self.state.nav_state
    
    @property
    def escape_target(self) -> Optional[Landmark]:
        return self.state.escape_target
    
    @property
    def turn_rate(self) -> float:
        """Maximum heading change per tick in the current state."""
        if self.state.nav_state == NavState.ESCAPE:
            return self.config.escape_turn_rate
        if self.state.nav_state == NavState.WATER_AVOID:
            return self.config.avoid_turn_rate
        return self.config.turn_rate
    
    # =========================================================================
    # Controls
    # =========================================================================
    
    def start(self) -> None:
        self.state.is_wandering = True
    
    def stop(self) -> None:
        self.state.is_wandering = False
    
    def set_mode(self, mode: WanderMode) -> None:
        """
        Switch between random wandering and a user-locked heading.
        
        Locking resets navigation to DRIFT so a later unlock starts clean.
        """
        if mode == self.state.mode:
            return
        self.state.mode = mode
        if mode == WanderMode.LOCKED:
            self._reset_navigation(None, reason="locked")
    
    def set_bearing(self, bearing: float) -> None:
        """Set the target heading (the compass control in locked mode)."""
        self.state.target_bearing = normalize_angle(bearing)
    
    def set_speed(self, level: float) -> None:
        """
        Set the speed from a 0-10 slider level.
        
        Raises:
            ValidationError: If level is outside [0, 10]
        """
        validate_range(level, 0.0, 10.0, "speed_level")
        self.state.speed = level * self.config.speed_per_level
    
    # =========================================================================
    # Update
    # =========================================================================
    
    def update(self, ctx: TickContext, terrain: TerrainReading) -> Optional[GeoPoint]:
        """
        Advance one tick.
        
        Args:
            ctx: Shared tick context
            terrain: Classification of ctx.center
            
        Returns:
            The next center, or None to leave the camera alone
        """
        state = self.state
        if not state.is_wandering or ctx.is_interacting:
            return None
        
        center = ctx.center
        if center is None or center.is_degenerate:
            return None
        
        if state.mode == WanderMode.RANDOM:
            self._steer(ctx.now, center, terrain)
        
        state.bearing = step_towards_angle(state.bearing, state.target_bearing, self.turn_rate)
        return self._advance(center)
    
    def _steer(self, now: float, center: GeoPoint, terrain: TerrainReading) -> None:
        state = self.state
        cfg = self.config
        
        if state.nav_state == NavState.ESCAPE:
            if self._has_made_landfall(terrain):
                self._transition(NavState.DRIFT, now, reason="landfall",
                                 elevation=round(terrain.elevation, 1))
                state.escape_target = None
                state.water_entry_time = None
                self._drift(cfg.drift_jitter)
            else:
                self._steer_to_escape(center)
            return
        
        over_water = self._is_over_water(terrain)
        
        if state.nav_state == NavState.WATER_AVOID:
            if over_water:
                self._avoid_water(now, center)
            else:
                self._transition(NavState.DRIFT, now, reason="land")
                state.water_entry_time = None
                self._drift(cfg.drift_jitter)
            return
        
        # DRIFT
        if not over_water:
            state.water_entry_time = None
            self._drift(cfg.drift_jitter)
            return
        
        if state.water_entry_time is None:
            state.water_entry_time = now
        
        if now - state.water_entry_time >= cfg.water_grace_seconds:
            self._transition(NavState.WATER_AVOID, now,
                             elevation=round(terrain.elevation, 1))
            self._avoid_water(now, center)
        else:
            # Small islands and rivers get crossed without a course change
            self._drift(cfg.grace_jitter)
    
    def _is_over_water(self, terrain: TerrainReading) -> bool:
        return (terrain.type == TerrainType.WATER and
                terrain.elevation <= self.config.water_elevation_buffer)
    
    def _has_made_landfall(self, terrain: TerrainReading) -> bool:
        cfg = self.config
        if terrain.elevation > cfg.landfall_elevation:
            return True
        return (terrain.elevation > cfg.water_elevation_buffer and
                terrain.type != TerrainType.WATER)
    
    def _drift(self, amplitude: float) -> None:
        self.state.target_bearing = normalize_angle(
            self.state.target_bearing + self.rng.jitter(amplitude))
    
    def _avoid_water(self, now: float, center: GeoPoint) -> None:
        state = self.state
        cfg = self.config
        
        nearest = self.landmarks.nearest(center, exclude_within_km=cfg.arrival_radius_km)
        if nearest is None:
            self._drift(cfg.fallback_turn)
            return
        
        distance_km = approx_distance_km(center.lat, center.lng, nearest.lat, nearest.lng)
        if distance_km < cfg.stuck_distance_km:
            target = self.landmarks.pick_escape_target(
                nearest, self.rng, cfg.escape_min_separation_sq)
            if target is not None:
                state.escape_target = target
                self._transition(NavState.ESCAPE, now, near=nearest.name,
                                 target=target.name)
                self._steer_to_escape(center)
                return
        
        state.target_bearing = forward_azimuth(center.lat, center.lng,
                                               nearest.lat, nearest.lng)
    
    def _steer_to_escape(self, center: GeoPoint) -> None:
        target = self.state.escape_target
        if target is None:
            self._drift(self.config.fallback_turn)
            return
        self.state.target_bearing = forward_azimuth(center.lat, center.lng,
                                                    target.lat, target.lng)
    
    def _advance(self, center: GeoPoint) -> GeoPoint:
        rad = math.radians(self.state.bearing)
        speed = self.state.speed
        lat = clamp(center.lat + math.cos(rad) * speed,
                    -self.config.max_latitude, self.config.max_latitude)
        lng = wrap_longitude(center.lng + math.sin(rad) * speed)
        return GeoPoint(lat=lat, lng=lng)
    
    # =========================================================================
    # State Changes
    # =========================================================================
    
    def _transition(self, new_state: NavState, now: Optional[float], **data) -> None:
        old_state = self.state.nav_state
        if old_state == new_state:
            return
        self.state.nav_state = new_state
        if self.logger is not None:
            self.logger.log_nav_transition(now, old_state.value, new_state.value, **data)
    
    def _reset_navigation(self, now: Optional[float], **data) -> None:
        self._transition(NavState.DRIFT, now, **data)
        self.state.escape_target = None
        self.state.water_entry_time = None
    
    def get_state(self) -> Dict[str, Any]:
        return self.state.to_dict()
    
    def __repr__(self) -> str:
        return (f"Wanderer(state={self.state.nav_state.value}, "
                f"bearing={self.state.bearing:.1f}, mode={self.state.mode.value})")
