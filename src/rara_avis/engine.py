"""
Main Rara Avis engine.

RaraAvisEngine is the host-side tick loop that wires the components
together:
- Map viewport (where the camera is, whether the user is touching it)
- Terrain classifier (what lies under the camera)
- Wanderer (where the camera goes next)
- Director (what is heard)

Each tick classifies the terrain exactly once and hands the same
reading to both the Wanderer and the Director, then publishes a
read-only snapshot for the visualization layer.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import time

from .audio.director import Director
from .audio.player import VoicePlayer
from .config.models import RaraAvisConfig, SourceType
from .core.clock import SimulationClock
from .core.state import GeoPoint, TerrainReading, TickContext
from .navigation.landmarks import LandmarkTable
from .navigation.terrain import TerrainClassifier
from .navigation.viewport import MapView
from .navigation.wanderer import Wanderer
from .sources.base import SampleSource
from .sources.fetcher import SampleFetcher
from .utils.rng import RNGManager


@dataclass
class SoundscapeSnapshot:
    """
    Read-only view of one tick for the visualization layer.
    
    Attributes:
        time: Clock time of the tick
        tick: Tick number
        center: Camera center after the tick (None before the map loads)
        bearing: Current heading in degrees
        target_bearing: Heading being steered towards
        nav_state: Wanderer state name
        terrain: Classification used this tick
        voices: Active voices with live amplitude
        bio_pool: Full bio pool contents
        ambient_pool: Full ambient pool contents
        pending: Samples waiting for admission
    """
    time: float
    tick: int
    center: Optional[GeoPoint]
    bearing: float
    target_bearing: float
    nav_state: str
    terrain: TerrainReading
    voices: List[Dict[str, Any]] = field(default_factory=list)
    bio_pool: List[Dict[str, Any]] = field(default_factory=list)
    ambient_pool: List[Dict[str, Any]] = field(default_factory=list)
    pending: int = 0
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            'time': self.time,
            'tick': self.tick,
            'center': self.center.to_dict() if self.center else None,
            'bearing': self.bearing,
            'target_bearing': self.target_bearing,
            'nav_state': self.nav_state,
            'terrain': self.terrain.to_dict(),
            'voices': self.voices,
            'bio_pool': self.bio_pool,
            'ambient_pool': self.ambient_pool,
            'pending': self.pending,
        }


@dataclass
class EngineStats:
    """Engine runtime statistics."""
    total_ticks: int = 0
    moves: int = 0
    idle_ticks: int = 0
    classifier_errors: int = 0
    runtime_seconds: float = 0.0
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_ticks': self.total_ticks,
            'moves': self.moves,
            'idle_ticks': self.idle_ticks,
            'classifier_errors': self.classifier_errors,
            'runtime_seconds': self.runtime_seconds,
        }


class RaraAvisEngine:
    """
    Top-level tick loop.
    
    Example:
        >>> engine = RaraAvisEngine(view, classifier, player, bio, ambient, seed=7)  # doctest: +SKIP
        >>> engine.start()                                                           # doctest: +SKIP
        >>> while running:                                                           # doctest: +SKIP
        ...     snapshot = engine.tick()
        ...     draw_compass(snapshot.bearing, snapshot.voices)
    """
    
    def __init__(self,
                 map_view: MapView,
                 classifier: TerrainClassifier,
                 player: VoicePlayer,
                 bio_source: SampleSource,
                 ambient_source: SampleSource,
                 config: Optional[RaraAvisConfig] = None,
                 seed: Optional[int] = None,
                 clock: Optional[Any] = None,
                 fetcher: Optional[SampleFetcher] = None,
                 logger: Optional[Any] = None):
        """
        Initialize the engine.
        
        Args:
            map_view: Host camera
            classifier: Terrain classifier
            player: Voice player
            bio_source: Bird recording provider
            ambient_source: Field recording provider
            config: Master configuration (defaults if omitted)
            seed: Master seed for reproducible runs (None = random)
            clock: SimulationClock or RealTimeClock
            fetcher: Background fetcher override
            logger: Optional DebugLogger
        """
        self.config = config or RaraAvisConfig()
        self.map_view = map_view
        self.classifier = classifier
        self.clock = clock if clock is not None else SimulationClock()
        self.logger = logger
        self.rngs = RNGManager(master_seed=seed)
        
        if logger is not None and logger.time_source is None:
            logger.time_source = lambda: self.clock.now
        
        self.landmarks = LandmarkTable(self.config.landmarks)
        self.wanderer = Wanderer(
            config=self.config.wanderer,
            landmarks=self.landmarks,
            rng=self.rngs.get("wander"),
            logger=logger,
        )
        self.director = Director(
            player=player,
            bio_source=bio_source,
            ambient_source=ambient_source,
            config=self.config,
            rng=self.rngs.get("director"),
            fetcher=fetcher,
            logger=logger,
        )
        
        self.terrain = TerrainReading()
        self.stats = EngineStats()
        self._real_start_time = time.time()
        self._last_snapshot: Optional[SoundscapeSnapshot] = None
    
    # =========================================================================
    # Tick
    # =========================================================================
    
    def tick(self) -> SoundscapeSnapshot:
        """
        Run one frame.
        
        Returns:
            Snapshot of the state after the frame
        """
        if self.logger is not None:
            self.logger.tick_start()
        
        now = self.clock.tick()
        self.stats.total_ticks += 1
        
        center = self.map_view.get_center()
        ctx = TickContext(
            now=now,
            center=center,
            is_interacting=self.map_view.is_interacting,
            tick=self.clock.tick_count,
        )
        
        # One classification per tick, shared by both consumers
        self.terrain = self._classify(center)
        
        next_center = self.wanderer.update(ctx, self.terrain)
        if next_center is not None:
            self.map_view.jump_to(next_center)
            self.stats.moves += 1
        else:
            self.stats.idle_ticks += 1
        
        self.director.update(ctx, self.terrain)
        
        self.stats.runtime_seconds = time.time() - self._real_start_time
        if self.logger is not None:
            self.logger.tick_end()
        
        self._last_snapshot = self.get_snapshot()
        return self._last_snapshot
    
    def _classify(self, center: Optional[GeoPoint]) -> TerrainReading:
        if center is None or center.is_degenerate:
            return self.terrain
        try:
            return self.classifier.classify(center)
        except Exception as e:
            # A map mid-reload can fail a query; reuse the last reading
            self.stats.classifier_errors += 1
            if self.logger is not None:
                self.logger.warning("engine", "Terrain classification failed",
                                    error=str(e))
            return self.terrain
    
    def run(self, ticks: int,
            callback: Optional[Callable[[SoundscapeSnapshot], None]] = None) -> Optional[SoundscapeSnapshot]:
        """
        Run a number of ticks back to back.
        
        Args:
            ticks: Number of frames
            callback: Called with every snapshot
            
        Returns:
            The last snapshot
        """
        snapshot = self._last_snapshot
        for _ in range(ticks):
            snapshot = self.tick()
            if callback is not None:
                callback(snapshot)
        return snapshot
    
    # =========================================================================
    # Controls
    # =========================================================================
    
    def start(self) -> None:
        self.wanderer.start()
        self.director.start()
    
    def stop(self) -> None:
        self.wanderer.stop()
        self.director.stop()
    
    def force_refresh(self) -> None:
        self.director.force_refresh()
    
    def set_volume(self, source: SourceType, volume: float) -> None:
        self.director.set_volume(source, volume)
    
    def on_event(self, callback: Callable) -> None:
        """Register a DirectorEvent callback."""
        self.director.on_event(callback)
    
    def shutdown(self) -> None:
        self.director.shutdown()
    
    # =========================================================================
    # State
    # =========================================================================
    
    def get_snapshot(self) -> SoundscapeSnapshot:
        """Build the visualization snapshot for the current state."""
        director = self.director
        return SoundscapeSnapshot(
            time=self.clock.now,
            tick=self.clock.tick_count,
            center=self.map_view.get_center(),
            bearing=self.wanderer.bearing,
            target_bearing=self.wanderer.target_bearing,
            nav_state=self.wanderer.nav_state.value,
            terrain=self.terrain,
            voices=director.get_voices(),
            bio_pool=director.bio_pool.snapshot(),
            ambient_pool=director.ambient_pool.snapshot(),
            pending=len(director.pending),
        )
    
    def get_state(self) -> Dict[str, Any]:
        """Complete engine state for inspection/logging."""
        center = self.map_view.get_center()
        state = {
            'time': self.clock.now,
            'center': center.to_dict() if center else None,
            'terrain': self.terrain.to_dict(),
            'wanderer': self.wanderer.get_state(),
            'director': self.director.get_state(),
            'stats': self.stats.to_dict(),
        }
        if self.logger is not None:
            state['performance'] = self.logger.get_performance_stats()
        return state
    
    def __repr__(self) -> str:
        return (f"RaraAvisEngine(time={self.clock.now:.1f}s, "
                f"state={self.wanderer.nav_state.value}, "
                f"voices={len(self.director.voices)})")
