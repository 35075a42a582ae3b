"""
Configuration data models for Rara Avis.

These dataclasses hold the tunables loaded from JSON. Every field has a
default, so a bare RaraAvisConfig() is a complete working configuration.
"""

from dataclasses import dataclass, field
from typing import List, Optional
from enum import Enum


# =============================================================================
# Enums
# =============================================================================

class TerrainType(Enum):
    """Coarse terrain classification of the viewport center."""
    WATER = "water"
    URBAN = "urban"
    NATURE = "nature"
    MIX = "mix"


class SourceType(Enum):
    """Which pool a sample belongs to."""
    BIO = "bio"          # Bioacoustic point sources (bird calls)
    AMBIENT = "ambient"  # Diffuse field recordings


class WanderMode(Enum):
    """Steering authority for the wanderer."""
    RANDOM = "random"  # Autopilot: drift, water avoidance, escapes
    LOCKED = "locked"  # Hold the user-selected heading


# =============================================================================
# Landmarks
# =============================================================================

@dataclass(frozen=True)
class Landmark:
    """A curated waypoint used for water avoidance and escapes."""
    name: str
    lng: float
    lat: float
    
    @property
    def coords(self) -> tuple:
        """(lng, lat) pair, map-library order."""
        return (self.lng, self.lat)


# =============================================================================
# Navigation
# =============================================================================

@dataclass
class WandererConfig:
    """Tunables for the navigation state machine."""
    initial_bearing: float = 90.0
    speed_level: float = 1.0  # 0-10 slider value
    speed_per_level: float = 0.00005  # Degrees per tick per level
    
    drift_jitter: float = 1.0  # +/- degrees per tick on open land
    grace_jitter: float = 0.5  # +/- degrees per tick while waiting out water grace
    fallback_turn: float = 1.5  # Degrees per tick when no landmark is available
    
    turn_rate: float = 0.5  # Max degrees per tick while drifting
    avoid_turn_rate: float = 1.5
    escape_turn_rate: float = 3.0
    
    water_elevation_buffer: float = 0.5  # Meters; at or below counts as sea level
    water_grace_seconds: float = 5.0
    landfall_elevation: float = 2.0  # Meters; above this an escape is over
    
    stuck_distance_km: float = 10.0
    arrival_radius_km: float = 0.5  # Landmarks this close give no heading
    escape_min_separation_sq: float = 25.0  # Squared degrees from the nearest landmark
    
    max_latitude: float = 85.0


# =============================================================================
# Director
# =============================================================================

@dataclass
class FetchConfig:
    """Fetch throttling and search radius."""
    interval_seconds: float = 30.0
    min_distance_deg: float = 0.02  # ~2km
    search_radius_km: float = 30.0
    ambient_radius_factor: float = 2.0  # Ambient search is wider
    cull_radius_factor: float = 3.0  # Keep samples within 3x search radius
    max_workers: int = 2


@dataclass
class PoolConfig:
    """Pool size bounds."""
    bio_max_size: int = 300
    ambient_max_size: int = 10
    max_pending: Optional[int] = None  # None = bio_max_size


@dataclass
class PlaybackConfig:
    """Voice scheduling, pan and gain ranges."""
    bio_interval: tuple = (2.0, 8.0)  # Seconds between bio checks
    ambient_interval: tuple = (15.0, 45.0)
    
    bio_pan: float = 0.8  # Pan drawn from [-bio_pan, bio_pan]
    ambient_pan: float = 0.2
    bio_gain: tuple = (0.4, 0.8)
    ambient_gain: tuple = (0.5, 0.8)
    
    bio_volume: float = 0.7  # Master multipliers
    ambient_volume: float = 0.5
    volume_ramp_seconds: float = 0.1
    
    variety_jitter: float = 1.0  # +/- added to play_count when ranking
    variety_top_n: int = 3
    min_separation_km: float = 1.0  # Between simultaneously playing bio voices
    
    fade_in_seconds: float = 2.0
    fade_out_seconds: float = 2.0


@dataclass
class SourceConfig:
    """Remote sample provider settings."""
    xeno_canto_url: str = "https://xeno-canto.org/api/3/recordings"
    xeno_canto_key: str = ""
    xeno_canto_length: str = "10-60"  # Recording length filter, seconds
    xeno_canto_max_radius_km: float = 500.0
    xeno_canto_attempts: int = 10
    xeno_canto_max_results: int = 100
    
    freesound_url: str = "https://freesound.org/apiv2/search/text/"
    freesound_key: str = ""
    freesound_query: str = "field-recording ambience nature"
    freesound_duration: tuple = (30, 300)
    freesound_page_size: int = 10
    
    timeout_seconds: float = 15.0
    user_agent: str = "rara-avis/0.3"


# =============================================================================
# Master Configuration
# =============================================================================

@dataclass
class RaraAvisConfig:
    """
    Master configuration container.
    
    Holds every tunable plus the landmark table. Loaded from
    rara_avis.json and landmarks.json by ConfigLoader, or built directly
    in code and tests.
    """
    wanderer: WandererConfig = field(default_factory=WandererConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    pools: PoolConfig = field(default_factory=PoolConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    sources: SourceConfig = field(default_factory=SourceConfig)
    landmarks: List[Landmark] = field(default_factory=list)
    
    def __post_init__(self):
        if not self.landmarks:
            from .landmarks import DEFAULT_LANDMARKS
            self.landmarks = list(DEFAULT_LANDMARKS)
    
    @property
    def max_pending(self) -> int:
        """Effective pending-queue cap."""
        if self.pools.max_pending is None:
            return self.pools.bio_max_size
        return self.pools.max_pending
