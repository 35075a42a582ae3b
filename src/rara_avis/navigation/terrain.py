"""
Terrain classification for Rara Avis.

The classifier is an external collaborator: the host asks it once per
tick what lies under the camera. Two implementations ship here:

- FeatureTerrainClassifier applies the map-analysis policy (elevation
  check, center feature check, area vote) on top of any map library that
  can report ground elevation and rendered vector features.
- ProceduralTerrainClassifier is a deterministic analytic world for
  headless runs and tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import math
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..config.models import TerrainType
from ..core.state import GeoPoint, TerrainReading
from ..utils.math_utils import clamp


class TerrainClassifier(ABC):
    """Interface: classify(center) -> TerrainReading."""
    
    @abstractmethod
    def classify(self, center: GeoPoint) -> TerrainReading:
        """Classify the terrain under a map center."""


@dataclass
class MapFeature:
    """A rendered vector feature as reported by the map library."""
    layer_id: str
    properties: Dict[str, Any] = field(default_factory=dict)
    
    def layer_has(self, *names: str) -> bool:
        return any(name in self.layer_id for name in names)
    
    @property
    def is_water(self) -> bool:
        return self.layer_has('water')


# Feature counts above this saturate the density estimate
DENSITY_SATURATION = 50


def classify_features(elevation: float,
                      center_features: Sequence[MapFeature],
                      area_features: Sequence[MapFeature],
                      water_buffer: float = 0.5) -> TerrainReading:
    """
    Classify terrain from elevation and rendered map features.
    
    Priority:
    1. Elevation at or below water_buffer: ocean/sea
    2. Topmost center feature is water (lakes, rivers above sea level).
       A building, landuse or park layer on top means we are not over
       water even if water is drawn below it.
    3. Vote over the surrounding area (urban vs nature)
    
    Args:
        elevation: Ground height in meters
        center_features: Features under the exact center, topmost first
        area_features: Features in the surrounding box
        water_buffer: Sea-level noise tolerance in meters
    """
    is_center_water = False
    for feature in center_features:
        if feature.is_water:
            is_center_water = True
            break
        if feature.layer_has('building', 'landuse', 'park'):
            break
    
    building_count = 0
    nature_count = 0
    for feature in area_features:
        # Water takes no part in the land vote
        if feature.is_water:
            continue
        if feature.layer_has('building', 'road'):
            building_count += 1
        elif feature.layer_has('landuse', 'park'):
            nature_count += 1
    
    density = clamp(len(area_features) / DENSITY_SATURATION, 0.0, 1.0)
    
    if elevation <= water_buffer:
        terrain_type = TerrainType.WATER
    elif is_center_water:
        terrain_type = TerrainType.WATER
    elif building_count > nature_count:
        terrain_type = TerrainType.URBAN
    elif nature_count > building_count:
        terrain_type = TerrainType.NATURE
    else:
        terrain_type = TerrainType.MIX
    
    return TerrainReading(type=terrain_type, density=density, elevation=elevation)


class FeatureTerrainClassifier(TerrainClassifier):
    """
    Classifier backed by a live map library.
    
    Args:
        elevation_query: center -> ground height in meters (None if unknown)
        feature_query: (center, half_box_px) -> rendered features, topmost
            first
        center_box_px: Half-size of the exact-center probe
        area_box_px: Half-size of the voting box
        water_buffer: Sea-level noise tolerance in meters
        logger: Optional DebugLogger
    """
    
    def __init__(self,
                 elevation_query: Callable[[GeoPoint], Optional[float]],
                 feature_query: Callable[[GeoPoint, int], List[MapFeature]],
                 center_box_px: int = 1,
                 area_box_px: int = 50,
                 water_buffer: float = 0.5,
                 logger: Optional[Any] = None):
        self.elevation_query = elevation_query
        self.feature_query = feature_query
        self.center_box_px = center_box_px
        self.area_box_px = area_box_px
        self.water_buffer = water_buffer
        self.logger = logger
    
    def _features(self, center: GeoPoint, half_box: int) -> List[MapFeature]:
        try:
            return list(self.feature_query(center, half_box))
        except Exception as e:
            # Style reloads and tile churn make queries fail transiently
            if self.logger is not None:
                self.logger.warning("engine", "Map feature query failed", error=str(e))
            return []
    
    def classify(self, center: GeoPoint) -> TerrainReading:
        elevation = self.elevation_query(center) or 0.0
        return classify_features(
            elevation,
            self._features(center, self.center_box_px),
            self._features(center, self.area_box_px),
            self.water_buffer,
        )


class ProceduralTerrainClassifier(TerrainClassifier):
    """
    Deterministic analytic world.
    
    Elevation is a sum of sinusoids in lat/lng; anything below sea level
    reports 0 m like an ocean DEM does. A second field splits land into
    urban, mixed and nature zones.
    
    Args:
        seed: Phase offset so different seeds give different worlds
        sea_level: Raise to drown more of the world
        relief: Peak height in meters
        wavelength_deg: Typical continent size in degrees
    """
    
    def __init__(self, seed: int = 0, sea_level: float = 0.0,
                 relief: float = 1200.0, wavelength_deg: float = 0.4):
        self.phase = (seed % 997) * 0.7311
        self.sea_level = sea_level
        self.relief = relief
        self.wavelength_deg = wavelength_deg
    
    def elevation_at(self, lat: float, lng: float) -> float:
        k = 2.0 * math.pi / self.wavelength_deg
        p = self.phase
        raw = (math.sin(k * lng + p) * math.cos(k * 0.8 * lat - p) +
               0.5 * math.sin(k * 2.3 * lat + 1.7 * p) +
               0.25 * math.cos(k * 4.1 * lng - k * 3.3 * lat))
        # raw spans roughly [-1.75, 1.75]
        height = raw / 1.75 * self.relief - self.sea_level
        return max(0.0, height)
    
    def classify(self, center: GeoPoint) -> TerrainReading:
        elevation = self.elevation_at(center.lat, center.lng)
        k = 2.0 * math.pi / (self.wavelength_deg * 0.37)
        settlement = math.sin(k * center.lat + self.phase) * math.sin(k * center.lng)
        density = clamp(0.5 + 0.5 * settlement, 0.0, 1.0)
        
        if elevation <= 0.5:
            terrain_type = TerrainType.WATER
            density = 0.0
        elif settlement > 0.4:
            terrain_type = TerrainType.URBAN
        elif settlement < -0.2:
            terrain_type = TerrainType.NATURE
        else:
            terrain_type = TerrainType.MIX
        
        return TerrainReading(type=terrain_type, density=density, elevation=elevation)
