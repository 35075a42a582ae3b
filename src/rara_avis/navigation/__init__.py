"""
Navigation: the wanderer state machine and its collaborators.
"""

from .landmarks import LandmarkTable
from .terrain import (
    TerrainClassifier,
    MapFeature,
    classify_features,
    FeatureTerrainClassifier,
    ProceduralTerrainClassifier,
)
from .viewport import MapView, SimulatedMapView
from .wanderer import Wanderer

__all__ = [
    'LandmarkTable',
    'TerrainClassifier',
    'MapFeature',
    'classify_features',
    'FeatureTerrainClassifier',
    'ProceduralTerrainClassifier',
    'MapView',
    'SimulatedMapView',
    'Wanderer',
]
