"""
Configuration loading and data models for Rara Avis.
"""

from .loader import ConfigLoader, ConfigError, load_config
from .models import (
    TerrainType,
    SourceType,
    WanderMode,
    Landmark,
    WandererConfig,
    FetchConfig,
    PoolConfig,
    PlaybackConfig,
    SourceConfig,
    RaraAvisConfig,
)
from .landmarks import DEFAULT_LANDMARKS

__all__ = [
    'ConfigLoader',
    'ConfigError',
    'load_config',
    'TerrainType',
    'SourceType',
    'WanderMode',
    'Landmark',
    'WandererConfig',
    'FetchConfig',
    'PoolConfig',
    'PlaybackConfig',
    'SourceConfig',
    'RaraAvisConfig',
    'DEFAULT_LANDMARKS',
]
