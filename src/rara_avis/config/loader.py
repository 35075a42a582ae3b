"""
Configuration loader for Rara Avis.

Loads JSON configuration files and converts them to typed dataclass objects.
Provides validation and helpful error messages for malformed configs.
"""

import dataclasses
import json
import os
from pathlib import Path
from typing import Dict, Any, List, Optional

from .models import (
    RaraAvisConfig,
    WandererConfig,
    FetchConfig,
    PoolConfig,
    PlaybackConfig,
    SourceConfig,
    Landmark,
)
from ..utils.geo import is_valid_coordinate
from ..utils.validators import (
    ValidationError,
    validate_interval,
    validate_positive,
    validate_range,
    validate_unit,
)


XENO_CANTO_KEY_ENV = "XENO_CANTO_API_KEY"
FREESOUND_KEY_ENV = "FREESOUND_API_KEY"


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""
    
    def __init__(self, message: str, file: Optional[str] = None, 
                 path: Optional[str] = None):
        self.message = message
        self.file = file
        self.path = path
        
        full_msg = message
        if file:
            full_msg = f"[{file}] {full_msg}"
        if path:
            full_msg = f"{full_msg} (at {path})"
        
        super().__init__(full_msg)


class ConfigLoader:
    """
    Loads and parses Rara Avis configuration files.
    
    Usage:
        loader = ConfigLoader("./config")
        config = loader.load_all()
        
        # Or load individual files:
        landmarks = loader.load_landmarks()
    """
    
    SETTINGS_FILE = "rara_avis.json"
    LANDMARKS_FILE = "landmarks.json"
    
    SECTIONS = {
        'wanderer': WandererConfig,
        'fetch': FetchConfig,
        'pools': PoolConfig,
        'playback': PlaybackConfig,
        'sources': SourceConfig,
    }
    
    def __init__(self, config_dir: str):
        """
        Initialize the config loader.
        
        Args:
            config_dir: Path to directory containing config JSON files
        """
        self.config_dir = Path(config_dir)
        
        if not self.config_dir.exists():
            raise ConfigError(f"Config directory not found: {config_dir}")
    
    def _load_json(self, filename: str, required: bool = True) -> Dict[str, Any]:
        """Load a JSON file from the config directory."""
        filepath = self.config_dir / filename
        
        if not filepath.exists():
            if required:
                raise ConfigError(f"Config file not found: {filepath}", file=filename)
            return {}
        
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON: {e}", file=filename)
        
        if not isinstance(data, dict):
            raise ConfigError("Top level must be an object", file=filename)
        return data
    
    # =========================================================================
    # Settings Loading
    # =========================================================================
    
    def _parse_section(self, name: str, cls: type, data: Dict[str, Any]) -> Any:
        """Build a section dataclass, falling back to field defaults."""
        if not isinstance(data, dict):
            raise ConfigError("Section must be an object",
                              file=self.SETTINGS_FILE, path=name)
        
        known = {f.name: f for f in dataclasses.fields(cls)}
        kwargs = {}
        for key, value in data.items():
            # Skip description fields
            if key.startswith('_'):
                continue
            if key not in known:
                raise ConfigError(f"Unknown setting: {key}",
                                  file=self.SETTINGS_FILE, path=name)
            if isinstance(value, list):
                value = tuple(value)
            kwargs[key] = value
        
        try:
            return cls(**kwargs)
        except TypeError as e:
            raise ConfigError(str(e), file=self.SETTINGS_FILE, path=name)
    
    def load_settings(self) -> Dict[str, Any]:
        """
        Load rara_avis.json.
        
        Returns:
            Dict of section name to section dataclass. Missing sections
            get their defaults.
        """
        data = self._load_json(self.SETTINGS_FILE, required=False)
        
        return {
            name: self._parse_section(name, cls, data.get(name, {}))
            for name, cls in self.SECTIONS.items()
        }
    
    # =========================================================================
    # Landmark Loading
    # =========================================================================
    
    def load_landmarks(self) -> List[Landmark]:
        """
        Load landmarks.json.
        
        Each entry is {"name": str, "coords": [lng, lat]}. Returns an empty
        list when the file is absent (the default table is used then).
        
        Raises:
            ConfigError: On a malformed entry, or a file whose table is empty
        """
        if not (self.config_dir / self.LANDMARKS_FILE).exists():
            return []
        data = self._load_json(self.LANDMARKS_FILE)
        
        entries = data.get("landmarks")
        if not isinstance(entries, list):
            raise ConfigError("landmarks must be a list",
                              file=self.LANDMARKS_FILE, path="landmarks")
        if not entries:
            raise ConfigError("Landmark table is empty",
                              file=self.LANDMARKS_FILE, path="landmarks")
        
        landmarks = []
        for i, entry in enumerate(entries):
            path = f"landmarks[{i}]"
            if not isinstance(entry, dict):
                raise ConfigError("Landmark must be an object",
                                  file=self.LANDMARKS_FILE, path=path)
            if not isinstance(entry.get("name"), str) or not entry["name"]:
                raise ConfigError("Missing required field: name",
                                  file=self.LANDMARKS_FILE, path=path)
            coords = entry.get("coords")
            if not isinstance(coords, list) or len(coords) != 2:
                raise ConfigError("coords must be [lng, lat]",
                                  file=self.LANDMARKS_FILE, path=path)
            lng, lat = coords
            if not is_valid_coordinate(lat, lng):
                raise ConfigError(f"Invalid coordinates: {coords}",
                                  file=self.LANDMARKS_FILE, path=path)
            landmarks.append(Landmark(name=entry["name"], lng=float(lng), lat=float(lat)))
        
        return landmarks
    
    # =========================================================================
    # Load All
    # =========================================================================
    
    def load_all(self) -> RaraAvisConfig:
        """
        Load all configuration files and return a complete RaraAvisConfig.
        
        Raises:
            ConfigError: If any config file is malformed or out of range
        """
        sections = self.load_settings()
        landmarks = self.load_landmarks()
        
        config = RaraAvisConfig(landmarks=landmarks, **sections)
        apply_environment(config)
        validate_config(config)
        return config


def apply_environment(config: RaraAvisConfig) -> None:
    """Fill missing API keys from the environment."""
    if not config.sources.xeno_canto_key:
        config.sources.xeno_canto_key = os.environ.get(XENO_CANTO_KEY_ENV, "")
    if not config.sources.freesound_key:
        config.sources.freesound_key = os.environ.get(FREESOUND_KEY_ENV, "")


def validate_config(config: RaraAvisConfig) -> None:
    """
    Check value ranges across all sections.
    
    Raises:
        ConfigError: On the first out-of-range value
    """
    w = config.wanderer
    f = config.fetch
    p = config.playback
    
    checks = [
        lambda: validate_range(w.speed_level, 0.0, 10.0, "wanderer.speed_level"),
        lambda: validate_positive(w.turn_rate, "wanderer.turn_rate", allow_zero=False),
        lambda: validate_positive(w.avoid_turn_rate, "wanderer.avoid_turn_rate", allow_zero=False),
        lambda: validate_positive(w.escape_turn_rate, "wanderer.escape_turn_rate", allow_zero=False),
        lambda: validate_positive(w.water_grace_seconds, "wanderer.water_grace_seconds"),
        lambda: validate_positive(w.stuck_distance_km, "wanderer.stuck_distance_km"),
        lambda: validate_positive(f.interval_seconds, "fetch.interval_seconds"),
        lambda: validate_positive(f.min_distance_deg, "fetch.min_distance_deg"),
        lambda: validate_positive(f.search_radius_km, "fetch.search_radius_km", allow_zero=False),
        lambda: validate_positive(f.max_workers, "fetch.max_workers", allow_zero=False),
        lambda: validate_positive(config.pools.bio_max_size, "pools.bio_max_size", allow_zero=False),
        lambda: validate_positive(config.pools.ambient_max_size, "pools.ambient_max_size", allow_zero=False),
        lambda: validate_unit(p.bio_volume, "playback.bio_volume"),
        lambda: validate_unit(p.ambient_volume, "playback.ambient_volume"),
        lambda: validate_unit(p.bio_pan, "playback.bio_pan"),
        lambda: validate_unit(p.ambient_pan, "playback.ambient_pan"),
        lambda: validate_positive(p.variety_top_n, "playback.variety_top_n", allow_zero=False),
    ]
    for name, pair in (("playback.bio_interval", p.bio_interval),
                       ("playback.ambient_interval", p.ambient_interval),
                       ("playback.bio_gain", p.bio_gain),
                       ("playback.ambient_gain", p.ambient_gain)):
        checks.append(lambda pair=pair, name=name: validate_interval(pair, name))
    
    try:
        for check in checks:
            check()
    except ValidationError as e:
        raise ConfigError(e.message, file=ConfigLoader.SETTINGS_FILE, path=e.field)


def load_config(config_dir: Optional[str] = None) -> RaraAvisConfig:
    """
    Convenience function to load all configuration.
    
    Args:
        config_dir: Path to config directory. None gives the built-in
            defaults (plus API keys from the environment).
        
    Returns:
        Fully populated RaraAvisConfig object
    """
    if config_dir is None:
        config = RaraAvisConfig()
        apply_environment(config)
        return config
    loader = ConfigLoader(config_dir)
    return loader.load_all()
