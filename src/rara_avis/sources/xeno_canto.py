"""
Xeno-canto bird recordings (bio samples).

Queries API v3 with a lat/lng bounding box. Sparse regions often return
nothing at the requested radius, so the search widens by doubling until
it finds recordings or reaches the maximum radius. A box that crosses
the antimeridian is sent as two queries, one on each side.
"""

import math
from typing import Any, Dict, List, Optional

import requests

from ..audio.sample import Sample
from ..config.models import SourceConfig, SourceType
from ..utils.geo import KM_PER_DEGREE
from ..utils.math_utils import clamp
from .base import SampleSource, SourceError
from .transport import close_session, create_session, get_json


def _format_box(lat_min: float, lng_min: float, lat_max: float, lng_max: float) -> str:
    return "{:.3f},{:.3f},{:.3f},{:.3f}".format(lat_min, lng_min, lat_max, lng_max)


def bounding_boxes(lat: float, lng: float, radius_km: float) -> List[str]:
    """
    Xeno-canto box query values: "LAT_MIN,LON_MIN,LAT_MAX,LON_MAX".
    
    Returns one box, or two when the longitude span crosses +/-180.
    
    Example:
        >>> bounding_boxes(0.0, 0.0, 111.0)
        ['-1.000,-1.000,1.000,1.000']
        >>> bounding_boxes(0.0, 179.5, 111.0)
        ['-1.000,178.500,1.000,180.000', '-1.000,-180.000,1.000,-179.500']
    """
    lat_delta = radius_km / KM_PER_DEGREE
    # Longitude degrees shrink towards the poles
    lng_delta = radius_km / (KM_PER_DEGREE * max(math.cos(math.radians(lat)), 0.01))
    lat_min = clamp(lat - lat_delta, -90.0, 90.0)
    lat_max = clamp(lat + lat_delta, -90.0, 90.0)
    lng_min = lng - lng_delta
    lng_max = lng + lng_delta
    
    if lng_delta >= 180.0:
        return [_format_box(lat_min, -180.0, lat_max, 180.0)]
    if lng_min < -180.0:
        return [_format_box(lat_min, lng_min + 360.0, lat_max, 180.0),
                _format_box(lat_min, -180.0, lat_max, lng_max)]
    if lng_max > 180.0:
        return [_format_box(lat_min, lng_min, lat_max, 180.0),
                _format_box(lat_min, -180.0, lat_max, lng_max - 360.0)]
    return [_format_box(lat_min, lng_min, lat_max, lng_max)]


class XenoCantoSource(SampleSource):
    """
    Bio sample source backed by the Xeno-canto API.
    
    Args:
        config: Provider settings (url, key, radius expansion)
        session: Shared requests session (created if omitted)
        logger: Optional DebugLogger
    """
    
    name = "xeno-canto"
    source_type = SourceType.BIO
    
    def __init__(self, config: Optional[SourceConfig] = None,
                 session: Optional[requests.Session] = None,
                 logger: Optional[Any] = None):
        self.config = config or SourceConfig()
        self._owns_session = session is None
        self.session = session or create_session(self.config.user_agent)
        self.logger = logger
    
    def build_params(self, box: str) -> Dict[str, str]:
        query = f"box:{box} len:{self.config.xeno_canto_length}"
        return {'query': query, 'key': self.config.xeno_canto_key}
    
    def parse_recordings(self, recordings: List[Dict[str, Any]]) -> List[Sample]:
        """Turn recording entries into samples, dropping unusable ones."""
        samples = []
        for recording in recordings:
            try:
                sample = Sample.from_xeno_canto(recording)
            except ValueError as e:
                if self.logger is not None:
                    self.logger.debug("fetch", "Skipped recording", error=str(e))
                continue
            if not sample.has_valid_coords:
                if self.logger is not None:
                    self.logger.debug("fetch", "Invalid coords for recording",
                                      sample_id=sample.id)
                continue
            samples.append(sample)
        return samples
    
    def fetch(self, lat: float, lng: float, radius_km: float) -> List[Sample]:
        """
        Fetch recordings, widening the search while nothing turns up.
        
        Raises:
            SourceError: On network failure or a missing API key
        """
        cfg = self.config
        if not cfg.xeno_canto_key:
            raise SourceError("No API key configured", self.name)
        
        radius = radius_km
        for _ in range(cfg.xeno_canto_attempts):
            samples = []
            for box in bounding_boxes(lat, lng, radius):
                data = get_json(self.session, cfg.xeno_canto_url,
                                self.build_params(box),
                                cfg.timeout_seconds, self.name)
                samples.extend(self.parse_recordings(data.get('recordings') or []))
            if samples:
                if self.logger is not None:
                    self.logger.debug("fetch", f"Found {len(samples)} recordings",
                                      radius=f"{radius:.0f}km")
                return samples[:cfg.xeno_canto_max_results]
            
            if radius >= cfg.xeno_canto_max_radius_km:
                break
            radius = min(radius * 2.0, cfg.xeno_canto_max_radius_km)
        
        return []
    
    def close(self) -> None:
        if self._owns_session:
            close_session(self.session)
