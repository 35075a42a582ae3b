"""
Freesound field recordings (ambient samples).

Text search for nature ambience restricted by a Solr geofilter around
the camera and a duration window.
"""

from typing import Any, Dict, List, Optional

import requests

from ..audio.sample import Sample
from ..config.models import SourceConfig, SourceType
from .base import SampleSource, SourceError
from .transport import close_session, create_session, get_json


FIELDS = "id,name,previews,username,geotag,duration,url"


class FreesoundSource(SampleSource):
    """
    Ambient sample source backed by the Freesound search API.
    
    Args:
        config: Provider settings (url, token, query, duration window)
        session: Shared requests session (created if omitted)
        logger: Optional DebugLogger
    """
    
    name = "freesound"
    source_type = SourceType.AMBIENT
    
    def __init__(self, config: Optional[SourceConfig] = None,
                 session: Optional[requests.Session] = None,
                 logger: Optional[Any] = None):
        self.config = config or SourceConfig()
        self._owns_session = session is None
        self.session = session or create_session(self.config.user_agent)
        self.logger = logger
    
    def build_params(self, lat: float, lng: float, radius_km: float) -> Dict[str, Any]:
        cfg = self.config
        low, high = cfg.freesound_duration
        geo_filter = f"{{!geofilt sfield=geotag pt={lat:.4f},{lng:.4f} d={radius_km:g}}}"
        return {
            'query': cfg.freesound_query,
            'filter': f"{geo_filter} duration:[{low} TO {high}]",
            'fields': FIELDS,
            'token': cfg.freesound_key,
            'page_size': cfg.freesound_page_size,
        }
    
    def fetch(self, lat: float, lng: float, radius_km: float) -> List[Sample]:
        """
        Raises:
            SourceError: On network failure or a missing API token
        """
        if not self.config.freesound_key:
            raise SourceError("No API token configured", self.name)
        
        data = get_json(self.session, self.config.freesound_url,
                        self.build_params(lat, lng, radius_km),
                        self.config.timeout_seconds, self.name)
        
        samples = []
        for result in data.get('results') or []:
            try:
                samples.append(Sample.from_freesound(result))
            except ValueError as e:
                if self.logger is not None:
                    self.logger.debug("fetch", "Skipped result", error=str(e))
        return samples
    
    def close(self) -> None:
        if self._owns_session:
            close_session(self.session)
