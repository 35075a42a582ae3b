"""
Static sample source for offline runs and tests.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..audio.sample import Sample
from ..config.models import SourceType
from ..utils.geo import approx_distance_km
from .base import SampleSource, SourceError


class StaticSampleSource(SampleSource):
    """
    Serves a fixed sample list, filtered by radius.
    
    Samples without coordinates are always included (ambient clips often
    have none).
    
    Args:
        samples: The catalog
        source_type: BIO or AMBIENT
        name: Provider name used in logs and events
        max_results: Cap on returned samples
    """
    
    def __init__(self, samples: Iterable[Sample],
                 source_type: SourceType = SourceType.BIO,
                 name: str = "static",
                 max_results: int = 100):
        self.samples: List[Sample] = list(samples)
        self.source_type = source_type
        self.name = name
        self.max_results = max_results
        self.calls: List[Tuple[float, float, float]] = []
    
    def fetch(self, lat: float, lng: float, radius_km: float) -> List[Sample]:
        self.calls.append((lat, lng, radius_km))
        found = []
        for sample in self.samples:
            if sample.has_valid_coords:
                if approx_distance_km(lat, lng, sample.lat, sample.lng) > radius_km:
                    continue
            # Fresh copies so play counts never leak between fetches
            found.append(Sample.from_dict(sample.to_dict(), self.source_type))
            if len(found) >= self.max_results:
                break
        return found
    
    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]],
                     source_type: SourceType, name: str = "static") -> 'StaticSampleSource':
        samples = [Sample.from_dict(r, source_type) for r in records]
        return cls(samples, source_type, name)


def load_offline_sources(path: Union[str, Path]) -> Tuple[StaticSampleSource, StaticSampleSource]:
    """
    Load bio and ambient catalogs from one JSON file.
    
    The file holds ``{"bio": [...], "ambient": [...]}`` where each entry
    uses the Sample.to_dict() field names.
    
    Raises:
        SourceError: If the file is missing or malformed
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise SourceError(f"Offline catalog not found: {path}", "offline") from e
    except json.JSONDecodeError as e:
        raise SourceError(f"Invalid JSON in {path}: {e.msg} (line {e.lineno})", "offline") from e
    
    try:
        bio = StaticSampleSource.from_records(
            data.get('bio', []), SourceType.BIO, "offline-bio")
        ambient = StaticSampleSource.from_records(
            data.get('ambient', []), SourceType.AMBIENT, "offline-ambient")
    except (AttributeError, ValueError) as e:
        raise SourceError(f"Malformed offline catalog {path}: {e}", "offline") from e
    return bio, ambient
