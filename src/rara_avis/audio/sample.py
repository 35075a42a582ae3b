"""
The Sample type.

Provider payloads are loosely typed: ids arrive as ints or strings,
coordinates as strings, floats, nulls or garbage. Samples are only ever
built through the constructors here, which normalize all of that once at
the boundary so the rest of the system can rely on ``lat``/``lng``
being either a finite float or None.
"""

from dataclasses import FrozenInstanceError, dataclass
import re
from typing import Any, Dict, Optional, Tuple

from ..config.models import SourceType
from ..utils.geo import is_valid_coordinate, parse_coordinate


def parse_duration(value: Any) -> Optional[float]:
    """
    Parse a duration given as seconds or as "m:ss" / "h:mm:ss".
    
    Example:
        >>> parse_duration("1:05")
        65.0
        >>> parse_duration(12)
        12.0
        >>> parse_duration("soon") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value >= 0 else None
    
    text = str(value).strip()
    if not re.fullmatch(r"\d+(:\d{1,2}){0,2}(\.\d+)?", text):
        return None
    seconds = 0.0
    for part in text.split(':'):
        seconds = seconds * 60.0 + float(part)
    return seconds


def parse_geotag(value: Any) -> Tuple[Optional[float], Optional[float]]:
    """
    Parse a Freesound geotag ("lat lon" string or [lat, lon] pair).
    
    Returns:
        (lat, lng), with None for anything unusable
    """
    if value is None:
        return None, None
    if isinstance(value, str):
        parts = value.replace(',', ' ').split()
    elif isinstance(value, (list, tuple)):
        parts = list(value)
    else:
        return None, None
    if len(parts) != 2:
        return None, None
    
    lat = parse_coordinate(parts[0])
    lng = parse_coordinate(parts[1])
    if not is_valid_coordinate(lat, lng):
        return None, None
    return lat, lng


@dataclass(eq=False)
class Sample:
    """
    A candidate sound.
    
    Everything except play_count is fixed once the sample is built.
    
    Attributes:
        id: Stable id, unique within its source
        url: Playable resource locator
        source: BIO or AMBIENT
        lat: Latitude, or None when missing/invalid
        lng: Longitude, or None when missing/invalid
        name: Common species name or recording title
        scientific_name: Genus and species for bio samples
        duration: Length in seconds, if the provider reports it
        credit: Recordist or uploader
        play_count: How often this sample has been scheduled
    """
    id: str
    url: str
    source: SourceType
    lat: Optional[float] = None
    lng: Optional[float] = None
    name: str = ""
    scientific_name: str = ""
    duration: Optional[float] = None
    credit: str = ""
    play_count: int = 0
    
    _MUTABLE_FIELDS = frozenset({'play_count'})
    
    def __setattr__(self, name: str, value: Any) -> None:
        if name in self.__dict__ and name not in self._MUTABLE_FIELDS:
            raise FrozenInstanceError(f"cannot assign to field {name!r}")
        object.__setattr__(self, name, value)
    
    def __delattr__(self, name: str) -> None:
        raise FrozenInstanceError(f"cannot delete field {name!r}")
    
    @property
    def has_valid_coords(self) -> bool:
        return is_valid_coordinate(self.lat, self.lng)
    
    @property
    def display_name(self) -> str:
        return self.name or self.scientific_name or self.id
    
    # =========================================================================
    # Boundary constructors
    # =========================================================================
    
    @classmethod
    def create(cls, id: Any, url: Any, source: SourceType,
               lat: Any = None, lng: Any = None, **metadata) -> 'Sample':
        """
        Build a sample from loosely typed values.
        
        Raises:
            ValueError: If the id or url is missing
        """
        if id is None or str(id).strip() == "":
            raise ValueError("Sample has no id")
        if not url:
            raise ValueError(f"Sample {id} has no playable url")
        
        lat = parse_coordinate(lat)
        lng = parse_coordinate(lng)
        if not is_valid_coordinate(lat, lng):
            lat = lng = None
        
        return cls(
            id=str(id).strip(),
            url=str(url),
            source=source,
            lat=lat,
            lng=lng,
            name=str(metadata.get('name') or ""),
            scientific_name=str(metadata.get('scientific_name') or ""),
            duration=parse_duration(metadata.get('duration')),
            credit=str(metadata.get('credit') or ""),
        )
    
    @classmethod
    def from_xeno_canto(cls, recording: Dict[str, Any]) -> 'Sample':
        """Build a bio sample from a Xeno-canto recording entry."""
        url = recording.get('file') or ""
        if url.startswith('//'):
            url = 'https:' + url
        scientific = f"{recording.get('gen') or ''} {recording.get('sp') or ''}".strip()
        return cls.create(
            recording.get('id'), url, SourceType.BIO,
            lat=recording.get('lat'),
            lng=recording.get('lon', recording.get('lng')),
            name=recording.get('en') or scientific,
            scientific_name=scientific,
            duration=recording.get('length'),
            credit=recording.get('rec'),
        )
    
    @classmethod
    def from_freesound(cls, result: Dict[str, Any]) -> 'Sample':
        """Build an ambient sample from a Freesound search result."""
        previews = result.get('previews') or {}
        lat, lng = parse_geotag(result.get('geotag'))
        return cls.create(
            result.get('id'), previews.get('preview-hq-mp3'), SourceType.AMBIENT,
            lat=lat, lng=lng,
            name=result.get('name'),
            duration=result.get('duration'),
            credit=result.get('username'),
        )
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any],
                  source: Optional[SourceType] = None) -> 'Sample':
        """Build a sample from its to_dict() form (offline sample files)."""
        if source is None:
            source = SourceType(data.get('source', SourceType.BIO.value))
        sample = cls.create(
            data.get('id'), data.get('url'), source,
            lat=data.get('lat'), lng=data.get('lng'),
            name=data.get('name'),
            scientific_name=data.get('scientific_name'),
            duration=data.get('duration'),
            credit=data.get('credit'),
        )
        return sample
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'url': self.url,
            'source': self.source.value,
            'lat': self.lat,
            'lng': self.lng,
            'name': self.name,
            'scientific_name': self.scientific_name,
            'duration': self.duration,
            'credit': self.credit,
            'play_count': self.play_count,
        }
    
    def __repr__(self) -> str:
        return f"Sample(id='{self.id}', source={self.source.value}, name='{self.display_name}')"
