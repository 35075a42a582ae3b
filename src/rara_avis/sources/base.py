"""
Sample source interface.

A SampleSource answers "what recordings exist near here?". Calls are
blocking; the SampleFetcher runs them off the tick thread.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..audio.sample import Sample
from ..config.models import SourceType


class SourceError(Exception):
    """A provider request failed (network, HTTP status or payload)."""
    
    def __init__(self, message: str, provider: Optional[str] = None,
                 status: Optional[int] = None):
        self.provider = provider
        self.status = status
        
        parts = [message]
        if provider:
            parts.append(f"provider: {provider}")
        if status is not None:
            parts.append(f"status: {status}")
        super().__init__(" | ".join(parts))


class SampleSource(ABC):
    """
    Provider of candidate samples around a location.
    
    Implementations may return an empty list and may raise; callers
    treat any exception as "nothing this time".
    """
    
    name: str = "source"
    source_type: SourceType = SourceType.BIO
    
    @abstractmethod
    def fetch(self, lat: float, lng: float, radius_km: float) -> List[Sample]:
        """Return samples near (lat, lng), capped by the provider."""
    
    def close(self) -> None:
        """Release network resources."""
    
    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
