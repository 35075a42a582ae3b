"""
Voice bookkeeping.

A Voice is the Director's record of one playback request. The player
owns the audio resources; the Director only tracks which samples are
backing live voices so they are never evicted, and what each voice was
asked to do.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Set

from ..config.models import SourceType
from .sample import Sample


class VoiceState(Enum):
    """Lifecycle of a voice."""
    LOADING = "loading"
    PLAYING = "playing"


@dataclass
class Voice:
    """
    One live playback instance.
    
    Attributes:
        sample: The sample being played
        pan: Stereo position (-1 to 1)
        gain: Per-voice gain before the source master volume
        requested_at: Clock time of the play request
        id: Player-assigned id (empty until play() returns)
        state: LOADING until the player confirms playback
        started_at: Clock time playback actually began
        ended: Set once the release callback has run
    """
    sample: Sample
    pan: float
    gain: float
    requested_at: float
    id: str = ""
    state: VoiceState = VoiceState.LOADING
    started_at: Optional[float] = None
    ended: bool = False
    
    @property
    def source(self) -> SourceType:
        return self.sample.source
    
    @property
    def sample_id(self) -> str:
        return self.sample.id
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'sample_id': self.sample.id,
            'source': self.source.value,
            'name': self.sample.display_name,
            'lat': self.sample.lat,
            'lng': self.sample.lng,
            'pan': self.pan,
            'gain': self.gain,
            'state': self.state.value,
        }


class VoiceRegistry:
    """Voices currently owned by the Director, keyed by voice id."""
    
    def __init__(self):
        self._voices: Dict[str, Voice] = {}
    
    def add(self, voice: Voice) -> None:
        self._voices[voice.id] = voice
    
    def remove(self, voice_id: str) -> Optional[Voice]:
        return self._voices.pop(voice_id, None)
    
    def get(self, voice_id: str) -> Optional[Voice]:
        return self._voices.get(voice_id)
    
    def by_source(self, source: SourceType) -> List[Voice]:
        return [v for v in self._voices.values() if v.source == source]
    
    def sample_ids(self, source: Optional[SourceType] = None) -> Set[str]:
        """Ids of samples backing a live (loading or playing) voice."""
        return {
            v.sample.id for v in self._voices.values()
            if source is None or v.source == source
        }
    
    def is_backing(self, sample_id: str) -> bool:
        return any(v.sample.id == sample_id for v in self._voices.values())
    
    def voices(self) -> List[Voice]:
        return list(self._voices.values())
    
    def clear(self) -> None:
        self._voices.clear()
    
    def __len__(self) -> int:
        return len(self._voices)
    
    def __iter__(self) -> Iterator[Voice]:
        return iter(list(self._voices.values()))
    
    def __repr__(self) -> str:
        return f"VoiceRegistry(active={len(self)})"
