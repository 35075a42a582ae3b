"""
Director events.

The Director reports everything it does (voices starting and ending,
fetch cycles, pool admissions and culls) as DirectorEvents to registered
listeners: the EventLogger, a visualization layer, a UI species list.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class EventType(Enum):
    """Types of director events."""
    VOICE_START = "voice_start"
    VOICE_END = "voice_end"
    VOICE_FAILED = "voice_failed"
    FETCH_STARTED = "fetch_started"
    FETCH_MERGED = "fetch_merged"
    SAMPLE_ADMITTED = "sample_admitted"
    SAMPLE_CULLED = "sample_culled"
    REFRESH = "refresh"


@dataclass
class DirectorEvent:
    """
    An event produced by the Director.
    
    Attributes:
        event_type: Type of event
        timestamp: Clock time of the tick that produced it
        sample_id: Sample concerned, if any
        voice_id: Voice instance, if any
        source: "bio" or "ambient"
        pan: Stereo position for voice events
        gain: Effective gain for voice events
        reason: Why this event occurred
        metadata: Additional event-specific data
    """
    event_type: EventType
    timestamp: float
    sample_id: str = ""
    voice_id: str = ""
    source: str = ""
    pan: float = 0.0
    gain: float = 0.0
    reason: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            'event_type': self.event_type.value,
            'timestamp': self.timestamp,
            'sample_id': self.sample_id,
            'voice_id': self.voice_id,
            'source': self.source,
            'pan': self.pan,
            'gain': self.gain,
            'reason': self.reason,
            'metadata': self.metadata,
        }
