"""
Audio: samples, pools, voices and the Director that schedules them.
"""

from .sample import Sample, parse_duration, parse_geotag
from .events import EventType, DirectorEvent
from .pool import SamplePool, PendingQueue
from .voice import Voice, VoiceState, VoiceRegistry
from .player import VoicePlayer, SimulatedVoicePlayer, GainRamp
from .selector import SampleSelector, SelectionResult
from .director import Director

__all__ = [
    'Sample',
    'parse_duration',
    'parse_geotag',
    'EventType',
    'DirectorEvent',
    'SamplePool',
    'PendingQueue',
    'Voice',
    'VoiceState',
    'VoiceRegistry',
    'VoicePlayer',
    'SimulatedVoicePlayer',
    'GainRamp',
    'SampleSelector',
    'SelectionResult',
    'Director',
]
