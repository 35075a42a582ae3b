"""
Voice players.

VoicePlayer is the boundary to whatever actually makes sound. It loads,
plays, fades and disposes voices, and reports a live amplitude per voice
for the visualization layer.

Contract: for every play() call, on_ended(voice_id, reason) fires
exactly once, whether the voice finished ("ended"), was stopped
("stopped") or never loaded ("load_failed").

SimulatedVoicePlayer is the headless implementation used by the
simulator and the tests. It models load latency with futures, fades with
a linear envelope, and source volumes as gain buses with linear ramps.
"""

from abc import ABC, abstractmethod
from concurrent.futures import Executor, Future
from dataclasses import dataclass
import itertools
import math
from typing import Any, Callable, Dict, List, Optional

from ..config.models import SourceType
from ..utils.math_utils import clamp, db_to_linear, lerp
from .sample import Sample


EndedCallback = Callable[[str, str], None]


class VoicePlayer(ABC):
    """Interface to the audio output."""
    
    @abstractmethod
    def play(self, url: str, sample: Sample, pan: float, volume: float,
             on_ended: Optional[EndedCallback] = None) -> str:
        """
        Start loading and playing a voice.
        
        Returns immediately with the voice id; loading is asynchronous.
        """
    
    @abstractmethod
    def stop(self, voice_id: str) -> bool:
        """Stop one voice. Returns False if it is not live."""
    
    @abstractmethod
    def stop_all(self) -> None:
        """Stop every live voice."""
    
    @abstractmethod
    def set_volume(self, source: SourceType, volume: float, ramp: float = 0.1) -> None:
        """Ramp the master gain of a source type."""
    
    @abstractmethod
    def is_playing(self, voice_id: str) -> bool:
        """True once the voice has loaded and is audible."""
    
    @abstractmethod
    def get_amplitudes(self) -> Dict[str, float]:
        """Live amplitude per voice id, linear 0 to 1."""
    
    @abstractmethod
    def update(self, now: float) -> None:
        """Advance loads, envelopes and ramps to the given time."""


# =============================================================================
# Simulated Player
# =============================================================================

@dataclass
class GainRamp:
    """A linear ramp of one gain bus."""
    value: float = 1.0
    start_value: float = 1.0
    target: float = 1.0
    start_time: float = 0.0
    duration: float = 0.0
    
    def set(self, target: float, now: float, duration: float) -> None:
        self.start_value = self.value
        self.target = target
        self.start_time = now
        self.duration = duration
        if duration <= 0:
            self.value = target
    
    def advance(self, now: float) -> float:
        if self.duration <= 0:
            self.value = self.target
        else:
            t = clamp((now - self.start_time) / self.duration, 0.0, 1.0)
            self.value = lerp(self.start_value, self.target, t)
        return self.value


@dataclass
class SimulatedVoice:
    """Player-side state of one voice."""
    voice_id: str
    sample: Sample
    pan: float
    volume: float
    on_ended: Optional[EndedCallback]
    load: Future
    duration: float = 0.0
    started_at: Optional[float] = None
    amplitude: float = 0.0
    
    @property
    def is_loaded(self) -> bool:
        return self.started_at is not None


class SimulatedVoicePlayer(VoicePlayer):
    """
    Headless voice player.
    
    Loading is a Future: with a loader and an executor the loader runs on
    a worker thread; with only a loader it runs inline; with neither every
    url with a scheme loads instantly. Either way a voice becomes audible
    on the first update() after its load has completed.
    
    Args:
        clock: Anything with a ``now`` attribute, used to stamp ramps
        loader: url -> duration in seconds; raise to simulate a failure
        executor: Runs the loader off the tick thread
        fade_in: Fade-in seconds
        fade_out: Fade-out seconds
        default_duration: Used when the sample has no duration
        logger: Optional DebugLogger
    
    Example:
        >>> player = SimulatedVoicePlayer(default_duration=10.0)
        >>> vid = player.play(sample.url, sample, pan=0.2, volume=0.5)   # doctest: +SKIP
        >>> player.update(0.0)                                          # doctest: +SKIP
        >>> player.is_playing(vid)                                      # doctest: +SKIP
        True
    """
    
    def __init__(self,
                 clock: Optional[Any] = None,
                 loader: Optional[Callable[[str], float]] = None,
                 executor: Optional[Executor] = None,
                 fade_in: float = 2.0,
                 fade_out: float = 2.0,
                 default_duration: float = 20.0,
                 logger: Optional[Any] = None):
        self.clock = clock
        self.loader = loader
        self.executor = executor
        self.fade_in = fade_in
        self.fade_out = fade_out
        self.default_duration = default_duration
        self.logger = logger
        
        self._voices: Dict[str, SimulatedVoice] = {}
        self._buses: Dict[SourceType, GainRamp] = {s: GainRamp() for s in SourceType}
        self._counter = itertools.count(1)
        self._now = 0.0
        
        self.stats = {
            'played': 0,
            'ended': 0,
            'stopped': 0,
            'load_failed': 0,
        }
    
    def _current_time(self) -> float:
        if self.clock is not None:
            return self.clock.now
        return self._now
    
    # =========================================================================
    # Loading
    # =========================================================================
    
    def _default_load(self, url: str, sample: Sample) -> float:
        if '://' not in url:
            raise ValueError(f"Unplayable url: {url!r}")
        return sample.duration or self.default_duration
    
    def _start_load(self, url: str, sample: Sample) -> Future:
        if self.loader is not None and self.executor is not None:
            return self.executor.submit(self.loader, url)
        
        future: Future = Future()
        try:
            if self.loader is not None:
                future.set_result(self.loader(url))
            else:
                future.set_result(self._default_load(url, sample))
        except Exception as e:
            future.set_exception(e)
        return future
    
    # =========================================================================
    # VoicePlayer
    # =========================================================================
    
    def play(self, url: str, sample: Sample, pan: float, volume: float,
             on_ended: Optional[EndedCallback] = None) -> str:
        voice_id = f"v{next(self._counter)}"
        self.stats['played'] += 1
        
        if not url:
            # Nothing to load; release before returning
            self.stats['load_failed'] += 1
            if self.logger is not None:
                self.logger.warning("voice", "No url to load", sample_id=sample.id)
            if on_ended is not None:
                on_ended(voice_id, "load_failed")
            return voice_id
        
        self._voices[voice_id] = SimulatedVoice(
            voice_id=voice_id,
            sample=sample,
            pan=clamp(pan, -1.0, 1.0),
            volume=max(0.0, volume),
            on_ended=on_ended,
            load=self._start_load(url, sample),
        )
        return voice_id
    
    def _release(self, voice_id: str, reason: str) -> bool:
        voice = self._voices.pop(voice_id, None)
        if voice is None:
            return False
        self.stats[reason] += 1
        if voice.on_ended is not None:
            voice.on_ended(voice_id, reason)
        return True
    
    def stop(self, voice_id: str) -> bool:
        return self._release(voice_id, "stopped")
    
    def stop_all(self) -> None:
        for voice_id in list(self._voices):
            self._release(voice_id, "stopped")
    
    def set_volume(self, source: SourceType, volume: float, ramp: float = 0.1) -> None:
        self._buses[source].set(clamp(volume, 0.0, 1.0), self._current_time(), ramp)
    
    def get_volume(self, source: SourceType) -> float:
        """Current (mid-ramp) master gain of a source type."""
        return self._buses[source].value
    
    def is_playing(self, voice_id: str) -> bool:
        voice = self._voices.get(voice_id)
        return voice is not None and voice.is_loaded
    
    def get_amplitudes(self) -> Dict[str, float]:
        return {vid: v.amplitude for vid, v in self._voices.items() if v.is_loaded}
    
    def update(self, now: float) -> None:
        self._now = now
        for bus in self._buses.values():
            bus.advance(now)
        
        for voice_id, voice in list(self._voices.items()):
            if not voice.is_loaded:
                if not voice.load.done():
                    continue
                error = voice.load.exception()
                if error is not None:
                    if self.logger is not None:
                        self.logger.warning("voice", "Load failed", now,
                                            sample_id=voice.sample.id, error=str(error))
                    self._release(voice_id, "load_failed")
                    continue
                voice.duration = float(voice.load.result() or self.default_duration)
                voice.started_at = now
            
            elapsed = now - voice.started_at
            if elapsed >= voice.duration:
                voice.amplitude = 0.0
                self._release(voice_id, "ended")
                continue
            voice.amplitude = self._meter(voice, elapsed)
    
    def _envelope(self, elapsed: float, duration: float) -> float:
        level = 1.0
        if self.fade_in > 0:
            level = min(level, elapsed / self.fade_in)
        if self.fade_out > 0:
            level = min(level, (duration - elapsed) / self.fade_out)
        return clamp(level, 0.0, 1.0)
    
    def _meter(self, voice: SimulatedVoice, elapsed: float) -> float:
        linear = (self._envelope(elapsed, voice.duration) * voice.volume *
                  self._buses[voice.sample.source].value)
        if linear <= 0.0:
            return 0.0
        # Meter readout: below -60 dB is silence
        return db_to_linear(20.0 * math.log10(linear))
    
    def __len__(self) -> int:
        return len(self._voices)
    
    def __repr__(self) -> str:
        return f"SimulatedVoicePlayer(active={len(self._voices)})"
