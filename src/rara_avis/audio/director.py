"""
Soundscape direction for Rara Avis.

The Director is the main audio coordinator. Once per tick it:
1. Merges finished fetches into the pools (bio via the pending queue,
   ambient directly)
2. Starts a new fetch cycle when the camera has moved far enough and
   long enough, culling one distant sample per pool as it does
3. Admits at most one pending bio sample
4. Advances the voice player and schedules new bio and ambient voices

Pools and voices are only ever touched on the tick thread. Network
calls run on the SampleFetcher's workers and are picked up on a later
tick.
"""

from typing import Any, Callable, Dict, List, Optional, Union, TYPE_CHECKING

from ..config.models import RaraAvisConfig, SourceType
from ..core.state import GeoPoint, TerrainReading, TickContext
from ..sources.fetcher import FetchResult, SampleFetcher
from ..utils.geo import planar_distance_deg
from ..utils.rng import SeededRNG
from ..utils.validators import validate_positive, validate_unit
from .events import DirectorEvent, EventType
from .player import VoicePlayer
from .pool import PendingQueue, SamplePool
from .sample import Sample
from .selector import SampleSelector
from .voice import Voice, VoiceRegistry, VoiceState

if TYPE_CHECKING:
    from ..sources.base import SampleSource


EventListener = Callable[[DirectorEvent], None]


class Director:
    """
    Soundscape scheduler and sample pool manager.

    Example:
        >>> director = Director(player, bio_source, ambient_source, config)  # doctest: +SKIP
        >>> director.start()                                                 # doctest: +SKIP
        >>> director.update(ctx, terrain)                                    # doctest: +SKIP
        >>> director.get_state()['active_voices']                            # doctest: +SKIP
        2
    """

    def __init__(self,
                 player: VoicePlayer,
                 bio_source: 'SampleSource',
                 ambient_source: 'SampleSource',
                 config: Optional[RaraAvisConfig] = None,
                 rng: Optional[SeededRNG] = None,
                 fetcher: Optional[SampleFetcher] = None,
                 logger: Optional[Any] = None):
        """
        Initialize the director.

        Args:
            player: Voice player that makes the actual sound
            bio_source: Bird recording provider
            ambient_source: Field recording provider
            config: Master configuration
            rng: Random source for scheduling and selection
            fetcher: Background fetcher (a thread pool is created if omitted)
            logger: Optional DebugLogger
        """
        self.config = config or RaraAvisConfig()
        self.player = player
        self.bio_source = bio_source
        self.ambient_source = ambient_source
        self.rng = rng or SeededRNG(name="director")
        self.logger = logger
        self.fetcher = fetcher if fetcher is not None else SampleFetcher(
            max_workers=self.config.fetch.max_workers, logger=logger)

        # Pools
        self.bio_pool = SamplePool(SourceType.BIO, self.config.pools.bio_max_size)
        self.ambient_pool = SamplePool(SourceType.AMBIENT, self.config.pools.ambient_max_size)
        self.pending = PendingQueue(self.config.max_pending)
        self.voices = VoiceRegistry()
        self.selector = SampleSelector(self.config.playback, self.rng)

        # Controls
        playback = self.config.playback
        self.is_playing = False
        self.search_radius_km = self.config.fetch.search_radius_km
        self.volumes: Dict[SourceType, float] = {
            SourceType.BIO: playback.bio_volume,
            SourceType.AMBIENT: playback.ambient_volume,
        }
        for source, volume in self.volumes.items():
            self.player.set_volume(source, volume, 0.0)

        # Fetch throttling
        self.epoch = 0
        self.last_fetch_time: Optional[float] = None
        self.last_fetch_location: Optional[GeoPoint] = None

        # Scheduling
        self.next_play_time = 0.0
        self.next_ambient_play_time = 0.0

        self.now = 0.0
        self.terrain = TerrainReading()
        self._listeners: List[EventListener] = []

        self.stats = {
            'fetch_cycles': 0,
            'fetch_errors': 0,
            'stale_results': 0,
            'samples_queued': 0,
            'samples_admitted': 0,
            'samples_culled': 0,
            'voices_started': 0,
            'voices_ended': 0,
            'voices_failed': 0,
        }

    # =========================================================================
    # Listeners
    # =========================================================================

    def on_event(self, listener: EventListener) -> None:
        """Register a callback for every DirectorEvent."""
        self._listeners.append(listener)

    def _emit(self, event_type: EventType, **kwargs) -> DirectorEvent:
        event = DirectorEvent(event_type=event_type, timestamp=self.now, **kwargs)
        for listener in self._listeners:
            listener(event)
        return event

    # =========================================================================
    # Controls
    # =========================================================================

    def start(self) -> None:
        """Start scheduling voices. Fetching runs regardless."""
        self.is_playing = True
        if self.logger is not None:
            self.logger.info("director", "Playback started", self.now)

    def stop(self) -> None:
        """Stop scheduling and silence every voice; pools stay warm."""
        self.is_playing = False
        self.player.stop_all()
        if self.logger is not None:
            self.logger.info("director", "Playback stopped", self.now)

    def set_volume(self, source: Union[SourceType, str], volume: float) -> None:
        """
        Set the master volume of a source type, ramping live voices.

        Raises:
            ValidationError: If volume is outside [0, 1]
            ValueError: If source is not a known source type
        """
        validate_unit(volume, "volume")
        source = SourceType(source)
        self.volumes[source] = volume
        self.player.set_volume(source, volume, self.config.playback.volume_ramp_seconds)

    def set_search_radius(self, radius_km: float) -> None:
        """
        Raises:
            ValidationError: If radius_km is not positive
        """
        self.search_radius_km = validate_positive(radius_km, "search_radius_km",
                                                  allow_zero=False)

    def force_refresh(self) -> None:
        """
        Start over at the current location.

        Stops every voice, empties both pools and the pending queue, and
        resets fetch throttling so the next tick fetches immediately.
        Fetches still in flight finish under the old epoch and are
        discarded when they arrive.
        """
        self.epoch += 1
        self.player.stop_all()
        self.voices.clear()
        self.bio_pool.clear()
        self.ambient_pool.clear()
        self.pending.clear()
        self.last_fetch_time = None
        self.last_fetch_location = None

        if self.logger is not None:
            self.logger.info("director", "Force refresh", self.now, epoch=self.epoch)
        self._emit(EventType.REFRESH, reason="force_refresh",
                   metadata={'epoch': self.epoch})

    def shutdown(self) -> None:
        """Silence everything and release the fetch workers."""
        self.player.stop_all()
        self.fetcher.shutdown(wait=False)

    # =========================================================================
    # Tick
    # =========================================================================

    def update(self, ctx: TickContext, terrain: TerrainReading) -> None:
        """
        Advance one tick.

        Args:
            ctx: Shared tick context
            terrain: This tick's classification of ctx.center
        """
        self.now = ctx.now
        self.terrain = terrain

        self.merge_fetch_results()

        center = ctx.center
        if center is not None and not center.is_degenerate:
            self.check_and_fetch_samples(center, ctx.now)

        self.admit_pending()

        self.player.update(ctx.now)
        self._sync_voice_states()

        if self.is_playing:
            self.update_soundscape(ctx.now)

    # =========================================================================
    # Fetching
    # =========================================================================

    def should_fetch(self, center: GeoPoint, now: float) -> bool:
        """Time AND distance throttle; the first fetch always proceeds."""
        if self.last_fetch_time is None or self.last_fetch_location is None:
            return True
        if now - self.last_fetch_time < self.config.fetch.interval_seconds:
            return False
        moved = planar_distance_deg(center.lat, center.lng,
                                    self.last_fetch_location.lat,
                                    self.last_fetch_location.lng)
        return moved > self.config.fetch.min_distance_deg

    def check_and_fetch_samples(self, center: GeoPoint,
                                now: Optional[float] = None) -> bool:
        """
        Start a fetch cycle if the throttle allows.

        Both sources are queried concurrently in the background; this
        returns as soon as the calls are submitted.

        Returns:
            True if a fetch cycle was started
        """
        if now is None:
            now = self.now
        if not self.should_fetch(center, now):
            return False

        self.last_fetch_time = now
        self.last_fetch_location = center
        self.stats['fetch_cycles'] += 1

        radius = self.search_radius_km
        ambient_radius = radius * self.config.fetch.ambient_radius_factor
        self.fetcher.submit(self.bio_source, center.lat, center.lng,
                            radius, self.epoch, now)
        self.fetcher.submit(self.ambient_source, center.lat, center.lng,
                            ambient_radius, self.epoch, now)

        if self.logger is not None:
            self.logger.log_fetch(now, center.lat, center.lng, radius, self.epoch)
        self._emit(EventType.FETCH_STARTED, metadata={
            'lat': center.lat,
            'lng': center.lng,
            'radius_km': radius,
            'epoch': self.epoch,
        })

        self.cull_distant_samples(center)
        return True

    def merge_fetch_results(self) -> int:
        """
        Merge every finished fetch from the current epoch.

        Returns:
            Number of results merged
        """
        merged = 0
        for result in self.fetcher.collect():
            if result.epoch != self.epoch:
                self.stats['stale_results'] += 1
                if self.logger is not None:
                    self.logger.debug("fetch", "Dropped stale result", self.now,
                                      provider=result.request.provider,
                                      epoch=result.epoch)
                continue
            self._merge_result(result)
            merged += 1
        return merged

    def _merge_result(self, result: FetchResult) -> None:
        if not result.ok:
            self.stats['fetch_errors'] += 1

        if result.source_type == SourceType.BIO:
            added = self.merge_bio_samples(result.samples)
        else:
            added = self.merge_ambient_samples(result.samples)

        self._emit(EventType.FETCH_MERGED,
                   source=result.source_type.value,
                   reason="error" if not result.ok else "ok",
                   metadata={
                       'provider': result.request.provider,
                       'received': len(result.samples),
                       'added': added,
                       'error': result.error,
                   })

    def merge_bio_samples(self, samples: List[Sample]) -> int:
        """
        Queue new bio samples for gradual admission.

        Samples already pooled or queued are ignored, so merging the same
        result twice has no further effect.

        Returns:
            Number of samples queued
        """
        queued = 0
        for sample in samples:
            if sample.id in self.bio_pool or sample.id in self.pending:
                continue
            if self.pending.push(sample):
                queued += 1
        self.stats['samples_queued'] += queued
        return queued

    def merge_ambient_samples(self, samples: List[Sample]) -> int:
        """
        Put new ambient samples at the front of the ambient pool and trim
        it back to size, oldest first, keeping voiced samples.

        Returns:
            Number of samples added
        """
        fresh = []
        seen = set()
        for sample in samples:
            if sample.id in self.ambient_pool or sample.id in seen:
                continue
            seen.add(sample.id)
            fresh.append(sample)

        for sample in reversed(fresh):
            self.ambient_pool.add_front(sample)

        protected = self.voices.sample_ids(SourceType.AMBIENT)
        for evicted in self.ambient_pool.trim(protected):
            self._report_cull(self.ambient_pool, evicted, "overflow")
        return len(fresh)

    def admit_pending(self) -> Optional[Sample]:
        """
        Move the oldest pending sample into the bio pool.

        If the pool then exceeds its bound, the oldest sample not backing
        a voice is evicted.

        Returns:
            The admitted sample, if any
        """
        sample = self.pending.pop()
        if sample is None or not self.bio_pool.add_front(sample):
            return None

        self.stats['samples_admitted'] += 1
        self._emit(EventType.SAMPLE_ADMITTED, sample_id=sample.id,
                   source=SourceType.BIO.value,
                   metadata={'name': sample.display_name})

        protected = self.voices.sample_ids(SourceType.BIO)
        for evicted in self.bio_pool.trim(protected):
            self._report_cull(self.bio_pool, evicted, "overflow")
        return sample

    # =========================================================================
    # Culling
    # =========================================================================

    def cull_distant_samples(self, center: GeoPoint) -> List[Sample]:
        """
        Evict stale entries at the start of a fetch cycle.

        Bio samples with unusable coordinates go immediately. Then, per
        pool, at most one sample is removed: the farthest one beyond
        cull_radius_factor x search radius. Samples backing a voice are
        never touched.

        Returns:
            The culled samples
        """
        protected = self.voices.sample_ids()
        culled = []

        for sample in self.bio_pool.invalid_samples():
            if sample.id in protected:
                continue
            self.bio_pool.remove(sample.id)
            self._report_cull(self.bio_pool, sample, "invalid_coords")
            culled.append(sample)

        cull_radius = self.search_radius_km * self.config.fetch.cull_radius_factor
        for pool in (self.bio_pool, self.ambient_pool):
            victim = pool.farthest_beyond(center.lat, center.lng, cull_radius, protected)
            if victim is None:
                continue
            pool.remove(victim.id)
            self._report_cull(pool, victim, "distance")
            culled.append(victim)

        return culled

    def _report_cull(self, pool: SamplePool, sample: Sample, reason: str) -> None:
        self.stats['samples_culled'] += 1
        if self.logger is not None:
            self.logger.log_cull(self.now, pool.source.value, sample.id, reason)
        self._emit(EventType.SAMPLE_CULLED, sample_id=sample.id,
                   source=pool.source.value, reason=reason)

    # =========================================================================
    # Scheduling
    # =========================================================================

    def update_soundscape(self, now: Optional[float] = None) -> List[Voice]:
        """
        Fire the bio and ambient timers.

        Returns:
            Voices started this tick
        """
        if now is None:
            now = self.now
        playback = self.config.playback
        started = []

        if now >= self.next_play_time:
            self.next_play_time = now + self.rng.uniform(*playback.bio_interval)
            voice = self._play_bio(now)
            if voice is not None:
                started.append(voice)

        if now >= self.next_ambient_play_time:
            self.next_ambient_play_time = now + self.rng.uniform(*playback.ambient_interval)
            voice = self._play_ambient(now)
            if voice is not None:
                started.append(voice)

        return started

    def _play_bio(self, now: float) -> Optional[Voice]:
        playing = [v.sample for v in self.voices.by_source(SourceType.BIO)]
        result = self.selector.select_bio(self.bio_pool, playing)
        if not result.selected:
            if self.logger is not None and len(self.bio_pool) > 0:
                self.logger.trace("director", "No bio candidate", now, reason=result.reason)
            return None

        playback = self.config.playback
        sample = result.sample
        pan = self.rng.uniform(-playback.bio_pan, playback.bio_pan)
        gain = self.rng.uniform(*playback.bio_gain)
        return self._start_voice(sample, pan, gain, now)

    def _play_ambient(self, now: float) -> Optional[Voice]:
        result = self.selector.select_ambient(self.ambient_pool)
        if not result.selected:
            return None

        playback = self.config.playback
        sample = result.sample
        pan = self.rng.uniform(-playback.ambient_pan, playback.ambient_pan)
        gain = self.rng.uniform(*playback.ambient_gain)
        return self._start_voice(sample, pan, gain, now)

    def _start_voice(self, sample: Sample, pan: float, gain: float,
                     now: float) -> Optional[Voice]:
        voice = Voice(sample=sample, pan=pan, gain=gain, requested_at=now)

        def on_ended(voice_id: str, reason: str) -> None:
            self._release_voice(voice, voice_id, reason)

        voice.id = self.player.play(sample.url, sample, pan, gain, on_ended)
        if voice.ended:
            # Failed before play() returned
            return None

        self.voices.add(voice)
        sample.play_count += 1
        self.stats['voices_started'] += 1
        effective_gain = gain * self.volumes[sample.source]
        if self.logger is not None:
            self.logger.log_voice_start(now, sample.id, sample.source.value, pan, effective_gain)
        self._emit(EventType.VOICE_START, sample_id=sample.id, voice_id=voice.id,
                   source=sample.source.value, pan=pan, gain=effective_gain,
                   metadata={
                       'name': sample.display_name,
                       'scientific_name': sample.scientific_name,
                       'play_count': sample.play_count,
                   })
        return voice

    def _release_voice(self, voice: Voice, voice_id: str, reason: str) -> None:
        if voice.ended:
            return
        voice.ended = True
        voice.id = voice.id or voice_id
        self.voices.remove(voice_id)

        source = voice.source.value
        if reason == "load_failed":
            self.stats['voices_failed'] += 1
            if self.logger is not None:
                self.logger.warning("voice", "Voice failed to load", self.now,
                                    sample_id=voice.sample_id, source=source)
            self._emit(EventType.VOICE_FAILED, sample_id=voice.sample_id,
                       voice_id=voice_id, source=source, reason=reason)
        else:
            self.stats['voices_ended'] += 1
            if self.logger is not None:
                self.logger.log_voice_end(self.now, voice.sample_id, reason)
            self._emit(EventType.VOICE_END, sample_id=voice.sample_id,
                       voice_id=voice_id, source=source, reason=reason)

    def _sync_voice_states(self) -> None:
        for voice in self.voices:
            if voice.state == VoiceState.LOADING and self.player.is_playing(voice.id):
                voice.state = VoiceState.PLAYING
                voice.started_at = self.now

    # =========================================================================
    # State
    # =========================================================================

    def get_voices(self) -> List[Dict[str, Any]]:
        """Active voices with live amplitude, for visualization."""
        amplitudes = self.player.get_amplitudes()
        voices = []
        for voice in self.voices:
            data = voice.to_dict()
            data['amplitude'] = amplitudes.get(voice.id, 0.0)
            voices.append(data)
        return voices

    def get_state(self) -> Dict[str, Any]:
        """Status summary."""
        return {
            'type': self.terrain.type.value,
            'density': self.terrain.density,
            'elevation': self.terrain.elevation,
            'is_playing': self.is_playing,
            'epoch': self.epoch,
            'search_radius_km': self.search_radius_km,
            'bio_pool': len(self.bio_pool),
            'ambient_pool': len(self.ambient_pool),
            'pending': len(self.pending),
            'active_voices': len(self.voices),
            'fetches_in_flight': self.fetcher.in_flight,
            'volumes': {s.value: v for s, v in self.volumes.items()},
            'stats': dict(self.stats),
        }

    def __repr__(self) -> str:
        return (f"Director(bio={len(self.bio_pool)}, ambient={len(self.ambient_pool)}, "
                f"pending={len(self.pending)}, voices={len(self.voices)})")
