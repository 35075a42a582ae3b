"""
Sample pools and the pending admission queue.

A SamplePool is an id-indexed, insertion-ordered collection. Front of
the pool is newest; eviction for space takes from the back. Removal by
id never disturbs iteration order of the remaining entries.
"""

from collections import OrderedDict, deque
from typing import Any, Dict, Iterator, List, Optional, Set

from ..config.models import SourceType
from ..utils.geo import km_to_degrees, planar_distance_deg
from .sample import Sample


class SamplePool:
    """
    Bounded, deduplicated sample collection for one source type.
    
    Invariants:
    - No two entries share an id
    - Samples whose ids are in the caller's protected set are never
      evicted, even if that keeps the pool above max_size
    
    Example:
        >>> pool = SamplePool(SourceType.BIO, max_size=2)
        >>> pool.add_front(Sample("a", "a.mp3", SourceType.BIO))
        True
        >>> pool.add_front(Sample("a", "a.mp3", SourceType.BIO))
        False
        >>> len(pool)
        1
    """
    
    def __init__(self, source: SourceType, max_size: int):
        self.source = source
        self.max_size = max_size
        # Front (first) = newest
        self._samples: 'OrderedDict[str, Sample]' = OrderedDict()
    
    def __contains__(self, sample_id: object) -> bool:
        return sample_id in self._samples
    
    def __len__(self) -> int:
        return len(self._samples)
    
    def __iter__(self) -> Iterator[Sample]:
        return iter(list(self._samples.values()))
    
    def get(self, sample_id: str) -> Optional[Sample]:
        return self._samples.get(sample_id)
    
    def ids(self) -> List[str]:
        return list(self._samples.keys())
    
    def samples(self) -> List[Sample]:
        return list(self._samples.values())
    
    # =========================================================================
    # Mutation
    # =========================================================================
    
    def add_front(self, sample: Sample) -> bool:
        """
        Insert a sample as the newest entry.
        
        Returns:
            False if a sample with the same id is already present
        """
        if sample.id in self._samples:
            return False
        self._samples[sample.id] = sample
        self._samples.move_to_end(sample.id, last=False)
        return True
    
    def remove(self, sample_id: str) -> Optional[Sample]:
        return self._samples.pop(sample_id, None)
    
    def evict_oldest(self, protected: Set[str]) -> Optional[Sample]:
        """Remove the oldest sample not in protected, if any."""
        for sample_id in reversed(self._samples):
            if sample_id not in protected:
                return self._samples.pop(sample_id)
        return None
    
    def trim(self, protected: Set[str]) -> List[Sample]:
        """
        Evict oldest unprotected samples until the pool fits max_size.
        
        Returns:
            The evicted samples (fewer than needed if everything left is
            protected)
        """
        evicted = []
        while len(self._samples) > self.max_size:
            sample = self.evict_oldest(protected)
            if sample is None:
                break
            evicted.append(sample)
        return evicted
    
    def clear(self) -> None:
        self._samples.clear()
    
    # =========================================================================
    # Queries
    # =========================================================================
    
    def invalid_samples(self) -> List[Sample]:
        """Samples with missing or unusable coordinates."""
        return [s for s in self._samples.values() if not s.has_valid_coords]
    
    def farthest_beyond(self, lat: float, lng: float, radius_km: float,
                        protected: Set[str]) -> Optional[Sample]:
        """
        Find the single farthest unprotected sample outside a radius.
        
        Distance is planar in degrees (radius converted at 111 km per
        degree). Samples without coordinates are skipped.
        """
        threshold = km_to_degrees(radius_km)
        farthest = None
        farthest_dist = threshold
        for sample in self._samples.values():
            if sample.id in protected or not sample.has_valid_coords:
                continue
            dist = planar_distance_deg(lat, lng, sample.lat, sample.lng)
            if dist > farthest_dist:
                farthest = sample
                farthest_dist = dist
        return farthest
    
    def snapshot(self) -> List[Dict[str, Any]]:
        """Read-only view for the visualization layer."""
        return [s.to_dict() for s in self._samples.values()]
    
    def __repr__(self) -> str:
        return f"SamplePool(source={self.source.value}, size={len(self)}/{self.max_size})"


class PendingQueue:
    """
    FIFO of fetched samples waiting to be admitted into a pool.
    
    Samples are admitted one per tick so a large fetch does not pop in
    all at once. The first copy of an id wins; later duplicates are
    discarded. The queue is capped; overflow is dropped and counted.
    """
    
    def __init__(self, max_size: int):
        self.max_size = max_size
        self._queue: deque = deque()
        self._ids: Set[str] = set()
        self.dropped = 0
    
    def __contains__(self, sample_id: object) -> bool:
        return sample_id in self._ids
    
    def __len__(self) -> int:
        return len(self._queue)
    
    def push(self, sample: Sample) -> bool:
        """
        Append a sample.
        
        Returns:
            False if it was a duplicate or the queue is full
        """
        if sample.id in self._ids:
            return False
        if len(self._queue) >= self.max_size:
            self.dropped += 1
            return False
        self._queue.append(sample)
        self._ids.add(sample.id)
        return True
    
    def pop(self) -> Optional[Sample]:
        """Remove and return the oldest queued sample."""
        if not self._queue:
            return None
        sample = self._queue.popleft()
        self._ids.discard(sample.id)
        return sample
    
    def ids(self) -> List[str]:
        return [s.id for s in self._queue]
    
    def clear(self) -> None:
        self._queue.clear()
        self._ids.clear()
    
    def __repr__(self) -> str:
        return f"PendingQueue(size={len(self)}/{self.max_size}, dropped={self.dropped})"
