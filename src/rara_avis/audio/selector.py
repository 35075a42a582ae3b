"""
Sample selection for Rara Avis.

Bio voices favour rarely played samples and avoid stacking two calls at
nearly the same spot. Ambient voices are picked uniformly; the ambient
pool is small and its recordings are diffuse background.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from ..config.models import PlaybackConfig
from ..utils.geo import approx_distance_km
from ..utils.rng import SeededRNG
from .sample import Sample


@dataclass
class SelectionResult:
    """
    Result of a selection attempt.
    
    Attributes:
        selected: Whether a sample was chosen
        sample: The chosen sample (if any)
        reason: Why this sample was chosen (or why none was)
        candidates_considered: Pool entries left after filtering
    """
    selected: bool = False
    sample: Optional[Sample] = None
    reason: str = ""
    candidates_considered: int = 0


class SampleSelector:
    """
    Picks the next sample to play.
    
    Bio selection:
    1. Drop candidates within min_separation_km of a playing bio sample
    2. Rank by play_count plus a uniform jitter
    3. Pick uniformly among the best few
    
    Example:
        >>> selector = SampleSelector(PlaybackConfig(), SeededRNG(seed=3))
        >>> result = selector.select_bio(pool, playing=[])     # doctest: +SKIP
        >>> if result.selected:                                  # doctest: +SKIP
        ...     print(result.sample.name)
    """
    
    def __init__(self, config: Optional[PlaybackConfig] = None,
                 rng: Optional[SeededRNG] = None):
        self.config = config or PlaybackConfig()
        self.rng = rng or SeededRNG(name="selector")
    
    def is_too_close(self, sample: Sample, playing: Sequence[Sample]) -> bool:
        """
        Check whether a sample sits within the separation radius of any
        playing sample. A sample that is itself playing always conflicts;
        otherwise samples without coordinates never do.
        """
        for other in playing:
            if other.id == sample.id:
                return True
            if not sample.has_valid_coords or not other.has_valid_coords:
                continue
            km = approx_distance_km(sample.lat, sample.lng, other.lat, other.lng)
            if km < self.config.min_separation_km:
                return True
        return False
    
    def rank(self, candidates: Iterable[Sample]) -> List[Sample]:
        """Order candidates by play_count with jitter, least played first."""
        jitter = self.config.variety_jitter
        keyed = [(s.play_count + self.rng.jitter(jitter), i, s)
                 for i, s in enumerate(candidates)]
        keyed.sort(key=lambda item: (item[0], item[1]))
        return [s for _, _, s in keyed]
    
    def select_bio(self, pool: Iterable[Sample],
                   playing: Sequence[Sample]) -> SelectionResult:
        samples = list(pool)
        if not samples:
            return SelectionResult(reason="empty_pool")
        
        candidates = [s for s in samples if not self.is_too_close(s, playing)]
        if not candidates:
            return SelectionResult(reason="all_too_close")
        
        ranked = self.rank(candidates)
        top = ranked[:max(1, self.config.variety_top_n)]
        return SelectionResult(
            selected=True,
            sample=self.rng.choice(top),
            reason="least_played",
            candidates_considered=len(candidates),
        )
    
    def select_ambient(self, pool: Iterable[Sample]) -> SelectionResult:
        samples = list(pool)
        if not samples:
            return SelectionResult(reason="empty_pool")
        return SelectionResult(
            selected=True,
            sample=self.rng.choice(samples),
            reason="random",
            candidates_considered=len(samples),
        )
