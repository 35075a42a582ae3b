"""
Seeded random number generation for Rara Avis.

Navigation and playback each draw from their own named stream. A
stream's seed depends only on the master seed and the stream name, so
adding draws (or whole streams) in one subsystem never reshuffles
another.
"""

import random
import zlib
from typing import Dict, Optional, Sequence, TypeVar

T = TypeVar('T')


class SeededRNG:
    """
    A seeded random number generator wrapper.

    Example:
        >>> rng = SeededRNG(seed=42, name="wander")
        >>> -1.0 <= rng.jitter(1.0) <= 1.0
        True
    """

    def __init__(self, seed: Optional[int] = None, name: str = "default"):
        """
        Args:
            seed: Integer seed. If None, one is drawn from the system RNG.
            name: Stream name (for debugging)
        """
        if seed is None:
            seed = random.randint(0, 2**32 - 1)
        self.seed = seed
        self.name = name
        self._random = random.Random(seed)
        self.draws = 0

    def random(self) -> float:
        """Float in [0.0, 1.0)."""
        self.draws += 1
        return self._random.random()

    def uniform(self, a: float, b: float) -> float:
        """Float in [a, b]."""
        self.draws += 1
        return self._random.uniform(a, b)

    def jitter(self, amplitude: float) -> float:
        """Symmetric offset in [-amplitude, amplitude] for random walks and tie-breaks."""
        return self.uniform(-amplitude, amplitude)

    def choice(self, sequence: Sequence[T]) -> T:
        """
        Uniform pick from a non-empty sequence.

        Raises:
            IndexError: If sequence is empty
        """
        self.draws += 1
        return self._random.choice(sequence)

    def __repr__(self) -> str:
        return f"SeededRNG(seed={self.seed}, name='{self.name}', draws={self.draws})"


class RNGManager:
    """
    Named RNG streams derived from one master seed.

    Example:
        >>> manager = RNGManager(master_seed=42)
        >>> manager.get('wander') is manager.get('wander')
        True
    """

    def __init__(self, master_seed: Optional[int] = None):
        if master_seed is None:
            master_seed = random.randint(0, 2**32 - 1)
        self.master_seed = master_seed
        self._streams: Dict[str, SeededRNG] = {}

    def derive_seed(self, name: str) -> int:
        return (self.master_seed * 1000003 + zlib.crc32(name.encode('utf-8'))) % 2**32

    def get(self, name: str) -> SeededRNG:
        """Get or create a named stream."""
        if name not in self._streams:
            self._streams[name] = SeededRNG(seed=self.derive_seed(name), name=name)
        return self._streams[name]

    def __repr__(self) -> str:
        streams = ', '.join(self._streams)
        return f"RNGManager(master_seed={self.master_seed}, streams=[{streams}])"
