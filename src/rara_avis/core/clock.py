"""
Clocks for Rara Avis.

Every timestamp the Wanderer and Director see comes from a clock's
``now`` in seconds. Headless runs and tests use SimulationClock, which
only moves when ticked; hosts driving a real render loop use
RealTimeClock.
"""

from dataclasses import dataclass
import time


@dataclass
class SimulationClock:
    """
    Tick-driven time.

    ``now`` is computed from the tick count rather than accumulated, so
    an hour of 60 fps ticks lands on exactly 3600 s.

    Attributes:
        tick_rate: Seconds per tick (1/60 for a 60 fps render loop)
        start_time: Time at tick zero

    Example:
        >>> clock = SimulationClock(tick_rate=0.5)
        >>> clock.tick()
        0.5
        >>> clock.advance(2.0)
        2.5
        >>> clock.tick_count
        5
    """

    tick_rate: float = 1.0 / 60.0
    start_time: float = 0.0

    _tick_count: int = 0
    _paused: bool = False

    @property
    def now(self) -> float:
        return self.start_time + self._tick_count * self.tick_rate

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def tick(self) -> float:
        """Advance one tick (unless paused) and return the new time."""
        if not self._paused:
            self._tick_count += 1
        return self.now

    def advance(self, seconds: float) -> float:
        """Advance by whole ticks covering ``seconds``."""
        for _ in range(int(round(seconds / self.tick_rate))):
            self.tick()
        return self.now

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def reset(self) -> None:
        self._tick_count = 0
        self._paused = False

    def __repr__(self) -> str:
        return f"SimulationClock(time={self.now:.2f}s, ticks={self._tick_count})"


class RealTimeClock:
    """Wall clock based on time.monotonic(), zeroed at construction."""

    def __init__(self):
        self._origin = time.monotonic()
        self._tick_count = 0

    @property
    def now(self) -> float:
        return time.monotonic() - self._origin

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def tick(self) -> float:
        self._tick_count += 1
        return self.now

    def __repr__(self) -> str:
        return f"RealTimeClock(time={self.now:.2f}s, ticks={self._tick_count})"
