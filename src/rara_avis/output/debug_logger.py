"""
Debug logging for Rara Avis.

Leveled, categorized, structured log entries stamped with simulation
time. Every component takes an optional DebugLogger; without one it
stays silent.

Categories in use: engine, wander, fetch, pool, voice, director.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, TextIO
from enum import Enum
import json
import sys
import time


class LogLevel(Enum):
    """Log levels, lowest first."""
    TRACE = 0    # Per-tick detail
    DEBUG = 1
    INFO = 2
    WARNING = 3  # Recovered failures (provider down, voice failed to load)
    ERROR = 4
    NONE = 5

    @classmethod
    def from_name(cls, name: str) -> 'LogLevel':
        """Parse a level name such as "debug" (case-insensitive)."""
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown log level: {name}")


# ANSI codes
_RESET = '\033[0m'
_CATEGORY_COLORS = {
    'engine': '\033[36m',
    'wander': '\033[33m',
    'fetch': '\033[34m',
    'pool': '\033[35m',
    'voice': '\033[32m',
    'director': '\033[37m',
}
_LEVEL_COLORS = {
    LogLevel.TRACE: '\033[90m',
    LogLevel.DEBUG: '\033[37m',
    LogLevel.INFO: '\033[32m',
    LogLevel.WARNING: '\033[33m',
    LogLevel.ERROR: '\033[31m',
}


@dataclass
class LogEntry:
    """A single log entry."""
    timestamp: float
    level: LogLevel
    category: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)

    def format(self, include_data: bool = True, colors: bool = False) -> str:
        level = self.level.name[:5].ljust(5)
        category = self.category[:8].ljust(8)
        if colors:
            level = f"{_LEVEL_COLORS.get(self.level, '')}{level}{_RESET}"
            category = f"{_CATEGORY_COLORS.get(self.category, '')}{category}{_RESET}"

        line = f"[{self.timestamp:9.2f}] {level} {category} {self.message}"
        if include_data and self.data:
            line += " (" + ", ".join(f"{k}={v}" for k, v in self.data.items()) + ")"
        return line

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'level': self.level.name,
            'category': self.category,
            'message': self.message,
            'data': self.data,
        }


class DebugLogger:
    """
    In-memory log with optional console echo.

    Entries below ``level`` are dropped, as are entries outside
    ``categories`` when that is given. History is bounded; the oldest
    entries fall off first.

    Example:
        >>> logger = DebugLogger(level=LogLevel.DEBUG, categories=["fetch", "voice"])
        >>> logger.warning("fetch", "Provider failed", provider="xeno-canto")
        >>> logger.info("wander", "ignored")        # filtered by category
    """

    def __init__(self,
                 level: LogLevel = LogLevel.INFO,
                 output: Optional[TextIO] = None,
                 use_colors: bool = True,
                 max_entries: int = 10000,
                 categories: Optional[Iterable[str]] = None):
        """
        Args:
            level: Minimum level recorded
            output: Stream to echo entries to (None = silent)
            use_colors: ANSI colors on the echo
            max_entries: History bound
            categories: Record only these categories (None = all)
        """
        self.level = level
        self.output = output
        self.use_colors = use_colors
        self.categories = set(categories) if categories is not None else None

        self._entries: Deque[LogEntry] = deque(maxlen=max_entries)
        self._tick_ms: Deque[float] = deque(maxlen=1000)
        self._tick_started = 0.0

        # Clock for entries logged without an explicit timestamp
        self.time_source: Optional[Callable[[], float]] = None

    # =========================================================================
    # Logging
    # =========================================================================

    def log(self, level: LogLevel, category: str, message: str,
            timestamp: Optional[float] = None, **data) -> Optional[LogEntry]:
        """
        Record a message.

        Returns:
            The entry, or None if it was filtered out
        """
        if level.value < self.level.value:
            return None
        if self.categories is not None and category not in self.categories:
            return None

        if timestamp is None:
            timestamp = self.time_source() if self.time_source else 0.0

        entry = LogEntry(timestamp, level, category, message, data)
        self._entries.append(entry)

        if self.output is not None:
            self.output.write(entry.format(colors=self.use_colors) + "\n")
            self.output.flush()
        return entry

    def trace(self, category: str, message: str, timestamp: Optional[float] = None, **data) -> Optional[LogEntry]:
        return self.log(LogLevel.TRACE, category, message, timestamp, **data)

    def debug(self, category: str, message: str, timestamp: Optional[float] = None, **data) -> Optional[LogEntry]:
        return self.log(LogLevel.DEBUG, category, message, timestamp, **data)

    def info(self, category: str, message: str, timestamp: Optional[float] = None, **data) -> Optional[LogEntry]:
        return self.log(LogLevel.INFO, category, message, timestamp, **data)

    def warning(self, category: str, message: str, timestamp: Optional[float] = None, **data) -> Optional[LogEntry]:
        return self.log(LogLevel.WARNING, category, message, timestamp, **data)

    def error(self, category: str, message: str, timestamp: Optional[float] = None, **data) -> Optional[LogEntry]:
        return self.log(LogLevel.ERROR, category, message, timestamp, **data)

    # =========================================================================
    # Soundscape Events
    # =========================================================================

    def log_nav_transition(self, timestamp: float, old_state: str,
                           new_state: str, **data) -> None:
        self.info("wander", f"{old_state} -> {new_state}", timestamp, **data)

    def log_fetch(self, timestamp: float, lat: float, lng: float,
                  radius_km: float, epoch: int) -> None:
        self.info("fetch", "Fetch cycle", timestamp,
                  lat=f"{lat:.3f}", lng=f"{lng:.3f}",
                  radius=f"{radius_km:.0f}km", epoch=epoch)

    def log_cull(self, timestamp: float, pool: str, sample_id: str,
                 reason: str) -> None:
        self.debug("pool", f"Culled {pool}:{sample_id}", timestamp, reason=reason)

    def log_voice_start(self, timestamp: float, sample_id: str, source: str,
                        pan: float, gain: float) -> None:
        self.debug("voice", f"START {source}:{sample_id}", timestamp,
                   pan=f"{pan:+.2f}", gain=f"{gain:.2f}")

    def log_voice_end(self, timestamp: float, sample_id: str,
                      reason: str = "ended") -> None:
        self.debug("voice", f"END {sample_id}", timestamp, reason=reason)

    # =========================================================================
    # Tick Timing
    # =========================================================================

    def tick_start(self) -> None:
        self._tick_started = time.perf_counter()

    def tick_end(self) -> float:
        """Close the current tick; returns its wall duration in ms."""
        duration = (time.perf_counter() - self._tick_started) * 1000
        self._tick_ms.append(duration)
        return duration

    def get_performance_stats(self) -> Dict[str, float]:
        """Wall time per tick over the last thousand ticks."""
        if not self._tick_ms:
            return {'avg_ms': 0.0, 'max_ms': 0.0, 'ticks': 0}
        return {
            'avg_ms': sum(self._tick_ms) / len(self._tick_ms),
            'max_ms': max(self._tick_ms),
            'ticks': len(self._tick_ms),
        }

    # =========================================================================
    # Queries
    # =========================================================================

    def get_entries(self, level: Optional[LogLevel] = None,
                    category: Optional[str] = None,
                    count: Optional[int] = None) -> List[LogEntry]:
        """
        Entries at or above a level, optionally for one category, oldest
        first. ``count`` keeps only the most recent.
        """
        entries = [e for e in self._entries
                   if (level is None or e.level.value >= level.value)
                   and (category is None or e.category == category)]
        if count:
            entries = entries[-count:]
        return entries

    def get_warnings(self) -> List[LogEntry]:
        return [e for e in self._entries if e.level == LogLevel.WARNING]

    def search(self, text: str) -> List[LogEntry]:
        """Entries whose message contains text (case-insensitive)."""
        needle = text.lower()
        return [e for e in self._entries if needle in e.message.lower()]

    # =========================================================================
    # Export
    # =========================================================================

    def to_text(self) -> str:
        return "\n".join(e.format() for e in self._entries)

    def to_json(self, pretty: bool = False) -> str:
        return json.dumps([e.to_dict() for e in self._entries],
                          indent=2 if pretty else None)

    def write_log(self, filepath: str) -> int:
        """
        Write the history to a file, as JSON when the name ends in
        ``.json`` and as plain text otherwise.

        Returns:
            Number of entries written
        """
        with open(filepath, 'w', encoding='utf-8') as f:
            if filepath.endswith('.json'):
                f.write(self.to_json(pretty=True))
            else:
                f.write(self.to_text() + "\n")
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        self._tick_ms.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"DebugLogger(entries={len(self._entries)}, level={self.level.name})"


def create_console_logger(level: LogLevel = LogLevel.INFO,
                          use_colors: bool = True) -> DebugLogger:
    """Logger that echoes to stdout."""
    return DebugLogger(level=level, output=sys.stdout, use_colors=use_colors)
