"""
Event logging for Rara Avis.

Keeps the director's event history (voices, fetches, culls, refreshes)
and the "bird watcher" tally of which species have been heard.
"""

from collections import Counter, deque
from dataclasses import asdict, dataclass, field
from typing import Any, Deque, Dict, List
import csv
import io
import json


@dataclass
class EventRecord:
    """
    A flattened DirectorEvent.

    ``name`` is lifted out of the event metadata so the CSV carries the
    species or recording title.
    """
    timestamp: float
    event_type: str
    sample_id: str = ""
    voice_id: str = ""
    source: str = ""
    pan: float = 0.0
    gain: float = 0.0
    reason: str = ""
    name: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_event(cls, event: Any) -> 'EventRecord':
        metadata = dict(event.metadata or {})
        return cls(
            timestamp=event.timestamp,
            event_type=event.event_type.value,
            sample_id=event.sample_id,
            voice_id=event.voice_id,
            source=event.source,
            pan=event.pan,
            gain=event.gain,
            reason=event.reason,
            name=metadata.get('name', ''),
            metadata=metadata,
        )


class EventLogger:
    """
    Director listener that stores events.

        >>> events = EventLogger(max_events=10000)
        >>> director.on_event(events.log_event)    # doctest: +SKIP
        >>> events.species_counts()
        {}
    """

    CSV_COLUMNS = [
        'timestamp', 'event_type', 'sample_id', 'voice_id', 'source',
        'pan', 'gain', 'reason', 'name',
    ]

    def __init__(self, max_events: int = 10000):
        self._events: Deque[EventRecord] = deque(maxlen=max_events)
        self._by_type: Counter = Counter()
        self._by_source: Counter = Counter()
        self._species: Counter = Counter()
        self.total_logged = 0

    def log_event(self, event: Any) -> EventRecord:
        """Record a DirectorEvent; usable directly as an on_event callback."""
        record = EventRecord.from_event(event)
        self._events.append(record)

        self.total_logged += 1
        self._by_type[record.event_type] += 1
        if record.source:
            self._by_source[record.source] += 1
        if record.event_type == 'voice_start' and record.source == 'bio' and record.name:
            self._species[record.name] += 1
        return record

    # =========================================================================
    # Queries
    # =========================================================================

    def get_by_type(self, event_type: str) -> List[EventRecord]:
        return [e for e in self._events if e.event_type == event_type]

    def get_by_sample(self, sample_id: str) -> List[EventRecord]:
        return [e for e in self._events if e.sample_id == sample_id]

    def species_counts(self) -> Dict[str, int]:
        """Bio voices started per species name, most heard first."""
        return dict(sorted(self._species.items(), key=lambda kv: (-kv[1], kv[0])))

    def get_stats(self) -> Dict[str, Any]:
        return {
            'total_logged': self.total_logged,
            'stored': len(self._events),
            'by_type': dict(self._by_type),
            'by_source': dict(self._by_source),
            'species_heard': len(self._species),
        }

    # =========================================================================
    # Export
    # =========================================================================

    def to_csv(self) -> str:
        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=self.CSV_COLUMNS,
                                extrasaction='ignore')
        writer.writeheader()
        for record in self._events:
            writer.writerow(asdict(record))
        return output.getvalue()

    def to_json(self) -> str:
        return json.dumps([asdict(r) for r in self._events])

    def write_csv(self, filepath: str) -> int:
        """
        Write the history to a CSV file.

        Returns:
            Number of events written
        """
        with open(filepath, 'w', newline='', encoding='utf-8') as f:
            f.write(self.to_csv())
        return len(self._events)

    def clear(self) -> None:
        self._events.clear()
        self._by_type.clear()
        self._by_source.clear()
        self._species.clear()
        self.total_logged = 0

    def __len__(self) -> int:
        return len(self._events)

    def __repr__(self) -> str:
        return f"EventLogger(events={len(self._events)})"
