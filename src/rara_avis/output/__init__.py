"""
Output and logging for Rara Avis.

- DebugLogger: leveled, categorized runtime logging
- EventLogger: director event history and species tally
"""

from .debug_logger import DebugLogger, LogLevel, LogEntry, create_console_logger
from .event_logger import EventLogger, EventRecord

__all__ = [
    'DebugLogger',
    'LogLevel',
    'LogEntry',
    'create_console_logger',
    'EventLogger',
    'EventRecord',
]
