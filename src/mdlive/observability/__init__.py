"""Observability — one event model for the server and the live cache.

Aggregates events from:
- **Pounce**: Connection lifecycle (open, request, response, disconnect, close)
- **Content pipeline**: Renders, render failures, applied batches
- **Control**: Listener attach/release, root and index changes, stop requests

All events are frozen dataclasses with nanosecond timestamps, safe for
concurrent production from the event loop and background threads.

Quick Start:
    >>> from mdlive.observability import StackCollector, EventLog
    >>> log = EventLog()
    >>> collector = StackCollector(log)
    >>> # Pass collector to Pounce as lifecycle_collector

"""

from mdlive.observability.collector import StackCollector
from mdlive.observability.events import (
    BatchApplied,
    DocumentRendered,
    ListenerEvent,
    RenderFailed,
    RootChanged,
    StackEvent,
    StopRequested,
    now_ns,
)
from mdlive.observability.log import EventLog, event_record

__all__ = [
    "BatchApplied",
    "DocumentRendered",
    "EventLog",
    "ListenerEvent",
    "RenderFailed",
    "RootChanged",
    "StackCollector",
    "StackEvent",
    "StopRequested",
    "event_record",
    "now_ns",
]
