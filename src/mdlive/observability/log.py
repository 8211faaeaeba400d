"""Event log — bounded record of what the live server has done.

Holds the most recent mdlive and Pounce events for ``/__mdlive/stats``
and for tests. Old events fall off the front once the buffer is full;
the log keeps counting them so the stats can say how much history was
dropped.

Thread Safety:
    Appends come from the event loop, render worker threads, the watch
    thread and the console thread. Every method takes the one lock.

"""

from __future__ import annotations

import dataclasses
import threading
from collections import deque
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pounce.lifecycle import LifecycleEvent

    from mdlive.observability.events import StackEvent

type LoggedEvent = StackEvent | LifecycleEvent


def event_record(event: LoggedEvent) -> dict[str, Any]:
    """Flatten *event* to a JSON-ready dict tagged with its type name."""
    return {"type": type(event).__name__, **dataclasses.asdict(event)}


class EventLog:
    """Ring buffer of logged events.

    Args:
        max_events: How many events to keep.

    """

    __slots__ = ("_appended", "_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._events: deque[LoggedEvent] = deque(maxlen=max_events)
        self._appended = 0
        self._lock = threading.Lock()

    def append(self, event: LoggedEvent) -> None:
        with self._lock:
            self._events.append(event)
            self._appended += 1

    def query[E](
        self,
        event_type: type[E],
        *,
        since_ns: int = 0,
        limit: int = 100,
    ) -> list[E]:
        """Events of *event_type* newer than *since_ns*, most recent first."""
        with self._lock:
            events = list(self._events)
        results: list[E] = []
        for event in reversed(events):
            if len(results) >= limit:
                break
            if isinstance(event, event_type) and event.timestamp_ns >= since_ns:
                results.append(event)
        return results

    def recent(self, n: int = 20) -> list[LoggedEvent]:
        """The *n* latest events, oldest first."""
        with self._lock:
            events = list(self._events)
        return events[-n:] if n > 0 else []

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def stats(self) -> dict[str, Any]:
        """Counts by event type, plus how many events have been evicted."""
        with self._lock:
            events = list(self._events)
            appended = self._appended

        by_type: dict[str, int] = {}
        for event in events:
            name = type(event).__name__
            by_type[name] = by_type.get(name, 0) + 1

        return {
            "total": len(events),
            "dropped": appended - len(events),
            "max_events": self._max_events,
            "by_type": by_type,
        }
