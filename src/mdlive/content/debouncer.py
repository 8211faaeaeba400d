"""Change debouncer — collapses raw filesystem events into batches.

The watch backend reports every OS-level write, and a single save in an
editor often produces several. The debouncer accumulates observed paths
into a working set and flushes it at most once per throttle window,
measured from the first unflushed observation. Each path appears at most
once per batch.

A stop item in the raw stream (interrupt, terminate, console quit or a
fatal backend error) flushes whatever is pending and ends the stream.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from pathlib import Path

    from mdlive._types import ChangeKind, StopReason


@dataclass(frozen=True, slots=True)
class RawEvent:
    """One observation from the watch backend.

    Attributes:
        path: Absolute path reported by the backend (None for stop items).
        kind: Type of filesystem change, or ``"stop"``.
        reason: Why a stop was requested (stop items only).

    """

    path: Path | None
    kind: ChangeKind
    reason: StopReason | None = None

    @classmethod
    def stop(cls, reason: StopReason) -> RawEvent:
        """Build a graceful-stop item."""
        return cls(path=None, kind="stop", reason=reason)

    @property
    def is_stop(self) -> bool:
        return self.kind == "stop"


@dataclass(frozen=True, slots=True)
class ChangeBatch:
    """A deduplicated set of changed files ready for re-rendering.

    Attributes:
        paths: Regular files that existed at flush time, in first-seen order.
        stop: Stop reason if the stream ended with this batch.

    """

    paths: tuple[Path, ...] = ()
    stop: StopReason | None = None

    @property
    def stop_requested(self) -> bool:
        return self.stop is not None

    def __len__(self) -> int:
        return len(self.paths)


class ChangeDebouncer:
    """Accumulate raw events and flush them once per throttle window.

    The synchronous half (:meth:`observe`, :meth:`due`, :meth:`flush`) holds
    the policy and is driven directly by tests. :meth:`batches` drives it
    from an asyncio queue fed by the watcher thread.

    Args:
        throttle: Window length in seconds.
        clock: Monotonic clock, injectable for tests.

    """

    __slots__ = ("_clock", "_first_seen", "_pending", "_stop", "throttle")

    def __init__(
        self,
        throttle: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.throttle = throttle
        self._clock = clock
        # dict keeps first-seen order and dedups in one structure
        self._pending: dict[Path, None] = {}
        self._first_seen: float | None = None
        self._stop: StopReason | None = None

    @property
    def pending(self) -> int:
        """Number of distinct paths waiting to be flushed."""
        return len(self._pending)

    @property
    def deadline(self) -> float | None:
        """Clock value at which the current window closes, or None if idle."""
        if self._first_seen is None:
            return None
        return self._first_seen + self.throttle

    def observe(self, event: RawEvent) -> None:
        """Add one raw event to the working set."""
        if event.is_stop:
            if self._stop is None:
                self._stop = event.reason
            return
        if event.path is None:
            return
        if self._first_seen is None:
            self._first_seen = self._clock()
        self._pending[event.path] = None

    def due(self, now: float | None = None) -> bool:
        """Whether the working set should be flushed now."""
        if self._stop is not None:
            return True
        deadline = self.deadline
        if deadline is None:
            return False
        return (self._clock() if now is None else now) >= deadline

    def flush(self) -> ChangeBatch:
        """Emit the working set as one batch and start a new window.

        Directories and paths that no longer exist are dropped here; only
        regular files that currently exist reach the pipeline.

        """
        paths = tuple(p for p in self._pending if p.is_file())
        batch = ChangeBatch(paths=paths, stop=self._stop)
        self._pending.clear()
        self._first_seen = None
        return batch

    async def batches(self, queue: asyncio.Queue[RawEvent]) -> AsyncIterator[ChangeBatch]:
        """Yield batches from *queue* until a stop item arrives.

        Suspends on the queue while idle and for at most the remainder of
        the throttle window once a path has been observed. Batches that
        end up empty after filtering are not yielded, except the final
        stop batch.

        """
        while True:
            deadline = self.deadline
            if deadline is None:
                self.observe(await queue.get())
            else:
                remaining = deadline - self._clock()
                if remaining > 0:
                    try:
                        self.observe(await asyncio.wait_for(queue.get(), remaining))
                    except TimeoutError:
                        pass

            # Drain whatever else arrived without suspending.
            while not queue.empty():
                self.observe(queue.get_nowait())

            if not self.due():
                continue

            batch = self.flush()
            if batch.paths or batch.stop_requested:
                yield batch
            if batch.stop_requested:
                return
