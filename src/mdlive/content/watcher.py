"""File watcher — feeds raw filesystem events to the change debouncer.

Runs watchfiles in a background thread and bridges each observed change
into an asyncio queue owned by the event loop. The watched path can be
swapped at runtime; a swap stops the old watch thread and starts a new
one on the new root.

Graceful-stop requests (console quit, server drain, a fatal backend
failure) travel through the same queue as content events, so the
consumer sees a single ordered stream.
"""

from __future__ import annotations

import asyncio
import sys
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from watchfiles import Change

from mdlive._errors import WatchBackendError
from mdlive.content.debouncer import RawEvent

if TYPE_CHECKING:
    from mdlive._types import ChangeKind, StopReason
    from mdlive.observability.collector import StackCollector


# Mapping from watchfiles Change enum to our kind literals.
_CHANGE_KIND_MAP: dict[Change, ChangeKind] = {
    Change.added: "created",
    Change.modified: "modified",
    Change.deleted: "deleted",
}


class ContentWatcher:
    """Watches one root (directory or single file) for changes.

    Args:
        root: Absolute path to watch.
        queue: Queue the raw events are delivered to. Created lazily on
            the running loop when omitted.
        collector: Optional observability sink for stop requests.
        debounce_ms: watchfiles' own grouping window. Kept short; the
            throttle policy lives in :class:`ChangeDebouncer`.
        step_ms: watchfiles polling step for the stop event.

    """

    def __init__(
        self,
        root: Path,
        queue: asyncio.Queue[RawEvent] | None = None,
        *,
        collector: StackCollector | None = None,
        debounce_ms: int = 50,
        step_ms: int = 10,
    ) -> None:
        self._root = root
        self._queue = queue if queue is not None else asyncio.Queue()
        self._collector = collector
        self._debounce_ms = debounce_ms
        self._step_ms = step_ms
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._stopping = False

    @property
    def queue(self) -> asyncio.Queue[RawEvent]:
        return self._queue

    @property
    def root(self) -> Path:
        """The path currently being watched."""
        return self._root

    @property
    def is_running(self) -> bool:
        """Whether the watcher background thread is active."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start watching in a background thread.

        Must be called from the event loop that consumes :attr:`queue`.

        """
        self._loop = asyncio.get_running_loop()
        with self._lock:
            self._stopping = False
            self._start_thread()

    def stop(self) -> None:
        """Stop the watch thread and wait for it to finish."""
        with self._lock:
            self._stopping = True
            self._stop_thread()

    def set_paths(self, root: Path) -> None:
        """Replace the watched path set with ``{root}``.

        Safe to call from any thread. Events already queued for the old
        root are still delivered.

        """
        with self._lock:
            self._stop_thread()
            self._root = root
            if self._loop is not None and not self._stopping:
                self._start_thread()

    def request_stop(self, reason: StopReason) -> None:
        """Enqueue a graceful-stop item. Safe to call from any thread."""
        if self._collector is not None:
            self._collector.record_stop(reason)
        self._deliver(RawEvent.stop(reason))

    def _start_thread(self) -> None:
        if self.is_running:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._watch_loop,
            args=(self._root, self._stop_event),
            name="mdlive-watcher",
            daemon=True,
        )
        self._thread.start()

    def _stop_thread(self) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5.0)

    def _deliver(self, event: RawEvent) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            # Not started yet: the caller owns the loop thread.
            self._queue.put_nowait(event)
            return
        try:
            loop.call_soon_threadsafe(self._queue.put_nowait, event)
        except RuntimeError:
            # Loop closed between the check and the call; nobody is consuming.
            return

    def _watch_loop(self, root: Path, stop_event: threading.Event) -> None:
        """Background thread: run watchfiles and push events to the queue."""
        from watchfiles import watch

        try:
            for raw_changes in watch(
                root,
                stop_event=stop_event,
                debounce=self._debounce_ms,
                step=self._step_ms,
                raise_interrupt=False,
            ):
                for change_type, path_str in raw_changes:
                    kind = _CHANGE_KIND_MAP.get(change_type, "modified")
                    self._deliver(RawEvent(path=Path(path_str), kind=kind))
        except Exception as exc:
            if stop_event.is_set():
                return
            error = WatchBackendError(f"watching {root} failed: {exc}")
            print(f"  Watcher stopped: {error}", file=sys.stderr)
            self.request_stop("backend-error")
