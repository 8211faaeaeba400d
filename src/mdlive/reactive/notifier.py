"""Change notifier — fans one "content changed" signal out to live listeners.

Each live-reload connection attaches a :class:`ListenerHandle` and waits
on :meth:`ChangeNotifier.wait_for_change_or_close`. One :meth:`notify`
wakes every attached listener; :meth:`close` wakes them all with
``Outcome.CLOSED`` so server shutdown never leaves a connection blocked.

Delivery is versioned: a handle remembers the notifier version it last
observed, so a firing between two waits of the same listener is not
lost, while a listener that attaches after a firing does not see it.
"""

from __future__ import annotations

import asyncio
import enum
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import TracebackType

    from mdlive.observability.collector import StackCollector


class Outcome(enum.Enum):
    """Why a listener's wait returned."""

    CHANGED = "changed"
    CLOSED = "closed"
    PEER_DISCONNECTED = "peer-disconnected"


class ListenerHandle:
    """One attached live listener.

    Releasing decrements the listener count exactly once, however many
    times :meth:`release` is called. Use it as a context manager so the
    release happens on every exit path, including cancellation.

    """

    __slots__ = ("_notifier", "_released", "version")

    def __init__(self, notifier: ChangeNotifier, version: int) -> None:
        self._notifier = notifier
        self._released = False
        self.version = version

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._notifier._detach()

    def __enter__(self) -> ListenerHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()


class ChangeNotifier:
    """Listener registry plus broadcast primitive.

    ``listener_count`` is a hint for skipping a broadcast nobody would
    see. Waiting and notifying happen on the event loop; attach and
    release may come from any thread.

    Args:
        collector: Optional observability sink for attach/release events.

    """

    def __init__(self, collector: StackCollector | None = None) -> None:
        self._collector = collector
        self._lock = threading.Lock()
        self._count = 0
        self._version = 0
        self._changed = asyncio.Event()
        self._closed = asyncio.Event()

    @property
    def listener_count(self) -> int:
        return self._count

    @property
    def version(self) -> int:
        """Number of times :meth:`notify` has fired."""
        return self._version

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def attach(self) -> ListenerHandle:
        """Register a listener and return its handle."""
        with self._lock:
            self._count += 1
            count = self._count
            handle = ListenerHandle(self, self._version)
        if self._collector is not None:
            self._collector.record_listener("attached", count)
        return handle

    def _detach(self) -> None:
        with self._lock:
            self._count -= 1
            count = self._count
        if self._collector is not None:
            self._collector.record_listener("released", count)

    def notify(self) -> int:
        """Wake every attached listener once. Returns the listener count."""
        self._version += 1
        fired, self._changed = self._changed, asyncio.Event()
        fired.set()
        return self._count

    def close(self) -> None:
        """Wake all listeners with ``Outcome.CLOSED``, now and for every later wait."""
        self._closed.set()

    async def wait_for_change_or_close(
        self,
        handle: ListenerHandle,
        disconnected: asyncio.Event | None = None,
    ) -> Outcome:
        """Suspend until content changes, the notifier closes, or the peer leaves.

        When several become ready together, ``CLOSED`` wins over ``CHANGED``,
        which wins over ``PEER_DISCONNECTED``.

        *disconnected* is for transports that report a peer leaving as an
        event. Chirp's event stream does not: it cancels the generator
        instead, so this coroutine raises ``CancelledError`` and the
        caller's ``with notifier.attach()`` scope releases the handle.

        """
        while True:
            if self._closed.is_set():
                return Outcome.CLOSED
            if handle.version != self._version:
                handle.version = self._version
                return Outcome.CHANGED
            if disconnected is not None and disconnected.is_set():
                return Outcome.PEER_DISCONNECTED

            waiters = [
                asyncio.ensure_future(self._changed.wait()),
                asyncio.ensure_future(self._closed.wait()),
            ]
            if disconnected is not None:
                waiters.append(asyncio.ensure_future(disconnected.wait()))
            try:
                await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for waiter in waiters:
                    waiter.cancel()
