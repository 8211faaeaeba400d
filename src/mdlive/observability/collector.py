"""Stack collector — one sink for pounce lifecycle and mdlive events.

Implements Pounce's ``LifecycleCollector`` protocol so it can be passed
directly to the server. Also provides methods for recording content,
listener and reconfiguration events from mdlive itself.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.
    Safe for concurrent use from the event loop and background threads.

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mdlive.observability.events import (
    BatchApplied,
    DocumentRendered,
    ListenerEvent,
    RenderFailed,
    RootChanged,
    StopRequested,
    now_ns,
)
from mdlive.observability.log import EventLog

if TYPE_CHECKING:
    from typing import Literal

    from pounce.lifecycle import LifecycleEvent

    from mdlive._types import StopReason


class StackCollector:
    """Unified event collector for the server process.

    Implements Pounce's ``LifecycleCollector`` protocol (duck-typed) so
    it can be injected into Pounce as the lifecycle collector.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Pounce LifecycleCollector protocol -----

    def record(self, event: LifecycleEvent) -> None:
        """Record a Pounce lifecycle event.

        Implements the ``LifecycleCollector.record()`` protocol.
        Pounce events are stored directly since they are frozen dataclasses.

        """
        self._log.append(event)

    # ----- Content pipeline events -----

    def record_render(self, path: str, key: str, *, render_ms: float = 0.0) -> None:
        """Record a successful render into the store."""
        self._log.append(
            DocumentRendered(path=path, key=key, render_ms=render_ms, timestamp_ns=now_ns())
        )

    def record_render_failed(self, path: str, key: str, error: BaseException | str) -> None:
        """Record a failed render; the store entry was left as it was."""
        self._log.append(
            RenderFailed(path=path, key=key, error=str(error), timestamp_ns=now_ns())
        )

    def record_batch(
        self,
        *,
        applied: int = 0,
        failed: int = 0,
        skipped: int = 0,
        notified: bool = False,
        duration_ms: float = 0.0,
    ) -> None:
        """Record the outcome of one invalidation batch."""
        self._log.append(
            BatchApplied(
                applied=applied,
                failed=failed,
                skipped=skipped,
                notified=notified,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Listener and control events -----

    def record_listener(
        self, kind: Literal["attached", "released"], listener_count: int,
    ) -> None:
        """Record a live-reload listener attaching or releasing."""
        self._log.append(
            ListenerEvent(kind=kind, listener_count=listener_count, timestamp_ns=now_ns())
        )

    def record_root_change(self, kind: Literal["root", "index"], value: str) -> None:
        """Record a runtime change of the served root or index."""
        self._log.append(RootChanged(kind=kind, value=value, timestamp_ns=now_ns()))

    def record_stop(self, reason: StopReason) -> None:
        """Record a graceful-stop request."""
        self._log.append(StopRequested(reason=reason, timestamp_ns=now_ns()))
