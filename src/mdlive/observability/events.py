"""Unified event model for mdlive observability.

Defines event types for the content pipeline, the listener registry and
runtime reconfiguration. Pounce lifecycle events are reused directly from
``pounce.lifecycle``.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal

from mdlive._types import StopReason


# ---------------------------------------------------------------------------
# Content pipeline events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DocumentRendered:
    """A markdown file was rendered into the content store.

    Attributes:
        path: Absolute path to the source file.
        key: Route key the document is stored under.
        render_ms: Time spent reading and rendering in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    key: str
    render_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class RenderFailed:
    """A markdown file could not be read, decoded or rendered.

    The store entry for ``key`` (if any) was left unchanged.

    """

    path: str
    key: str
    error: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class BatchApplied:
    """One debounced change batch was processed.

    Attributes:
        applied: Documents re-rendered and committed.
        failed: Documents whose re-render failed (left stale).
        skipped: Paths with no valid route key or not markdown.
        notified: Whether the change signal fired for this batch.
        duration_ms: Wall time for the whole batch.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    applied: int
    failed: int
    skipped: int
    notified: bool
    duration_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Listener and control events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ListenerEvent:
    """A live-reload listener attached or released."""

    kind: Literal["attached", "released"]
    listener_count: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class RootChanged:
    """The served root or index document was replaced at runtime."""

    kind: Literal["root", "index"]
    value: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class StopRequested:
    """A graceful stop was requested through the raw event stream."""

    reason: StopReason
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type StackEvent = (
    DocumentRendered
    | RenderFailed
    | BatchApplied
    | ListenerEvent
    | RootChanged
    | StopRequested
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
