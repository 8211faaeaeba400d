"""Content store — route key to rendered HTML, shared by every task.

Readers (HTTP handlers) never take a lock: each entry holds its current
value in a single attribute, and replacing that attribute is atomic, so a
reader sees either the previous document or the new one in full.

Writers go through :meth:`ContentStore.entry`, a scoped handle that holds
the per-key lock for the duration of one re-render. Writers for different
keys never contend; the store-wide lock is only taken to create a new slot.

Thread Safety:
    Safe for concurrent readers and writers on free-threaded Python.
    A render in progress is never visible to readers.

"""

from __future__ import annotations

import sys
import threading
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from mdlive._errors import DecodeError, InvalidPath, RenderError
from mdlive.content.keys import MARKDOWN_SUFFIX, SINGLE_FILE_KEY, is_markdown, path_to_key

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from mdlive._types import RenderedDocument, RouteKey
    from mdlive.content.renderer import Renderer
    from mdlive.observability.collector import StackCollector


class _Slot:
    """One store row: its writer lock and the last committed document."""

    __slots__ = ("lock", "value")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.value: RenderedDocument | None = None


class EntryHandle:
    """Exclusive, scoped access to one store entry.

    Obtained from :meth:`ContentStore.entry`. Assigning :attr:`value`
    stages a new document; it becomes visible to readers when the scope
    exits normally. If the scope exits with an exception nothing is
    committed and the previous document stays in place.

    """

    __slots__ = ("_staged", "_value", "key", "previous")

    def __init__(self, key: RouteKey, previous: RenderedDocument | None) -> None:
        self.key = key
        self.previous = previous
        self._value = previous
        self._staged = False

    @property
    def value(self) -> RenderedDocument | None:
        return self._value

    @value.setter
    def value(self, document: RenderedDocument) -> None:
        self._value = document
        self._staged = True


class ContentStore:
    """Concurrent mapping of route keys to rendered documents.

    No eviction: the store grows with the number of distinct documents and
    is replaced wholesale when the served root changes.

    """

    __slots__ = ("_lock", "_slots")

    def __init__(self) -> None:
        self._slots: dict[RouteKey, _Slot] = {}
        self._lock = threading.Lock()

    def get(self, key: RouteKey) -> RenderedDocument | None:
        """Return the last completed render for *key*, or None."""
        slot = self._slots.get(key)
        if slot is None:
            return None
        return slot.value

    def put(self, key: RouteKey, document: RenderedDocument) -> None:
        """Insert or replace the document for *key* atomically."""
        with self.entry(key) as handle:
            handle.value = document

    @contextmanager
    def entry(self, key: RouteKey) -> Iterator[EntryHandle]:
        """Hold *key*'s writer lock for one scoped update.

        Usage::

            with store.entry("guide/intro") as handle:
                handle.value = renderer.render_file(path)

        The handle is released, and the update published, before the
        ``with`` block returns.

        """
        slot = self._slot(key)
        with slot.lock:
            handle = EntryHandle(key, slot.value)
            yield handle
            if handle._staged:
                slot.value = handle.value

    def _slot(self, key: RouteKey) -> _Slot:
        slot = self._slots.get(key)
        if slot is None:
            with self._lock:
                slot = self._slots.setdefault(key, _Slot())
        return slot

    def keys(self) -> list[RouteKey]:
        """Keys that currently hold a document, sorted."""
        return sorted(k for k, slot in list(self._slots.items()) if slot.value is not None)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __len__(self) -> int:
        return sum(1 for slot in list(self._slots.values()) if slot.value is not None)


def discover_documents(root: Path) -> Iterator[tuple[RouteKey, Path]]:
    """Yield ``(key, path)`` for every markdown document under *root*.

    A file root yields itself under the single-file key. Directory roots
    are walked recursively in sorted order.

    """
    if root.is_file():
        yield SINGLE_FILE_KEY, root
        return
    for path in sorted(root.rglob(f"*{MARKDOWN_SUFFIX}")):
        if not (path.is_file() and is_markdown(path)):
            continue
        try:
            key = path_to_key(root, path)
        except InvalidPath as exc:
            print(f"  Skipped {exc}", file=sys.stderr)
            continue
        yield key, path


def build_store(
    root: Path,
    renderer: Renderer,
    collector: StackCollector | None = None,
) -> ContentStore:
    """Scan *root* and render every document into a fresh store.

    Used at startup and when the served root changes. Runs to completion
    before the store is published, so it never interleaves with the live
    invalidation pipeline. Files that fail to read, decode or render are
    reported and skipped.

    """
    store = ContentStore()
    for key, path in discover_documents(root):
        t0 = time.perf_counter()
        try:
            html = renderer.render_file(path)
        except (OSError, DecodeError, RenderError) as exc:
            print(f"  Skipped {path.name}: {exc}", file=sys.stderr)
            if collector is not None:
                collector.record_render_failed(str(path), key, exc)
            continue
        store.put(key, html)
        if collector is not None:
            collector.record_render(
                str(path), key, render_ms=(time.perf_counter() - t0) * 1000,
            )
    return store
