"""Invalidation pipeline — applies debounced change batches to the store.

Orchestrates the change propagation flow:
    1. ContentWatcher reports raw events on an asyncio queue
    2. ChangeDebouncer collapses them into one ChangeBatch per window
    3. Each file in the batch is re-rendered into its store entry
    4. The ChangeNotifier fires once if anything was applied and a
       listener is attached

Every batch is keyed against one ServeState snapshot, so a root swap in
the middle of a batch never mixes keys from two roots. A batch computed
against an old root completes harmlessly into the old store.
"""

from __future__ import annotations

import asyncio
import sys
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from mdlive._errors import DecodeError, InvalidPath, RenderError
from mdlive.content.keys import is_markdown, path_to_key

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from mdlive._types import RouteKey, StopReason
    from mdlive.content.debouncer import ChangeBatch, ChangeDebouncer, RawEvent
    from mdlive.content.renderer import Renderer
    from mdlive.content.store import ContentStore
    from mdlive.observability.collector import StackCollector
    from mdlive.reactive.notifier import ChangeNotifier
    from mdlive.reactive.roots import LiveSite


@dataclass(frozen=True, slots=True)
class BatchResult:
    """Outcome of one applied batch."""

    applied: tuple[RouteKey, ...] = ()
    failed: tuple[RouteKey, ...] = ()
    skipped: int = 0
    notified: bool = False


class InvalidationPipeline:
    """Re-renders changed documents and signals live listeners.

    Args:
        site: Owner of the current root and store.
        renderer: Markdown renderer.
        notifier: Listener registry to fire after each applied batch.
        collector: Optional observability sink.

    """

    def __init__(
        self,
        site: LiveSite,
        renderer: Renderer,
        notifier: ChangeNotifier,
        collector: StackCollector | None = None,
    ) -> None:
        self._site = site
        self._renderer = renderer
        self._notifier = notifier
        self._collector = collector

    async def apply_batch(self, batch: ChangeBatch) -> BatchResult:
        """Re-render every file in *batch*, then notify at most once.

        A file whose key cannot be derived, or that is not markdown (other
        than a single-file root), is skipped. A file that fails
        to read, decode or render is reported and its entry left as it
        was. Neither aborts the rest of the batch.

        """
        t0 = time.perf_counter()
        state = self._site.snapshot()
        applied: list[RouteKey] = []
        failed: list[RouteKey] = []
        skipped = 0

        for path in batch.paths:
            # A single-file root is served whatever its suffix.
            if path != state.root and not is_markdown(path):
                skipped += 1
                continue
            try:
                key = path_to_key(state.root, path)
            except InvalidPath:
                skipped += 1
                continue

            t_render = time.perf_counter()
            try:
                # Render and commit off the loop; the entry lock is held
                # only inside the worker thread.
                await asyncio.to_thread(self._render_into, state.store, key, path)
            except (OSError, DecodeError, RenderError) as exc:
                print(f"  Render error: {path.name}: {exc}", file=sys.stderr)
                failed.append(key)
                if self._collector is not None:
                    self._collector.record_render_failed(str(path), key, exc)
                continue

            applied.append(key)
            if self._collector is not None:
                self._collector.record_render(
                    str(path), key, render_ms=(time.perf_counter() - t_render) * 1000,
                )

        notified = False
        if applied and self._notifier.listener_count > 0:
            self._notifier.notify()
            notified = True

        if applied:
            names = ", ".join(f"{key}.md" for key in applied)
            suffix = f" ({self._notifier.listener_count} listening)" if notified else ""
            print(f"  Updated {names}{suffix}", file=sys.stderr)

        if self._collector is not None:
            self._collector.record_batch(
                applied=len(applied),
                failed=len(failed),
                skipped=skipped,
                notified=notified,
                duration_ms=(time.perf_counter() - t0) * 1000,
            )

        return BatchResult(
            applied=tuple(applied), failed=tuple(failed), skipped=skipped, notified=notified,
        )

    def _render_into(self, store: ContentStore, key: RouteKey, path: Path) -> None:
        with store.entry(key) as handle:
            handle.value = self._renderer.render_file(path)

    async def run(
        self,
        debouncer: ChangeDebouncer,
        queue: asyncio.Queue[RawEvent],
        on_stop: Callable[[StopReason], None] | None = None,
    ) -> StopReason | None:
        """Apply batches from *queue* until a stop item arrives.

        Returns the stop reason, after passing it to *on_stop*.

        """
        async for batch in debouncer.batches(queue):
            if batch.paths:
                try:
                    await self.apply_batch(batch)
                except Exception as exc:
                    print(f"  Pipeline error: {exc}", file=sys.stderr)
            if batch.stop is not None:
                if on_stop is not None:
                    on_stop(batch.stop)
                return batch.stop
        return None
