"""Tests for mdlive.reactive.pipeline — batches into the store, one signal each."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from mdlive.content.debouncer import ChangeBatch, ChangeDebouncer, RawEvent
from mdlive.content.renderer import Renderer
from mdlive.observability import BatchApplied, RenderFailed, StackCollector
from mdlive.reactive.notifier import ChangeNotifier, Outcome
from mdlive.reactive.pipeline import BatchResult, InvalidationPipeline
from mdlive.reactive.roots import LiveSite


def _pipeline(
    site: LiveSite,
    renderer: Renderer,
    notifier: ChangeNotifier,
    collector: StackCollector | None = None,
) -> InvalidationPipeline:
    return InvalidationPipeline(site, renderer, notifier, collector)


class TestApplyBatch:
    """apply_batch — re-render, commit, notify at most once."""

    @pytest.mark.asyncio
    async def test_edit_updates_store(
        self, docs: Path, site: LiveSite, renderer: Renderer, notifier: ChangeNotifier,
    ) -> None:
        assert "<h1>Hi</h1>" in (site.store.get("a") or "")
        (docs / "a.md").write_text("# Bye")

        result = await _pipeline(site, renderer, notifier).apply_batch(
            ChangeBatch(paths=(docs / "a.md",)),
        )

        assert result.applied == ("a",)
        assert (site.store.get("a") or "").strip() == "<h1>Bye</h1>"

    @pytest.mark.asyncio
    async def test_new_file_creates_entry(
        self, docs: Path, site: LiveSite, renderer: Renderer, notifier: ChangeNotifier,
    ) -> None:
        new = docs / "guide" / "next.md"
        new.write_text("# Next")
        await _pipeline(site, renderer, notifier).apply_batch(ChangeBatch(paths=(new,)))
        assert "<h1>Next</h1>" in (site.store.get("guide/next") or "")

    @pytest.mark.asyncio
    async def test_single_file_root_any_suffix(
        self, tmp_path: Path, renderer: Renderer, notifier: ChangeNotifier,
    ) -> None:
        doc = tmp_path / "README.markdown"
        doc.write_text("# v1")
        site = LiveSite(doc.resolve(), renderer)
        assert (site.store.get("index") or "").strip() == "<h1>v1</h1>"

        notifier.attach()
        doc.write_text("# v2")
        result = await _pipeline(site, renderer, notifier).apply_batch(
            ChangeBatch(paths=(doc.resolve(),)),
        )

        assert result == BatchResult(applied=("index",), notified=True)
        assert (site.store.get("index") or "").strip() == "<h1>v2</h1>"

    @pytest.mark.asyncio
    async def test_no_signal_without_listeners(
        self, docs: Path, site: LiveSite, renderer: Renderer, notifier: ChangeNotifier,
    ) -> None:
        result = await _pipeline(site, renderer, notifier).apply_batch(
            ChangeBatch(paths=(docs / "a.md",)),
        )
        assert not result.notified
        assert notifier.version == 0

    @pytest.mark.asyncio
    async def test_one_signal_per_batch(
        self, docs: Path, site: LiveSite, renderer: Renderer, notifier: ChangeNotifier,
    ) -> None:
        handle = notifier.attach()
        batch = ChangeBatch(paths=(docs / "a.md", docs / "index.md", docs / "guide" / "intro.md"))

        result = await _pipeline(site, renderer, notifier).apply_batch(batch)

        assert len(result.applied) == 3
        assert result.notified
        assert notifier.version == 1
        assert await notifier.wait_for_change_or_close(handle) is Outcome.CHANGED

    @pytest.mark.asyncio
    async def test_signal_fires_after_store_updated(
        self, docs: Path, site: LiveSite, renderer: Renderer, notifier: ChangeNotifier,
    ) -> None:
        seen: list[str | None] = []

        async def listener() -> None:
            with notifier.attach() as handle:
                await notifier.wait_for_change_or_close(handle)
                seen.append(site.store.get("a"))

        task = asyncio.create_task(listener())
        await asyncio.sleep(0.01)
        (docs / "a.md").write_text("# Bye")
        await _pipeline(site, renderer, notifier).apply_batch(ChangeBatch(paths=(docs / "a.md",)))
        await asyncio.wait_for(task, timeout=1.0)
        assert "<h1>Bye</h1>" in (seen[0] or "")

    @pytest.mark.asyncio
    async def test_failed_file_left_stale(
        self, docs: Path, site: LiveSite, renderer: Renderer, notifier: ChangeNotifier,
        collector: StackCollector, capsys: pytest.CaptureFixture[str],
    ) -> None:
        notifier.attach()
        before = site.store.get("a")
        (docs / "a.md").write_bytes(b"# \xff broken")
        (docs / "index.md").write_text("# New home")

        result = await _pipeline(site, renderer, notifier, collector).apply_batch(
            ChangeBatch(paths=(docs / "a.md", docs / "index.md")),
        )

        assert result.failed == ("a",)
        assert result.applied == ("index",)
        assert site.store.get("a") == before
        assert "<h1>New home</h1>" in (site.store.get("index") or "")
        assert result.notified
        assert "Render error: a.md" in capsys.readouterr().err
        assert [e.key for e in collector.log.query(RenderFailed)] == ["a"]

    @pytest.mark.asyncio
    async def test_all_failed_does_not_notify(
        self, docs: Path, site: LiveSite, renderer: Renderer, notifier: ChangeNotifier,
    ) -> None:
        notifier.attach()
        (docs / "a.md").write_bytes(b"\xff")
        result = await _pipeline(site, renderer, notifier).apply_batch(
            ChangeBatch(paths=(docs / "a.md",)),
        )
        assert result == BatchResult(failed=("a",))
        assert notifier.version == 0

    @pytest.mark.asyncio
    async def test_paths_outside_root_and_non_markdown_skipped(
        self, docs: Path, other_docs: Path, site: LiveSite, renderer: Renderer,
        notifier: ChangeNotifier,
    ) -> None:
        result = await _pipeline(site, renderer, notifier).apply_batch(
            ChangeBatch(paths=(other_docs / "b.md", docs / "notes.txt", docs / "a.md")),
        )
        assert result.skipped == 2
        assert result.applied == ("a",)
        assert "b" not in site.store

    @pytest.mark.asyncio
    async def test_records_batch_event(
        self, docs: Path, site: LiveSite, renderer: Renderer, notifier: ChangeNotifier,
        collector: StackCollector,
    ) -> None:
        await _pipeline(site, renderer, notifier, collector).apply_batch(
            ChangeBatch(paths=(docs / "a.md", docs / "notes.txt")),
        )
        (event,) = collector.log.query(BatchApplied)
        assert (event.applied, event.failed, event.skipped, event.notified) == (1, 0, 1, False)

    @pytest.mark.asyncio
    async def test_each_file_rendered_once(
        self, docs: Path, site: LiveSite, notifier: ChangeNotifier,
    ) -> None:
        renderer = MagicMock(spec=Renderer)
        renderer.render_file.return_value = "<p>x</p>"
        await _pipeline(site, renderer, notifier).apply_batch(
            ChangeBatch(paths=(docs / "a.md", docs / "index.md")),
        )
        assert renderer.render_file.call_count == 2


class TestRun:
    """run — debounced stream end to end."""

    @pytest.mark.asyncio
    async def test_burst_renders_once_and_signals_once(
        self, docs: Path, site: LiveSite, notifier: ChangeNotifier,
    ) -> None:
        renderer = MagicMock(spec=Renderer)
        renderer.render_file.return_value = "<h1>Bye</h1>"
        notifier.attach()
        queue: asyncio.Queue[RawEvent] = asyncio.Queue()
        stops: list[str] = []
        pipeline = _pipeline(site, renderer, notifier)
        task = asyncio.create_task(
            pipeline.run(ChangeDebouncer(0.05), queue, on_stop=stops.append),
        )

        for _ in range(50):
            queue.put_nowait(RawEvent(path=docs / "a.md", kind="modified"))
        await asyncio.sleep(0.2)
        queue.put_nowait(RawEvent.stop("quit"))

        assert await asyncio.wait_for(task, timeout=2.0) == "quit"
        assert renderer.render_file.call_count == 1
        assert notifier.version == 1
        assert site.store.get("a") == "<h1>Bye</h1>"
        assert stops == ["quit"]

    @pytest.mark.asyncio
    async def test_stop_flushes_pending_changes(
        self, docs: Path, site: LiveSite, renderer: Renderer, notifier: ChangeNotifier,
    ) -> None:
        queue: asyncio.Queue[RawEvent] = asyncio.Queue()
        (docs / "a.md").write_text("# Last")
        queue.put_nowait(RawEvent(path=docs / "a.md", kind="modified"))
        queue.put_nowait(RawEvent.stop("terminate"))
        reason = await asyncio.wait_for(
            _pipeline(site, renderer, notifier).run(ChangeDebouncer(10.0), queue),
            timeout=2.0,
        )
        assert reason == "terminate"
        assert "<h1>Last</h1>" in (site.store.get("a") or "")

    @pytest.mark.asyncio
    async def test_unexpected_error_does_not_kill_loop(
        self, docs: Path, site: LiveSite, notifier: ChangeNotifier,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        renderer = MagicMock(spec=Renderer)
        renderer.render_file.side_effect = [RuntimeError("boom"), "<p>ok</p>"]
        queue: asyncio.Queue[RawEvent] = asyncio.Queue()
        task = asyncio.create_task(
            _pipeline(site, renderer, notifier).run(ChangeDebouncer(0.01), queue),
        )
        queue.put_nowait(RawEvent(path=docs / "a.md", kind="modified"))
        await asyncio.sleep(0.1)
        queue.put_nowait(RawEvent(path=docs / "a.md", kind="modified"))
        await asyncio.sleep(0.1)
        queue.put_nowait(RawEvent.stop("quit"))
        await asyncio.wait_for(task, timeout=2.0)
        assert site.store.get("a") == "<p>ok</p>"
        assert "Pipeline error" in capsys.readouterr().err
