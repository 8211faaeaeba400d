"""Tests for mdlive.content.watcher — watchfiles bridged to an asyncio queue."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from mdlive.content.debouncer import RawEvent
from mdlive.content.watcher import _CHANGE_KIND_MAP, ContentWatcher
from mdlive.observability import StackCollector, StopRequested


async def _next_event(queue: asyncio.Queue[RawEvent], timeout: float = 5.0) -> RawEvent:
    return await asyncio.wait_for(queue.get(), timeout=timeout)


class TestChangeKindMap:
    def test_maps_all_watchfiles_changes(self) -> None:
        from watchfiles import Change

        assert _CHANGE_KIND_MAP[Change.added] == "created"
        assert _CHANGE_KIND_MAP[Change.modified] == "modified"
        assert _CHANGE_KIND_MAP[Change.deleted] == "deleted"


class TestContentWatcher:
    """ContentWatcher — lifecycle, stop requests and root swaps."""

    def test_not_running_before_start(self, docs: Path) -> None:
        watcher = ContentWatcher(docs)
        assert not watcher.is_running
        assert watcher.root == docs

    @pytest.mark.asyncio
    async def test_start_and_stop(self, docs: Path) -> None:
        watcher = ContentWatcher(docs)
        watcher.start()
        try:
            assert watcher.is_running
        finally:
            await asyncio.to_thread(watcher.stop)
        assert not watcher.is_running

    @pytest.mark.asyncio
    async def test_request_stop_enqueues_stop_item(
        self, docs: Path, collector: StackCollector,
    ) -> None:
        watcher = ContentWatcher(docs, collector=collector)
        watcher.start()
        try:
            await asyncio.to_thread(watcher.request_stop, "quit")
            event = await _next_event(watcher.queue)
        finally:
            await asyncio.to_thread(watcher.stop)
        assert event.is_stop
        assert event.reason == "quit"
        assert [e.reason for e in collector.log.query(StopRequested)] == ["quit"]

    def test_request_stop_before_start(self, docs: Path) -> None:
        watcher = ContentWatcher(docs)
        watcher.request_stop("interrupt")
        assert watcher.queue.get_nowait() == RawEvent.stop("interrupt")

    @pytest.mark.asyncio
    async def test_reports_file_changes(self, docs: Path) -> None:
        watcher = ContentWatcher(docs)
        watcher.start()
        try:
            await asyncio.sleep(0.2)
            (docs / "a.md").write_text("# Bye")
            event = await _next_event(watcher.queue)
        finally:
            await asyncio.to_thread(watcher.stop)
        assert event.path == docs / "a.md"
        assert event.kind in ("modified", "created")

    @pytest.mark.asyncio
    async def test_set_paths_switches_root(self, docs: Path, other_docs: Path) -> None:
        watcher = ContentWatcher(docs)
        watcher.start()
        try:
            await asyncio.to_thread(watcher.set_paths, other_docs)
            assert watcher.root == other_docs
            assert watcher.is_running
            await asyncio.sleep(0.2)
            (other_docs / "b.md").write_text("# Changed")
            event = await _next_event(watcher.queue)
        finally:
            await asyncio.to_thread(watcher.stop)
        assert event.path == other_docs / "b.md"

    @pytest.mark.asyncio
    async def test_set_paths_after_stop_does_not_restart(
        self, docs: Path, other_docs: Path,
    ) -> None:
        watcher = ContentWatcher(docs)
        watcher.start()
        await asyncio.to_thread(watcher.stop)
        await asyncio.to_thread(watcher.set_paths, other_docs)
        assert watcher.root == other_docs
        assert not watcher.is_running

    @pytest.mark.asyncio
    async def test_backend_failure_requests_stop(
        self, tmp_path: Path, collector: StackCollector,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        watcher = ContentWatcher(tmp_path / "missing", collector=collector)
        watcher.start()
        try:
            event = await _next_event(watcher.queue)
        finally:
            await asyncio.to_thread(watcher.stop)
        assert event == RawEvent.stop("backend-error")
        assert "Watcher stopped" in capsys.readouterr().err
