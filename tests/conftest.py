"""Shared test fixtures for mdlive."""

from __future__ import annotations

from pathlib import Path

import pytest

from mdlive.content.renderer import Renderer
from mdlive.observability import EventLog, StackCollector
from mdlive.reactive.notifier import ChangeNotifier
from mdlive.reactive.roots import LiveSite


@pytest.fixture
def docs(tmp_path: Path) -> Path:
    """Create a small document tree for testing.

    Layout::

        docs/
            a.md            "# Hi"
            index.md        "# Home"
            guide/intro.md  "# Intro"
            notes.txt       (not markdown)

    """
    root = tmp_path / "docs"
    root.mkdir()
    (root / "a.md").write_text("# Hi")
    (root / "index.md").write_text("# Home\n\nWelcome.\n")
    guide = root / "guide"
    guide.mkdir()
    (guide / "intro.md").write_text("# Intro\n\nGetting started.\n")
    (root / "notes.txt").write_text("plain text\n")
    return root.resolve()


@pytest.fixture
def other_docs(tmp_path: Path) -> Path:
    """A second root with a single document, for root switching."""
    root = tmp_path / "other"
    root.mkdir()
    (root / "b.md").write_text("# Other")
    return root.resolve()


@pytest.fixture
def renderer() -> Renderer:
    return Renderer()


@pytest.fixture
def collector() -> StackCollector:
    return StackCollector(EventLog())


@pytest.fixture
def site(docs: Path, renderer: Renderer, collector: StackCollector) -> LiveSite:
    return LiveSite(docs, renderer, collector=collector)


@pytest.fixture
def notifier(collector: StackCollector) -> ChangeNotifier:
    return ChangeNotifier(collector)
