"""Root reconfiguration — the served root, index and store as one value.

The served root, the index key and the content store built from that
root change together, so they live in one immutable :class:`ServeState`.
Every reader takes a :meth:`LiveSite.snapshot` once per operation and
works against it; a swap replaces the whole value in a single
assignment, so nobody observes a new root paired with an old store.

Reconfiguration is all-or-nothing: every check runs before the swap,
and on error the previous state stays in effect.
"""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from mdlive._errors import InvalidPath, NotASubpath, PathNotFound
from mdlive.config import DEFAULT_INDEX
from mdlive.content.keys import SINGLE_FILE_KEY, path_to_key
from mdlive.content.store import build_store

if TYPE_CHECKING:
    from mdlive._types import RouteKey
    from mdlive.content.renderer import Renderer
    from mdlive.content.store import ContentStore
    from mdlive.content.watcher import ContentWatcher
    from mdlive.observability.collector import StackCollector


@dataclass(frozen=True, slots=True)
class ServeState:
    """Everything that depends on the served root.

    Attributes:
        root: Canonical absolute directory or single file being served.
        index_key: Route key served for the bare ``/`` URL.
        store: Documents rendered from ``root``.

    """

    root: Path
    index_key: RouteKey
    store: ContentStore

    @property
    def is_single_file(self) -> bool:
        return self.root.is_file()


def _canonical(path: Path) -> Path:
    if not path.exists():
        msg = f"{path} does not exist"
        raise PathNotFound(msg)
    return path.resolve()


def _index_key(root: Path, index: Path | str) -> RouteKey:
    """Key for *index*, resolved against *root* (its parent for a single file).

    Raises:
        PathNotFound: If the file does not exist.
        NotASubpath: If it is not under *root*.

    """
    path = Path(index).expanduser()
    if not path.is_absolute():
        path = (root.parent if root.is_file() else root) / path
    path = _canonical(path)
    try:
        return path_to_key(root, path)
    except InvalidPath as exc:
        msg = f"{path} is not under {root}"
        raise NotASubpath(msg) from exc


def _initial_index_key(root: Path, index: str) -> RouteKey:
    """Validated index key for a freshly scanned root.

    A missing index falls back to the default document's key so the
    server still starts; an index outside the root is an error.

    """
    if root.is_file():
        return SINGLE_FILE_KEY
    try:
        return _index_key(root, index)
    except PathNotFound:
        if index != DEFAULT_INDEX:
            print(f"  Index {index} not found, using {DEFAULT_INDEX}", file=sys.stderr)
        return path_to_key(root, root / DEFAULT_INDEX)


class LiveSite:
    """Owner of the current :class:`ServeState`.

    Args:
        root: Initial root. Must exist.
        renderer: Renderer used for full scans.
        index: Index document relative to ``root``.
        watcher: Watch backend to re-point on :meth:`set_root`.
        collector: Optional observability sink.

    Raises:
        PathNotFound: If ``root`` does not exist.
        NotASubpath: If ``index`` resolves outside ``root``.

    """

    def __init__(
        self,
        root: Path,
        renderer: Renderer,
        *,
        index: str = DEFAULT_INDEX,
        watcher: ContentWatcher | None = None,
        collector: StackCollector | None = None,
    ) -> None:
        self._renderer = renderer
        self._watcher = watcher
        self._collector = collector
        self._lock = threading.Lock()
        root = _canonical(Path(root))
        self._state = ServeState(
            root=root,
            index_key=_initial_index_key(root, index),
            store=build_store(root, renderer, collector),
        )

    def snapshot(self) -> ServeState:
        """The current state. Never torn; hold on to it for one operation."""
        return self._state

    @property
    def root(self) -> Path:
        return self._state.root

    @property
    def index_key(self) -> RouteKey:
        return self._state.index_key

    @property
    def store(self) -> ContentStore:
        return self._state.store

    def attach_watcher(self, watcher: ContentWatcher) -> None:
        self._watcher = watcher

    def set_root(self, new_root: Path | str) -> Path:
        """Serve *new_root* instead of the current root.

        Scans the new root into a fresh store, then swaps root, index and
        store in one step and re-points the watcher. The index resets to
        the new root's ``index.md`` (or ``index`` for a single file).

        Returns:
            The canonical new root.

        Raises:
            PathNotFound: If *new_root* does not exist.

        """
        root = _canonical(Path(new_root).expanduser())
        store = build_store(root, self._renderer, self._collector)
        state = ServeState(root=root, index_key=_initial_index_key(root, DEFAULT_INDEX), store=store)
        with self._lock:
            self._state = state
            if self._watcher is not None:
                self._watcher.set_paths(root)
        if self._collector is not None:
            self._collector.record_root_change("root", str(root))
        return root

    def set_index(self, new_index: Path | str) -> RouteKey:
        """Serve *new_index* for the bare ``/`` URL.

        Relative paths are resolved against the current root.

        Returns:
            The new index key.

        Raises:
            PathNotFound: If the file does not exist.
            NotASubpath: If it is not under the current root.

        """
        with self._lock:
            state = self._state
            key = _index_key(state.root, new_index)
            self._state = ServeState(root=state.root, index_key=key, store=state.store)
        if self._collector is not None:
            self._collector.record_root_change("index", key)
        return key
