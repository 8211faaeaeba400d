"""Content layer — markdown files as cached, live-updated documents.

Handles route-key derivation, rendering, the concurrent content store,
and turning raw filesystem events into debounced change batches.
"""

from mdlive.content.debouncer import ChangeBatch, ChangeDebouncer, RawEvent
from mdlive.content.keys import SINGLE_FILE_KEY, path_to_key, url_to_key
from mdlive.content.renderer import Renderer
from mdlive.content.store import ContentStore, build_store, discover_documents
from mdlive.content.watcher import ContentWatcher

__all__ = [
    "SINGLE_FILE_KEY",
    "ChangeBatch",
    "ChangeDebouncer",
    "ContentStore",
    "ContentWatcher",
    "RawEvent",
    "Renderer",
    "build_store",
    "discover_documents",
    "path_to_key",
    "url_to_key",
]
