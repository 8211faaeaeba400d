"""Reactive layer — change propagation and runtime reconfiguration.

Connects debounced file changes to the content store and to live-reload
listeners, and owns the served root and index.
"""

from mdlive.reactive.notifier import ChangeNotifier, ListenerHandle, Outcome
from mdlive.reactive.pipeline import BatchResult, InvalidationPipeline
from mdlive.reactive.roots import LiveSite, ServeState

__all__ = [
    "BatchResult",
    "ChangeNotifier",
    "InvalidationPipeline",
    "ListenerHandle",
    "LiveSite",
    "Outcome",
    "ServeState",
]
