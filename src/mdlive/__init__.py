"""mdlive — serve a directory of markdown as live-reloading HTML.

Every document under the served root is rendered once at startup and
kept in a concurrent in-memory store. Edits on disk are debounced,
re-rendered, and announced to every open browser tab, which reloads.

Quick start::

    import mdlive

    mdlive.serve("docs/")

Or from a shell::

    mdlive docs/ --port 8080

Built on:

    pounce      ASGI server       (serves the app)
    chirp       Web framework     (routes and live-reload stream)
    patitas     Markdown parser   (renders documents)
    watchfiles  File watcher      (reports changes)

"""

# PEP 703: Declare this module as free-threading safe
_Py_mod_gil = 0

__version__ = "0.1.0"
__all__ = [
    "MdliveConfig",
    "__version__",
    "serve",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import mdlive`` fast while providing a clean top-level API.
    """
    if name == "MdliveConfig":
        from mdlive.config import MdliveConfig

        return MdliveConfig

    if name == "serve":
        from mdlive.app import serve

        return serve

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
