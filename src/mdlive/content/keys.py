"""Route keys — the one naming rule shared by the filesystem and URL sides.

A document at ``<root>/guide/intro.md`` is stored under the key
``guide/intro`` and served at ``/guide/intro.md`` (or ``/guide/intro``).
Both derivations strip exactly one leading ``/`` and exactly one trailing
``.md``; they must stay bit-exact or documents become unreachable.

Keys are case-sensitive and always use forward slashes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mdlive._errors import InvalidPath

if TYPE_CHECKING:
    from pathlib import Path

    from mdlive._types import RouteKey

MARKDOWN_SUFFIX = ".md"

# Key used when a single file (rather than a directory) is being served.
SINGLE_FILE_KEY: RouteKey = "index"


def _strip_key(text: str) -> str:
    text = text.removeprefix("/")
    return text.removesuffix(MARKDOWN_SUFFIX)


def url_to_key(url: str) -> RouteKey:
    """Map a request path to a route key. Never fails.

    >>> url_to_key("/guide/intro.md")
    'guide/intro'
    >>> url_to_key("notes.txt")
    'notes.txt'

    """
    return _strip_key(url)


def path_to_key(root: Path, path: Path) -> RouteKey:
    """Map a filesystem path under *root* to its route key.

    When *path* equals *root* (single-file mode) the key is ``index``.

    Raises:
        InvalidPath: If *path* is not under *root*, or its relative form
            cannot be represented as UTF-8 text.

    """
    if path == root:
        return SINGLE_FILE_KEY
    try:
        rel = path.relative_to(root)
    except ValueError as exc:
        msg = f"{path} is not under {root}"
        raise InvalidPath(msg) from exc

    text = rel.as_posix()
    try:
        # Undecodable filename bytes surface as lone surrogates.
        text.encode("utf-8")
    except UnicodeEncodeError as exc:
        msg = f"{path!r} is not valid UTF-8"
        raise InvalidPath(msg) from exc
    return _strip_key(text)


def is_markdown(path: Path) -> bool:
    """Whether *path* names a markdown source file."""
    return path.name.endswith(MARKDOWN_SUFFIX)
