"""Page shell — the static HTML wrapped around every rendered document.

The bundled ``default/shell.html`` is split once at the ``{{md}}`` marker
into a before and after part. Wrapping a document is plain string
concatenation; no template language is involved.

Thread Safety:
    ``PageShell`` is immutable after construction. Safe for free-threading.

"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from mdlive._errors import ConfigError

CONTENT_MARKER = "{{md}}"

NOT_FOUND_BODY = "<h1>Error 404: Page not found</h1>"


def _bundled_theme_path() -> Path:
    """Return the absolute path to the bundled default theme."""
    return Path(__file__).parent / "default"


@dataclass(frozen=True, slots=True)
class PageShell:
    """Static markup placed before and after a rendered document."""

    before: str
    after: str

    @classmethod
    def from_text(cls, text: str) -> PageShell:
        """Split *text* at the content marker.

        Raises:
            ConfigError: If the marker is missing.

        """
        before, marker, after = text.partition(CONTENT_MARKER)
        if not marker:
            msg = f"page shell has no {CONTENT_MARKER} marker"
            raise ConfigError(msg)
        return cls(before=before, after=after)

    @classmethod
    def load(cls, path: Path | None = None) -> PageShell:
        """Load a shell file, defaulting to the bundled one."""
        path = path if path is not None else _bundled_theme_path() / "shell.html"
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"Failed to read page shell {path}: {exc}"
            raise ConfigError(msg) from exc
        return cls.from_text(text)

    def wrap(self, body: str) -> str:
        return self.before + body + self.after

    @property
    def not_found(self) -> str:
        """The fixed not-found page."""
        return self.wrap(NOT_FOUND_BODY)
