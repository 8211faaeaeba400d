"""Markdown renderer — source text to HTML body via Patitas.

Rendering is pure: it never touches the content store. The invalidation
pipeline calls it once per changed file per batch, and the startup scan
calls it once per discovered document.

Thread Safety:
    Patitas keeps its parse configuration in a ContextVar, so one
    ``Renderer`` may be shared by the event loop and worker threads.

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from patitas import (
    HtmlRenderer,
    Markdown,
    create_default_registry,
    create_default_role_registry,
)

from mdlive._errors import DecodeError, RenderError

if TYPE_CHECKING:
    from pathlib import Path

    from patitas import Heading
    from patitas.renderers.html import RenderContext
    from patitas.stringbuilder import StringBuilder

    from mdlive._types import RenderedDocument

# Tables, strikethrough, task lists and footnotes: the common GitHub-style set.
DEFAULT_PLUGINS = ("table", "strikethrough", "task_lists", "footnotes")


def _strip_frontmatter(source: str) -> str:
    """Strip YAML frontmatter from markdown source, returning the body.

    Frontmatter is delimited by ``---`` on its own line at the start of the file.
    If no valid frontmatter is found, returns the full source unchanged.

    """
    if not source.startswith("---\n"):
        return source
    end = source.find("\n---", 3)
    if end == -1:
        return source
    return source[end + 4:].lstrip("\n")


class _DocumentHtml(HtmlRenderer):
    """Patitas HTML output with plain headings.

    Documents are served one per page with no table of contents, so
    headings carry no generated ``id`` anchors.
    """

    __slots__ = ()

    def _render_heading(self, heading: Heading, sb: StringBuilder, ctx: RenderContext) -> None:
        sb.append(f"<h{heading.level}>")
        self._render_inlines(heading.children, sb, ctx)
        sb.append(f"</h{heading.level}>\n")


class Renderer:
    """Deterministic markdown-to-HTML renderer.

    Args:
        plugins: Patitas plugin names to enable.

    """

    __slots__ = ("_directives", "_md", "_roles")

    def __init__(self, plugins: tuple[str, ...] = DEFAULT_PLUGINS) -> None:
        self._directives = create_default_registry()
        self._roles = create_default_role_registry()
        self._md = Markdown(
            plugins=list(plugins),
            directive_registry=self._directives,
            role_registry=self._roles,
        )

    def render(self, source: str | bytes) -> RenderedDocument:
        """Render markdown source to an HTML body.

        Raises:
            DecodeError: If *source* is bytes that are not valid UTF-8.
            RenderError: If Patitas fails on the decoded text.

        """
        if isinstance(source, bytes):
            try:
                source = source.decode("utf-8")
            except UnicodeDecodeError as exc:
                msg = f"invalid UTF-8 at byte {exc.start}"
                raise DecodeError(msg) from exc

        try:
            return self._to_html(_strip_frontmatter(source))
        except Exception as exc:
            msg = f"{type(exc).__name__}: {exc}"
            raise RenderError(msg) from exc

    def _to_html(self, text: str) -> RenderedDocument:
        doc = self._md.parse(text)
        html = _DocumentHtml(
            source=text,
            directive_registry=self._directives,
            role_registry=self._roles,
        )
        return html.render(doc)

    def render_file(self, path: Path) -> RenderedDocument:
        """Read *path* and render its current contents.

        Raises:
            OSError: If the file cannot be read.
            DecodeError: If the file is not valid UTF-8.
            RenderError: If rendering fails.

        """
        return self.render(path.read_bytes())
