"""Startup banner — status output for the live server.

Prints a branded startup banner with timing, the served root and the
local URL. Detects ``NO_COLOR`` / ``TERM`` for safe fallback. The colour
constants are shared with the operator console.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mdlive.config import MdliveConfig


# ---------------------------------------------------------------------------
# ANSI helpers — respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_RED = "\033[31m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""
_BLUE = "\033[34m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""


# ---------------------------------------------------------------------------
# Clickable URL (OSC 8 hyperlink escape)
# ---------------------------------------------------------------------------

def _clickable_url(url: str) -> str:
    """Wrap *url* in an OSC 8 hyperlink escape if the terminal supports it."""
    if not _COLOR:
        return url
    # OSC 8 ;; url ST  visible text  OSC 8 ;; ST
    return f"\033]8;;{url}\033\\{_BOLD}{_CYAN}{url}{_RESET}\033]8;;\033\\"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def print_banner(
    config: MdliveConfig,
    document_count: int,
    *,
    index_key: str = "index",
    load_ms: float = 0.0,
    console: bool = False,
    warnings: list[str] | None = None,
) -> None:
    """Print the mdlive startup banner to stderr.

    Args:
        config: Resolved MdliveConfig.
        document_count: Number of documents rendered at startup.
        index_key: Route key served for the bare URL.
        load_ms: Time spent on the startup scan in milliseconds.
        console: Whether the operator console is running.
        warnings: Optional list of warning messages to display.

    """
    from mdlive import __version__

    header = f"  {_BOLD}{_CYAN}md{_RESET}{_BOLD}live{_RESET} {_DIM}v{__version__}{_RESET}"

    lines: list[str] = [
        "",
        header,
        f"  {_DIM}{'─' * 43}{_RESET}",
    ]

    docs_label = "document" if document_count == 1 else "documents"
    timing = f" {_DIM}in {load_ms:.0f}ms{_RESET}" if load_ms > 0 else ""
    lines.append(f"  {_DIM}├─{_RESET} {document_count} {docs_label} rendered{timing}")
    kind = "file" if config.is_single_file else "root"
    lines.append(f"  {_DIM}├─{_RESET} {kind}: {_DIM}{config.root}{_RESET}")
    lines.append(f"  {_DIM}├─{_RESET} index: {_DIM}{index_key}{_RESET}")
    lines.append(
        f"  {_DIM}└─{_RESET} {_GREEN}live{_RESET} "
        f"— SSE on {_DIM}/__mdlive/events{_RESET}, {config.throttle_ms}ms throttle"
    )

    lines.append("")
    lines.append(f"  {_clickable_url(config.url)}")
    lines.append("")
    lines.append(f"  {_DIM}Watching for changes...{_RESET}")
    if console:
        lines.append(f"  {_DIM}Type {_RESET}help{_DIM} for console commands.{_RESET}")

    if warnings:
        lines.append("")
        lines.extend(f"  {_YELLOW}!{_RESET} {w}" for w in warnings)

    lines.append("")

    print("\n".join(lines), file=sys.stderr)
