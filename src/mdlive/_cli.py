"""mdlive CLI — serve a markdown directory with live reload.

Entry point for the ``mdlive`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from mdlive._errors import MdliveError


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the mdlive CLI."""
    parser = argparse.ArgumentParser(
        prog="mdlive",
        description="Serve a directory of markdown files as live-reloading HTML.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    parser.add_argument("root", nargs="?", default="./", help="Directory or markdown file to serve")
    parser.add_argument(
        "-i", "--index", default=None, help="Index document, relative to root (default: index.md)",
    )
    parser.add_argument(
        "-a", "--addr", type=_parse_addr, default=None,
        help="Address to bind as host:port (default: 0.0.0.0:6464)",
    )
    parser.add_argument("-p", "--port", type=int, default=None, help="Bind port (overrides --addr)")
    parser.add_argument(
        "--throttle-ms", type=int, default=None, help="Debounce window for file changes",
    )
    parser.add_argument(
        "--no-console", action="store_true", help="Do not read commands from the terminal",
    )
    parser.add_argument("--open", action="store_true", help="Open the served URL in a browser")

    return parser


def _parse_addr(value: str) -> tuple[str, int]:
    """Parse ``host:port`` (``[::1]:port`` for IPv6)."""
    host, sep, port = value.rpartition(":")
    if not sep or not host:
        msg = f"expected host:port, got {value!r}"
        raise argparse.ArgumentTypeError(msg)
    try:
        port_number = int(port)
    except ValueError:
        msg = f"invalid port in {value!r}"
        raise argparse.ArgumentTypeError(msg) from None
    return host.strip("[]"), port_number


def _get_version() -> str:
    """Get the package version."""
    from mdlive import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    root = Path(args.root).expanduser()
    if not root.exists():
        print(f"mdlive: error: {root} does not exist", file=sys.stderr)
        sys.exit(2)

    host, port = args.addr if args.addr is not None else (None, None)
    if args.port is not None:
        port = args.port

    from mdlive.app import serve

    try:
        serve(
            root=root,
            index=args.index,
            host=host,
            port=port,
            throttle_ms=args.throttle_ms,
            console=False if args.no_console else None,
            open_browser=True if args.open else None,
        )
    except MdliveError as exc:
        print(f"mdlive: error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
