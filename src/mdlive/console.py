"""Operator console — read commands from the terminal while serving.

The command set is closed and small, so each command is a frozen
dataclass and :func:`execute` dispatches with ``match``. Parsing and
execution are separate so both can be tested without a terminal.

Commands::

    help | h              show help
    path | p              show the served root
    index | i             show the index document
    open | o              open the served URL in a browser
    url | u               show the served URL
    clear | c             clear the screen
    quit | q              stop the server
    set path P | sp P     serve a different root (resets the index)
    set index P | si P    serve P for the bare URL
"""

from __future__ import annotations

import sys
import threading
import webbrowser
from dataclasses import dataclass
from typing import TYPE_CHECKING, TextIO

from mdlive._errors import PathError
from mdlive.banner import _BLUE, _GREEN, _RED, _RESET, _YELLOW

if TYPE_CHECKING:
    from collections.abc import Callable

    from mdlive.reactive.roots import LiveSite

PROMPT = ">> "


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Help:
    pass


@dataclass(frozen=True, slots=True)
class ShowPath:
    pass


@dataclass(frozen=True, slots=True)
class ShowIndex:
    pass


@dataclass(frozen=True, slots=True)
class OpenBrowser:
    pass


@dataclass(frozen=True, slots=True)
class ShowUrl:
    pass


@dataclass(frozen=True, slots=True)
class Clear:
    pass


@dataclass(frozen=True, slots=True)
class Quit:
    pass


@dataclass(frozen=True, slots=True)
class SetRoot:
    path: str


@dataclass(frozen=True, slots=True)
class SetIndex:
    path: str


@dataclass(frozen=True, slots=True)
class Unknown:
    """Input that is not a command at all."""

    text: str


@dataclass(frozen=True, slots=True)
class Invalid:
    """A recognised command with a bad argument."""

    reason: str


type Command = (
    Help | ShowPath | ShowIndex | OpenBrowser | ShowUrl | Clear | Quit
    | SetRoot | SetIndex | Unknown | Invalid
)

_SIMPLE: dict[str, Command] = {
    "help": Help(), "h": Help(),
    "path": ShowPath(), "p": ShowPath(),
    "index": ShowIndex(), "i": ShowIndex(),
    "open": OpenBrowser(), "o": OpenBrowser(),
    "url": ShowUrl(), "u": ShowUrl(),
    "clear": Clear(), "c": Clear(),
    "quit": Quit(), "q": Quit(),
}

HELP_TEXT = f"""\
enter {_BLUE}[s]et [p]ath {{PATH}}{_RESET} to set a new path to serve (resets index)
enter {_BLUE}[s]et [i]ndex {{PATH}}{_RESET} to set a new index document
enter {_BLUE}[h]elp{_RESET} to show help (this text)
enter {_BLUE}[p]ath{_RESET} to show path
enter {_BLUE}[i]ndex{_RESET} to show index
enter {_BLUE}[o]pen{_RESET} to open client in browser
enter {_BLUE}[u]rl{_RESET} to show server url
enter {_BLUE}[c]lear{_RESET} clear screen
enter {_BLUE}[q]uit{_RESET} to quit"""


def _set_command(kind: str, path: str) -> Command:
    path = path.strip()
    if not path:
        return Invalid("inputted path was empty")
    return SetRoot(path) if kind == "path" else SetIndex(path)


def parse_command(line: str) -> Command | None:
    """Parse one console line. Returns None for a blank line."""
    text = line.strip()
    if not text:
        return None
    if text in _SIMPLE:
        return _SIMPLE[text]

    head, _, rest = text.partition(" ")
    if head == "set":
        kind, _, path = rest.strip().partition(" ")
        if kind not in ("path", "index"):
            return Invalid("expect 'path' or 'index' after set")
        return _set_command(kind, path)
    if head == "sp":
        return _set_command("path", rest)
    if head == "si":
        return _set_command("index", rest)
    return Unknown(text)


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def execute(
    command: Command,
    site: LiveSite,
    *,
    url: str,
    out: TextIO | None = None,
    open_url: Callable[[str], bool] = webbrowser.open,
) -> bool:
    """Run *command* against *site*. Returns True when the console should quit.

    Reconfiguration errors are printed, never raised; the previous root
    and index stay in effect.

    """
    out = out if out is not None else sys.stdout

    def say(text: str) -> None:
        print(text, file=out)

    match command:
        case Help():
            say(HELP_TEXT)
        case ShowPath():
            say(f"{_BLUE}{site.root}{_RESET}")
        case ShowIndex():
            say(f"{_BLUE}{site.index_key}{_RESET}")
        case ShowUrl():
            say(f"{_BLUE}{url}{_RESET}")
        case OpenBrowser():
            if open_url(url):
                say(f"{_GREEN}Opening browser...{_RESET}")
            else:
                say(f"{_YELLOW}Unable to open browser{_RESET}")
        case Clear():
            out.write("\x1b[2J\x1b[1;1H")
            out.flush()
        case Quit():
            return True
        case SetRoot(path=path):
            try:
                root = site.set_root(path)
            except PathError as exc:
                say(f"{_RED}Incorrect input: {exc}{_RESET}")
            else:
                say(f"{_GREEN}Serving {root}{_RESET}")
        case SetIndex(path=path):
            try:
                key = site.set_index(path)
            except PathError as exc:
                say(f"{_RED}Incorrect input: {exc}{_RESET}")
            else:
                say(f"{_GREEN}Index is now {key}{_RESET}")
        case Unknown(text=text):
            say(f'{_YELLOW}Unknown input: "{text}"{_RESET}')
        case Invalid(reason=reason):
            say(f'{_YELLOW}Incorrect input: "{reason}"{_RESET}')
    return False


class OperatorConsole:
    """Interactive read loop on a daemon thread.

    Args:
        site: Live site the commands act on.
        url: Served URL, for ``url`` and ``open``.
        on_quit: Called once when the operator quits or stdin closes.
        read_line: Line reader, ``input`` by default.
        out: Output stream, stdout by default.

    """

    def __init__(
        self,
        site: LiveSite,
        *,
        url: str,
        on_quit: Callable[[], None],
        read_line: Callable[[str], str] = input,
        out: TextIO | None = None,
    ) -> None:
        self._site = site
        self._url = url
        self._on_quit = on_quit
        self._read_line = read_line
        self._out = out
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start the read loop in a background thread."""
        try:
            # Line editing and in-memory history for input().
            import readline  # noqa: F401
        except ImportError:
            pass
        self._thread = threading.Thread(target=self.run, name="mdlive-console", daemon=True)
        self._thread.start()

    def run(self) -> None:
        """Read and execute commands until quit or end of input."""
        while True:
            try:
                line = self._read_line(PROMPT)
            except (EOFError, KeyboardInterrupt):
                break
            command = parse_command(line)
            if command is None:
                continue
            if execute(command, self._site, url=self._url, out=self._out):
                break
        self._on_quit()
