"""mdlive configuration.

MdliveConfig is the startup configuration object, frozen after creation.
Runtime changes to the served root and index go through
``mdlive.reactive.roots.LiveSite``, never through this object.
"""

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_INDEX = "index.md"


@dataclass(frozen=True, slots=True)
class MdliveConfig:
    """Configuration for an mdlive server.

    Attributes:
        root: Directory (or single markdown file) to serve and watch.
              Always resolved to an absolute path on construction.
        index: Document served for the bare root URL, relative to ``root``.
        host: Bind address.
        port: Bind port.
        throttle_ms: Debounce window for filesystem changes in milliseconds.
        shutdown_timeout: Seconds pounce waits for in-flight requests on shutdown.
        console: Start the interactive operator console (only on a TTY).
        open_browser: Open the served URL in a browser once the server starts.

    """

    root: Path = field(default_factory=Path.cwd)
    index: str = DEFAULT_INDEX
    host: str = "0.0.0.0"
    port: int = 6464
    throttle_ms: int = 100
    shutdown_timeout: float = 5.0
    console: bool = True
    open_browser: bool = False

    def __post_init__(self) -> None:
        # watchfiles reports absolute paths; keys are derived with
        # Path.relative_to(), so the root must be absolute too.
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())

    @property
    def url(self) -> str:
        """Local URL printed in the banner and opened by the console."""
        return f"http://localhost:{self.port}/"

    @property
    def throttle(self) -> float:
        """Debounce window in seconds."""
        return self.throttle_ms / 1000

    @property
    def is_single_file(self) -> bool:
        """Whether a single markdown file is being served instead of a directory."""
        return self.root.is_file()
