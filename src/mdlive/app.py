"""mdlive application — live markdown server on Chirp and Pounce.

``create_app`` builds the Chirp app that reads the content store and
holds the live-reload endpoint. ``wire_live_reload`` attaches the watcher
and invalidation pipeline to the app's lifecycle hooks. ``serve`` is the
public entry point that does both and runs the result under Pounce.
"""

import asyncio
import contextlib
import json
import signal
import sys
import time
import webbrowser
from pathlib import Path
from typing import TYPE_CHECKING, Any

from mdlive._errors import PathNotFound
from mdlive.config_loader import load_config

if TYPE_CHECKING:
    from collections.abc import Callable

    from chirp import App

    from mdlive._types import StopReason
    from mdlive.content.renderer import Renderer
    from mdlive.content.watcher import ContentWatcher
    from mdlive.observability.collector import StackCollector
    from mdlive.reactive.notifier import ChangeNotifier
    from mdlive.reactive.roots import LiveSite
    from mdlive.theme import PageShell

EVENTS_ENDPOINT = "/__mdlive/events"
STATS_ENDPOINT = "/__mdlive/stats"
REFRESH_EVENT = "mdlive:refresh"

# Events included in the stats payload.
RECENT_EVENTS = 20


def create_app(
    site: LiveSite,
    notifier: ChangeNotifier,
    shell: PageShell,
    collector: StackCollector | None = None,
    *,
    debug: bool = False,
) -> App:
    """Create the Chirp app serving *site*.

    Routes:
        ``/``                 307 to the index document
        ``/__mdlive/events``  live-reload event stream
        ``/__mdlive/stats``   JSON event-log and store summary
        ``/{path}``           rendered document, or the not-found page

    """
    from chirp import App, AppConfig, EventStream, Redirect, Response, SSEEvent

    from mdlive.content.keys import MARKDOWN_SUFFIX, url_to_key
    from mdlive.observability.log import event_record
    from mdlive.reactive.notifier import Outcome
    from mdlive.theme import _bundled_theme_path

    app = App(config=AppConfig(template_dir=_bundled_theme_path(), debug=debug))

    @app.route("/", name="mdlive:index")
    async def index():
        return Redirect(f"/{site.index_key}{MARKDOWN_SUFFIX}", status=307)

    @app.route(EVENTS_ENDPOINT, name="mdlive:events")
    async def live_events():
        async def generate():
            # Released on every exit path, including peer disconnect,
            # which cancels this generator.
            with notifier.attach() as handle:
                outcome = await notifier.wait_for_change_or_close(handle)
                if outcome is Outcome.CHANGED:
                    yield SSEEvent(data="refresh", event=REFRESH_EVENT)

        return EventStream(generate())

    @app.route(STATS_ENDPOINT, name="mdlive:stats")
    async def stats():
        state = site.snapshot()
        payload: dict[str, Any] = {
            "root": str(state.root),
            "index": state.index_key,
            "documents": len(state.store),
            "listeners": notifier.listener_count,
        }
        if collector is not None:
            payload["event_log"] = collector.log.stats()
            payload["recent"] = [event_record(e) for e in collector.log.recent(RECENT_EVENTS)]
        return Response(
            body=json.dumps(payload, indent=2, default=str),
            status=200,
            content_type="application/json",
        )

    @app.route("/{name:path}", name="mdlive:page")
    async def page(name):
        document = site.store.get(url_to_key(name))
        if document is None:
            return Response(body=shell.not_found, status=404)
        return Response(body=shell.wrap(document))

    return app


class LiveReloadDrain:
    """ASGI wrapper that closes the notifier when Pounce starts draining.

    Pounce waits for open connections before it runs lifespan shutdown,
    and every live-reload stream is an open connection. Closing the
    notifier on the draining hook lets those streams end so the drain
    completes. All other scopes pass through unchanged.

    """

    __slots__ = ("_app", "_notifier")

    def __init__(self, app: Any, notifier: ChangeNotifier) -> None:
        self._app = app
        self._notifier = notifier

    async def __call__(self, scope: Any, receive: Any, send: Any) -> None:
        if scope["type"] == "pounce.worker.draining":
            self._notifier.close()
            return
        await self._app(scope, receive, send)


def wire_live_reload(
    app: App,
    site: LiveSite,
    renderer: Renderer,
    notifier: ChangeNotifier,
    watcher: ContentWatcher,
    *,
    throttle: float,
    collector: StackCollector | None = None,
    on_stop: Callable[[StopReason], None] | None = None,
) -> None:
    """Run the watcher and invalidation pipeline for the app's lifetime.

    Flow:
        on_startup   → start the watch thread, spawn the pipeline task
        file change  → debounced batch → store update → one notify
        stop item    → pipeline returns, ``on_stop`` asks the server to stop
        on_shutdown  → close the notifier, stop the watcher, cancel the task

    """
    from mdlive.content.debouncer import ChangeDebouncer
    from mdlive.reactive.pipeline import InvalidationPipeline

    pipeline = InvalidationPipeline(site, renderer, notifier, collector)
    _task: asyncio.Task[StopReason | None] | None = None

    @app.on_startup
    async def _start_live_reload() -> None:
        nonlocal _task
        watcher.start()
        debouncer = ChangeDebouncer(throttle)
        _task = asyncio.create_task(pipeline.run(debouncer, watcher.queue, on_stop))

    @app.on_shutdown
    async def _stop_live_reload() -> None:
        notifier.close()
        await asyncio.to_thread(watcher.stop)
        if _task is not None and not _task.done():
            _task.cancel()


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def serve(root: str | Path = "./", **kwargs: object) -> None:
    """Serve *root* with live reload until interrupted or told to quit.

    Renders every document under *root*, then runs a single Pounce worker
    with the watcher and invalidation pipeline active. When the operator
    console is enabled and stdin is a terminal, commands are read from it
    on a background thread.

    Args:
        root: Directory or single markdown file to serve.
        **kwargs: Override MdliveConfig fields.

    Raises:
        PathNotFound: If *root* does not exist.
        ConfigError: If an mdlive config file is malformed.

    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    from mdlive.banner import print_banner
    from mdlive.console import OperatorConsole
    from mdlive.content.renderer import Renderer
    from mdlive.content.watcher import ContentWatcher
    from mdlive.observability import EventLog, StackCollector
    from mdlive.reactive.notifier import ChangeNotifier
    from mdlive.reactive.roots import LiveSite
    from mdlive.theme import PageShell

    path = Path(root).expanduser()
    if not path.exists():
        msg = f"{path} does not exist"
        raise PathNotFound(msg)

    config = load_config(path, **kwargs)
    t0 = time.perf_counter()

    collector = StackCollector(EventLog())
    renderer = Renderer()
    site = LiveSite(config.root, renderer, index=config.index, collector=collector)
    notifier = ChangeNotifier(collector)
    shell = PageShell.load()

    app = create_app(site, notifier, shell, collector)
    watcher = ContentWatcher(site.root, collector=collector)
    site.attach_watcher(watcher)

    server_config = ServerConfig(
        host=config.host,
        port=config.port,
        workers=1,
        shutdown_timeout=config.shutdown_timeout,
    )
    server = Server(server_config, LiveReloadDrain(app, notifier), lifecycle_collector=collector)

    def _on_stop(reason: StopReason) -> None:
        print(f"  Stopping ({reason})", file=sys.stderr)
        server.shutdown()

    wire_live_reload(
        app, site, renderer, notifier, watcher,
        throttle=config.throttle, collector=collector, on_stop=_on_stop,
    )

    @app.on_startup
    async def _install_stop_signals() -> None:
        # Pounce owns SIGINT/SIGTERM; hangup and quit go through the
        # raw event stream like any other stop request.
        loop = asyncio.get_running_loop()
        for name, reason in (("SIGHUP", "hangup"), ("SIGQUIT", "quit")):
            sig = getattr(signal, name, None)
            if sig is None:
                continue
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.add_signal_handler(sig, watcher.request_stop, reason)

    if config.open_browser:

        @app.on_startup
        async def _open_browser() -> None:
            webbrowser.open(config.url)

    load_ms = (time.perf_counter() - t0) * 1000
    console = config.console and sys.stdin.isatty()

    print_banner(
        config, len(site.store),
        index_key=site.index_key, load_ms=load_ms, console=console,
    )

    if console:
        OperatorConsole(
            site,
            url=config.url,
            on_quit=lambda: watcher.request_stop("console"),
        ).start()

    # Watcher shutdown is handled by the on_shutdown hook registered above.
    server.run()
