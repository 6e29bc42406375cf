"""Development server for venblog.

Serves the project directory as a static site and rebuilds it when sources
change. There is no browser push: open pages pick up changes on reload.

- Resolves request paths inside the site root only; anything escaping it is refused.
- Directories serve their index.html (403 when there is none); missing files are 404.
- Watches ``posts/*.md`` (also when ``posts/`` appears after startup) and the global
  assets, waits for writes to settle, then hands the rebuild to a RebuildCoordinator.

Key classes:
- StaticFileHandler: HTTP request handler with a fixed content-type table.
- DevServer: Initial build, HTTP thread, file watcher and rebuild coordination.
- _ChangeHandler: File system event handler feeding DevServer.
"""

from __future__ import annotations

import functools
import io
import posixpath
import threading
import time
import webbrowser
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import unquote, urlsplit

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from . import log
from .build import INDEX_FILENAME, POSTS_DIRNAME, build_site
from .coordinator import RebuildCoordinator

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5173
SETTLE_SECONDS = 0.2

WATCHED_ASSETS = ("styles.css", "main.js", "post.js", "theme.js")
REBUILD_EVENTS = {
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MOVED,
}

CONTENT_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "text/javascript; charset=utf-8",
    ".json": "application/json; charset=utf-8",
    ".md": "text/markdown; charset=utf-8",
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".woff2": "font/woff2",
    ".woff": "font/woff",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def safe_path_from_url(url_path: str) -> str:
    """Turn a request target into a path relative to the site root.

    Query strings and fragments are dropped, backslashes become slashes and
    ``..`` segments are collapsed so the result never starts above the root.

    Examples:
        >>> safe_path_from_url("/posts/a.html?x=1")
        'posts/a.html'
        >>> safe_path_from_url("/../../etc/passwd")
        'etc/passwd'
        >>> safe_path_from_url("/")
        'index.html'
    """
    path = unquote(urlsplit(url_path).path).replace("\\", "/")
    normalized = posixpath.normpath("/" + path.lstrip("/"))
    if normalized in ("/", "."):
        return INDEX_FILENAME
    return normalized.lstrip("/")


class StaticFileHandler(SimpleHTTPRequestHandler):
    """Serves files from ``directory`` with the rules of the dev server."""

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - send_head never delegates
        return self._send_text(HTTPStatus.FORBIDDEN, "403 Forbidden")

    def _send_text(self, status: HTTPStatus, message: str):
        encoded = message.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        return io.BytesIO(encoded)

    def _send_file(self, path: Path, content_type: str):
        data = path.read_bytes()
        self.send_response(HTTPStatus.OK)
        self.send_header("Content-type", content_type)
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        return io.BytesIO(data)

    def send_head(self):
        try:
            relative = safe_path_from_url(self.path)
            if "\x00" in relative:
                return self._send_text(HTTPStatus.BAD_REQUEST, "400 Bad Request")
            root = Path(self.directory).resolve()
            target = (root / relative).resolve()
            if target != root and root not in target.parents:
                return self._send_text(HTTPStatus.FORBIDDEN, "403 Forbidden")
            if not target.exists():
                return self._send_text(HTTPStatus.NOT_FOUND, "404 Not Found")
            if target.is_dir():
                index = target / INDEX_FILENAME
                if not index.is_file():
                    return self._send_text(HTTPStatus.FORBIDDEN, "403 Forbidden")
                return self._send_file(index, CONTENT_TYPES[".html"])
            content_type = CONTENT_TYPES.get(target.suffix.lower(), DEFAULT_CONTENT_TYPE)
            return self._send_file(target, content_type)
        except ValueError:
            # Paths the OS cannot represent, such as an embedded NUL.
            return self._send_text(HTTPStatus.BAD_REQUEST, "400 Bad Request")
        except OSError:
            return self._send_text(HTTPStatus.INTERNAL_SERVER_ERROR, "500 Server Error")


def make_http_server(
    root: Path, port: int = DEFAULT_PORT, host: str = DEFAULT_HOST
) -> ThreadingHTTPServer:
    """Create (bind) the static file server for ``root``."""
    handler = functools.partial(StaticFileHandler, directory=str(root))
    return ThreadingHTTPServer((host, port), handler)


class DevServer:
    """Development server with rebuild-on-change.

    Attributes:
        project_root: Root directory of the project (also the served root).
        port: HTTP port.
        open_browser: Whether to open the site in a browser once serving.
        coordinator: Serialises and coalesces rebuilds.
        settle_seconds: Quiet period after the last change before rebuilding.
    """

    def __init__(
        self,
        project_root: Path,
        port: int | None = None,
        open_browser: bool = True,
        settle_seconds: float = SETTLE_SECONDS,
    ):
        """Initialize the development server.

        Args:
            project_root: Root directory of the project.
            port: Optional override for the HTTP port.
            open_browser: Open the default browser after starting.
            settle_seconds: Quiescence delay applied to change events.
        """
        self.project_root = project_root.resolve()
        self.port = int(port or DEFAULT_PORT)
        self.open_browser = open_browser
        self.settle_seconds = settle_seconds
        self.posts_dir = self.project_root / POSTS_DIRNAME
        self.coordinator = RebuildCoordinator(self.build, on_error=self._report_error)
        self._observer: Observer | None = None
        self._handler: _ChangeHandler | None = None
        self._posts_watch = None
        self._httpd: ThreadingHTTPServer | None = None
        self._timer: threading.Timer | None = None
        self._timer_lock = threading.Lock()
        self._changed: set[Path] = set()

    @property
    def url(self) -> str:
        return f"http://{DEFAULT_HOST}:{self.port}/"

    def start(self, initial_build: bool = True) -> None:  # pragma: no cover - integration path
        if initial_build:
            self.build()
        self._httpd = make_http_server(self.project_root, self.port)
        threading.Thread(target=self._httpd.serve_forever, daemon=True).start()
        log.info(f"Serving {self.project_root} at {self.url}")
        if self.open_browser:
            self._open_browser()
        self._start_watcher()
        log.blank()
        log.info("Watching for changes... press Ctrl+C to stop")
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        with self._timer_lock:
            if self._timer:
                self._timer.cancel()
                self._timer = None
        if self._observer:
            self._observer.stop()
            self._observer.join()
            self._observer = None
            self._posts_watch = None
        if self._httpd:
            self._httpd.shutdown()
            self._httpd.server_close()
            self._httpd = None

    def build(self) -> None:
        """Run one full build and report it."""
        result = build_site(self.project_root)
        log.success(f"Built {len(result.posts)} posts in {round(result.duration_ms)}ms")

    def _report_error(self, exc: Exception) -> None:
        log.error(f"Build failed: {exc}")

    def _open_browser(self) -> None:
        try:
            webbrowser.open(self.url)
        except webbrowser.Error as exc:
            log.dim(f"Could not open a browser: {exc}")

    def _start_watcher(self) -> None:
        self._handler = _ChangeHandler(self)
        observer = Observer()
        observer.schedule(self._handler, str(self.project_root), recursive=False)
        self._observer = observer
        self.watch_posts_dir()
        observer.start()

    def watch_posts_dir(self) -> bool:
        """Start watching ``posts/`` if it exists and is not watched yet.

        Called at startup and again when the root watch sees ``posts/`` appear.
        """
        with self._timer_lock:
            if self._observer is None or self._posts_watch is not None:
                return False
            if not self.posts_dir.is_dir():
                return False
            self._posts_watch = self._observer.schedule(
                self._handler, str(self.posts_dir), recursive=False
            )
        log.dim(f"Watching {POSTS_DIRNAME}/")
        return True

    def unwatch_posts_dir(self) -> None:
        """Drop the ``posts/`` watch after the directory went away."""
        with self._timer_lock:
            watch, self._posts_watch = self._posts_watch, None
            if watch is None or self._observer is None:
                return
            try:
                self._observer.unschedule(watch)
            except KeyError:
                # The emitter already removed itself.
                pass

    def is_watched(self, path: Path) -> bool:
        """Return True for posts sources and the global stylesheet/scripts."""
        if path.parent == self.posts_dir:
            return path.suffix.lower() == ".md"
        return path.parent == self.project_root and path.name in WATCHED_ASSETS

    def schedule_rebuild(self, path: Path) -> None:
        """Record a change and (re)start the settle timer."""
        with self._timer_lock:
            self._changed.add(path)
            if self._timer:
                self._timer.cancel()
            self._timer = threading.Timer(self.settle_seconds, self._on_settled)
            self._timer.daemon = True
            self._timer.start()

    def _on_settled(self) -> None:
        with self._timer_lock:
            changed = sorted(self._changed)
            self._changed.clear()
            self._timer = None
        for path in changed:
            log.info(f"Changed: {path.relative_to(self.project_root).as_posix()}")
        self.coordinator.request()


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer):
        super().__init__()
        self.server = server

    def on_any_event(self, event):
        if event.event_type not in REBUILD_EVENTS:
            return
        candidates = [event.src_path, getattr(event, "dest_path", "")]
        for raw in candidates:
            if not raw:
                continue
            path = Path(raw.decode() if isinstance(raw, bytes) else raw)
            if event.is_directory:
                if path != self.server.posts_dir or event.event_type == EVENT_TYPE_MODIFIED:
                    continue
                if path.is_dir():
                    self.server.watch_posts_dir()
                else:
                    self.server.unwatch_posts_dir()
                self.server.schedule_rebuild(path)
                return
            if self.server.is_watched(path):
                self.server.schedule_rebuild(path)
                return
