import threading
import urllib.error
import urllib.request
from pathlib import Path

import pytest

from venblog.build import BuildResult
from venblog.errors import ConfigParseError
from venblog.server import DevServer, _ChangeHandler, make_http_server, safe_path_from_url


class DummyEvent:
    def __init__(self, path, event_type="modified", is_directory=False, dest_path=""):
        self.src_path = path
        self.event_type = event_type
        self.is_directory = is_directory
        self.dest_path = dest_path


@pytest.fixture
def site(tmp_path):
    (tmp_path / "posts").mkdir()
    (tmp_path / "index.html").write_text("<h1>home</h1>", encoding="utf-8")
    (tmp_path / "styles.css").write_text("body{}", encoding="utf-8")
    (tmp_path / "data.xyz").write_bytes(b"\x00\x01")
    (tmp_path / "posts" / "hello.html").write_text("<p>hello</p>", encoding="utf-8")
    return tmp_path


@pytest.fixture
def serve(site):
    httpd = make_http_server(site, port=0)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    base = f"http://127.0.0.1:{httpd.server_address[1]}"

    def fetch(path):
        try:
            with urllib.request.urlopen(base + path, timeout=5) as response:
                return response.status, response.headers.get("Content-Type"), response.read()
        except urllib.error.HTTPError as exc:
            return exc.code, exc.headers.get("Content-Type"), exc.read()

    yield fetch
    httpd.shutdown()
    httpd.server_close()


def test_safe_path_from_url():
    assert safe_path_from_url("/") == "index.html"
    assert safe_path_from_url("") == "index.html"
    assert safe_path_from_url("/posts/a.html?x=1#top") == "posts/a.html"
    assert safe_path_from_url("/../../etc/passwd") == "etc/passwd"
    assert safe_path_from_url("/posts/%E4%BD%A0%E5%A5%BD.html") == "posts/你好.html"
    assert safe_path_from_url("/a\\..\\..\\b") == "b"


def test_serves_files_with_content_types(serve):
    status, ctype, body = serve("/")
    assert status == 200
    assert ctype == "text/html; charset=utf-8"
    assert body == b"<h1>home</h1>"

    status, ctype, _ = serve("/styles.css")
    assert (status, ctype) == (200, "text/css; charset=utf-8")

    status, ctype, _ = serve("/data.xyz")
    assert (status, ctype) == (200, "application/octet-stream")

    status, _, body = serve("/posts/hello.html")
    assert status == 200
    assert body == b"<p>hello</p>"


def test_missing_file_is_404(serve):
    status, _, body = serve("/nope.html")
    assert status == 404
    assert body == b"404 Not Found"


def test_directory_without_index_is_403(serve):
    status, _, _ = serve("/posts/")
    assert status == 403


def test_symlink_escaping_root_is_403(serve, site, tmp_path_factory):
    outside = tmp_path_factory.mktemp("outside") / "secret.txt"
    outside.write_text("secret", encoding="utf-8")
    (site / "leak.txt").symlink_to(outside)
    status, _, body = serve("/leak.txt")
    assert status == 403
    assert b"secret" not in body


def test_read_error_is_500(serve, monkeypatch):
    def broken(self):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(Path, "read_bytes", broken)
    status, _, body = serve("/styles.css")
    assert status == 500


def test_is_watched(tmp_path):
    server = DevServer(tmp_path)
    root = server.project_root
    assert server.is_watched(root / "posts" / "a.md")
    assert server.is_watched(root / "posts" / "B.MD")
    assert not server.is_watched(root / "posts" / "a.html")
    assert not server.is_watched(root / "posts" / "sub" / "a.md")
    assert server.is_watched(root / "styles.css")
    assert server.is_watched(root / "theme.js")
    assert not server.is_watched(root / "index.html")
    assert not server.is_watched(root / "other.css")


def test_change_handler_filters_events(tmp_path):
    server = DevServer(tmp_path)
    scheduled = []
    server.schedule_rebuild = scheduled.append
    handler = _ChangeHandler(server)
    posts = server.posts_dir

    handler.on_any_event(DummyEvent(str(posts / "a.md"), event_type="opened"))
    handler.on_any_event(DummyEvent(str(posts / "a.md"), event_type="closed"))
    handler.on_any_event(DummyEvent(str(posts), is_directory=True))
    handler.on_any_event(DummyEvent(str(posts / "a.html")))
    assert scheduled == []

    handler.on_any_event(DummyEvent(str(posts / "a.md")))
    handler.on_any_event(DummyEvent(str(posts / "a.md").encode(), event_type="created"))
    handler.on_any_event(
        DummyEvent(str(posts / "draft.tmp"), event_type="moved", dest_path=str(posts / "b.md"))
    )
    assert scheduled == [posts / "a.md", posts / "a.md", posts / "b.md"]


def test_schedule_rebuild_restarts_settle_timer(tmp_path, monkeypatch):
    timers = []

    class FakeTimer:
        def __init__(self, interval, function):
            self.interval = interval
            self.function = function
            self.cancelled = False
            self.daemon = False
            timers.append(self)

        def start(self):
            pass

        def cancel(self):
            self.cancelled = True

    monkeypatch.setattr("venblog.server.threading.Timer", FakeTimer)
    server = DevServer(tmp_path, settle_seconds=0.5)
    server.schedule_rebuild(server.posts_dir / "a.md")
    server.schedule_rebuild(server.posts_dir / "b.md")

    assert len(timers) == 2
    assert timers[0].cancelled
    assert not timers[1].cancelled
    assert timers[1].interval == 0.5

    requests = []
    server.coordinator.request = lambda: requests.append(True)
    timers[1].function()
    assert requests == [True]
    assert server._changed == set()


def test_settled_change_triggers_build(tmp_path, monkeypatch, capsys):
    builds = []

    def fake_build(root):
        builds.append(root)
        return BuildResult(posts=[], duration_ms=1.0)

    monkeypatch.setattr("venblog.server.build_site", fake_build)
    server = DevServer(tmp_path)
    server._changed.add(server.posts_dir / "a.md")
    server._on_settled()

    assert builds == [server.project_root]
    out = capsys.readouterr().out
    assert "Changed: posts/a.md" in out
    assert "Built 0 posts" in out


def test_failed_rebuild_is_reported_and_loop_survives(tmp_path, monkeypatch, capsys):
    def failing_build(root):
        raise ConfigParseError("venblog.json: invalid JSON")

    monkeypatch.setattr("venblog.server.build_site", failing_build)
    server = DevServer(tmp_path)
    assert server.coordinator.request() is True
    assert "Build failed: venblog.json: invalid JSON" in capsys.readouterr().err
    assert not server.coordinator.building


def test_dev_server_defaults(tmp_path):
    server = DevServer(tmp_path)
    assert server.port == 5173
    assert server.url == "http://127.0.0.1:5173/"
    assert DevServer(tmp_path, port=8080).url == "http://127.0.0.1:8080/"


def test_null_byte_path_is_400(serve):
    status, _, body = serve("/%00")
    assert status == 400
    assert body == b"400 Bad Request"

    status, _, _ = serve("/posts/hello.html")
    assert status == 200


class FakeObserver:
    def __init__(self):
        self.scheduled = []
        self.unscheduled = []
        self.started = False

    def schedule(self, handler, path, recursive=False):
        watch = (path, recursive)
        self.scheduled.append(watch)
        return watch

    def unschedule(self, watch):
        self.unscheduled.append(watch)

    def start(self):
        self.started = True


def test_posts_dir_created_after_start_is_watched(tmp_path, monkeypatch):
    monkeypatch.setattr("venblog.server.Observer", FakeObserver)
    server = DevServer(tmp_path)
    scheduled = []
    server.schedule_rebuild = scheduled.append
    server._start_watcher()
    observer = server._observer
    assert observer.started
    assert observer.scheduled == [(str(server.project_root), False)]

    server.posts_dir.mkdir()
    handler = server._handler
    handler.on_any_event(DummyEvent(str(server.posts_dir), event_type="created", is_directory=True))
    assert observer.scheduled[-1] == (str(server.posts_dir), False)
    assert scheduled == [server.posts_dir]

    # A second event for the same directory does not add another watch.
    handler.on_any_event(DummyEvent(str(server.posts_dir), event_type="created", is_directory=True))
    assert len(observer.scheduled) == 2


def test_posts_dir_removed_and_recreated_is_watched_again(tmp_path, monkeypatch):
    monkeypatch.setattr("venblog.server.Observer", FakeObserver)
    (tmp_path / "posts").mkdir()
    server = DevServer(tmp_path)
    server.schedule_rebuild = lambda path: None
    server._start_watcher()
    observer = server._observer
    posts_watch = (str(server.posts_dir), False)
    assert observer.scheduled == [(str(server.project_root), False), posts_watch]

    server.posts_dir.rmdir()
    server._handler.on_any_event(
        DummyEvent(str(server.posts_dir), event_type="deleted", is_directory=True)
    )
    assert observer.unscheduled == [posts_watch]

    server.posts_dir.mkdir()
    server._handler.on_any_event(
        DummyEvent(str(server.posts_dir), event_type="created", is_directory=True)
    )
    assert observer.scheduled.count(posts_watch) == 2


def test_unrelated_directory_events_are_ignored(tmp_path):
    server = DevServer(tmp_path)
    scheduled = []
    server.schedule_rebuild = scheduled.append
    handler = _ChangeHandler(server)
    (tmp_path / "drafts").mkdir()
    handler.on_any_event(DummyEvent(str(server.project_root / "drafts"), event_type="created", is_directory=True))
    assert scheduled == []
