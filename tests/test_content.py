from pathlib import Path

import pytest

from venblog.content import (
    Post,
    PostBuilder,
    PostSourceLoader,
    locale_sort_key,
    post_from_meta,
    slug_from_filename,
)
from venblog.errors import PostRenderError, SourceScanError


def test_slug_from_filename():
    assert slug_from_filename("hello.md") == "hello"
    assert slug_from_filename("Notes.MD") == "Notes"
    assert slug_from_filename("你好 世界.md") == "你好 世界"


def test_post_from_meta_defaults():
    post = post_from_meta("draft", {}, "body")
    assert post == Post(slug="draft", title="draft", date="", tags=(), reading_time=1)

    post = post_from_meta("x", {"title": "X", "date": "someday", "tags": ["a", "a"]}, "")
    assert post.title == "X"
    assert post.date == ""
    assert post.tags == ("a",)


def test_post_to_dict():
    post = Post(slug="s", title="T", date="2025-01-01", tags=("a",), reading_time=3)
    assert post.to_dict() == {
        "slug": "s",
        "title": "T",
        "date": "2025-01-01",
        "tags": ["a"],
        "readingTime": 3,
    }


def test_locale_sort_key_is_case_insensitive():
    names = ["b.md", "A.md", "c.md", "a.md"]
    assert sorted(names, key=locale_sort_key) == ["A.md", "a.md", "b.md", "c.md"]


def test_loader_lists_markdown_files_only(tmp_path):
    posts = tmp_path / "posts"
    posts.mkdir()
    for name in ["b.md", "A.md", "notes.txt", "b.html", "C.MD"]:
        (posts / name).write_text("x", encoding="utf-8")
    (posts / "dir.md").mkdir()

    loader = PostSourceLoader(posts)
    assert loader.exists()
    assert [p.name for p in loader.iter_files()] == ["A.md", "b.md", "C.MD"]


def test_loader_wraps_listing_errors(tmp_path, monkeypatch):
    posts = tmp_path / "posts"
    posts.mkdir()

    def denied(self):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(Path, "iterdir", denied)
    with pytest.raises(SourceScanError, match="Permission denied"):
        PostSourceLoader(posts).iter_files()


def test_builder_renders_post(tmp_path):
    source = tmp_path / "hello.md"
    source.write_text(
        "---\ntitle: Hello\ndate: 2025-07-02\ntags: [a, b]\nlayout: wide\n---\n# Hello\n\nBody.",
        encoding="utf-8",
    )
    rendered = PostBuilder().build(source)
    assert rendered.post == Post(
        slug="hello", title="Hello", date="2025-07-02", tags=("a", "b"), reading_time=1
    )
    assert rendered.body_html.strip() == "<p>Body.</p>"
    assert rendered.meta["layout"] == "wide"
    assert rendered.output_path == tmp_path / "hello.html"


def test_builder_reports_undecodable_file(tmp_path):
    source = tmp_path / "bad.md"
    source.write_bytes(b"\xff\xfe\xfa broken")
    with pytest.raises(PostRenderError) as excinfo:
        PostBuilder().build(source)
    assert excinfo.value.source_path == source


def test_builder_wraps_renderer_failures(tmp_path):
    class ExplodingRenderer:
        def render(self, content):
            raise RuntimeError("kaboom")

    source = tmp_path / "x.md"
    source.write_text("text", encoding="utf-8")
    with pytest.raises(PostRenderError, match="kaboom"):
        PostBuilder(ExplodingRenderer()).build(source)
