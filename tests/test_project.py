import click
import pytest

from venblog import deploy as deploy_mod
from venblog.project import clean, collect_posts, is_blog, new_post, render_post_source, split_tags


def test_split_tags():
    assert split_tags("a, b ,,c") == ["a", "b", "c"]
    assert split_tags("") == []
    assert split_tags(None) == []


def test_render_post_source_round_trips_through_build(tmp_path):
    text = render_post_source("Hello", "2025-07-02", [])
    assert "tags: []" in text
    (tmp_path / "posts").mkdir()
    (tmp_path / "posts" / "Hello.md").write_text(text, encoding="utf-8")
    posts = collect_posts(tmp_path)
    assert posts[0].title == "Hello"
    assert posts[0].tags == ()


def test_new_post_rejects_bad_titles(tmp_path):
    with pytest.raises(click.ClickException):
        new_post(tmp_path, "   ", [])
    with pytest.raises(click.ClickException):
        new_post(tmp_path, "a/b", [])


def test_new_post_defaults_to_today(tmp_path, monkeypatch):
    monkeypatch.setattr("venblog.project.today_str", lambda: "2026-01-02")
    path = new_post(tmp_path, "Dated", ["x"])
    assert "date: 2026-01-02" in path.read_text(encoding="utf-8")


def test_collect_posts_without_dir(tmp_path):
    assert collect_posts(tmp_path) is None


def test_clean_only_removes_generated_files(tmp_path):
    posts = tmp_path / "posts"
    posts.mkdir()
    (posts / "a.md").write_text("x", encoding="utf-8")
    (posts / "a.html").write_text("x", encoding="utf-8")
    (tmp_path / "index.html").write_text("x", encoding="utf-8")
    (tmp_path / "styles.css").write_text("x", encoding="utf-8")

    assert clean(tmp_path) == ["posts/a.html", "index.html"]
    assert (posts / "a.md").exists()
    assert (tmp_path / "styles.css").exists()
    assert clean(tmp_path) == []


def test_is_blog(tmp_path):
    assert not is_blog(tmp_path)
    (tmp_path / "posts").mkdir()
    assert not is_blog(tmp_path)
    (tmp_path / "venblog.json").write_text("{}", encoding="utf-8")
    assert is_blog(tmp_path)


def test_deploy_with_nothing_to_commit(tmp_path, monkeypatch):
    calls = []

    def fake_git(root, *args):
        calls.append(args)
        return "origin\n" if args[0] == "remote" else ""

    built = []
    monkeypatch.setattr("venblog.deploy.git", fake_git)
    assert deploy_mod.deploy(tmp_path, lambda: built.append(True)) is False
    assert built == [True]
    assert ("push",) not in calls


def test_deploy_requires_remote(tmp_path, monkeypatch):
    def fake_git(root, *args):
        return ""

    monkeypatch.setattr("venblog.deploy.git", fake_git)
    with pytest.raises(deploy_mod.DeployError, match="No git remote"):
        deploy_mod.deploy(tmp_path, lambda: None)


def test_default_message_format():
    assert deploy_mod.default_message().startswith("deploy: ")
