"""Tests for template path resolution and reading."""

import pytest

from stencil.config import resolve
from stencil.exceptions import TemplateReadError, TemplateResolutionError
from stencil.file_utils import get_path, read_file


def test_relative_to_parent_file(views, tmp_path, monkeypatch):
    """./b.tpl from <views>/a.tpl is <views>/b.tpl wherever we run from."""
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    monkeypatch.chdir(elsewhere)

    config = resolve({"filename": str(views / "a.tpl")})
    assert get_path("./b.tpl", config) == str(views / "b.tpl")


def test_default_extension_appended(views):
    config = resolve({"filename": str(views / "a.tpl")})
    assert get_path("./b", config) == str(views / "b.tpl")


def test_explicit_extension_kept(views):
    (views / "notes.txt").write_text("plain")
    config = resolve({"filename": str(views / "a.tpl")})
    assert get_path("notes.txt", config) == str(views / "notes.txt")


def test_parent_directory_tried_before_views(views):
    (views / "sub" / "b.tpl").write_text("sub b")
    config = resolve({"filename": str(views / "sub" / "a.tpl"), "views": str(views)})
    assert get_path("b", config) == str(views / "sub" / "b.tpl")


def test_falls_back_to_views(views):
    config = resolve({"filename": str(views / "sub" / "a.tpl"), "views": str(views)})
    assert get_path("page", config) == str(views / "page.tpl")


def test_searches_every_views_root(tmp_path, views):
    empty = tmp_path / "empty"
    empty.mkdir()
    config = resolve({"views": [str(empty), str(views)]})
    assert get_path("page", config) == str(views / "page.tpl")


def test_unresolvable_path_lists_tried_paths(views):
    config = resolve({"filename": str(views / "a.tpl"), "views": str(views)})
    with pytest.raises(TemplateResolutionError) as exc_info:
        get_path("missing", config)

    err = exc_info.value
    assert err.path == "missing"
    assert err.tried == [str(views / "missing.tpl"), str(views / "missing.tpl")]
    assert "Could not find the template" in str(err)


def test_relative_without_filename_or_views_fails():
    with pytest.raises(TemplateResolutionError):
        get_path("page", resolve())


def test_absolute_path_used_as_is(views):
    assert get_path(str(views / "page.tpl"), resolve()) == str(views / "page.tpl")


def test_absolute_path_looked_up_in_views(views):
    config = resolve({"views": str(views)})
    assert get_path("/page", config) == str(views / "page.tpl")


def test_lookup_memoized_when_caching(views):
    config = resolve({"views": str(views), "cache": True})
    assert get_path("page", config) == str(views / "page.tpl")

    (views / "page.tpl").unlink()
    assert get_path("page", config) == str(views / "page.tpl")


def test_lookup_not_memoized_without_cache(views):
    config = resolve({"views": str(views)})
    get_path("page", config)
    assert config.templates.paths == {}


def test_read_file(views):
    assert read_file(views / "page.tpl") == "Hi <%= who %>"


def test_read_missing_file(tmp_path):
    missing = tmp_path / "missing.tpl"
    with pytest.raises(TemplateReadError) as exc_info:
        read_file(missing)
    assert exc_info.value.path == str(missing)
    assert str(missing) in str(exc_info.value)
