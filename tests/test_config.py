"""Tests for configuration merging."""

import pytest
from pydantic import ValidationError

from stencil.cache import TemplateCache
from stencil.config import (
    RenderConfig,
    config_options,
    configure,
    get_base,
    load_config,
    reset_defaults,
    resolve,
)
from stencil.exceptions import StencilError


def test_defaults():
    config = resolve()
    assert config.async_ is False
    assert config.cache is False
    assert config.tags == ("<%", "%>")
    assert config.view_roots == []


def test_overrides_win_over_base():
    configure(views="/base", cache=True)
    config = resolve({"views": "/call"})
    assert config.views == "/call"
    assert config.cache is True
    assert resolve().views == "/base"


def test_async_alias_accepted():
    assert resolve({"async": True}).async_ is True
    assert resolve({"async_": True}).async_ is True


def test_configure_accepts_mapping_with_async():
    configure({"async": True})
    assert get_base().async_ is True


def test_cache_store_never_taken_from_overrides():
    other = TemplateCache()
    config = resolve({"templates": other})
    assert config.templates is get_base().templates
    assert config.templates is not other


def test_parent_layer_carries_parent_cache():
    parent = resolve({"filename": "/views/a.tpl", "cache": True})
    child = resolve({"filename": "/views/b.tpl"}, parent=parent)
    assert child.filename == "/views/b.tpl"
    assert child.cache is True
    assert child.templates is parent.templates
    assert parent.filename == "/views/a.tpl"


def test_configure_keeps_cache_instance():
    before = get_base().templates
    configure(cache=True)
    assert get_base().templates is before


def test_reset_defaults_gives_new_cache():
    before = get_base().templates
    reset_defaults()
    assert get_base().templates is not before
    assert get_base().cache is False


def test_extra_options_pass_through():
    config = resolve({"custom_option": 42})
    assert config.custom_option == 42


def test_config_is_frozen():
    config = resolve()
    with pytest.raises(ValidationError):
        config.cache = True


def test_view_roots_normalizes_single_path():
    assert resolve({"views": "/one"}).view_roots == ["/one"]
    assert resolve({"views": ["/one", "/two"]}).view_roots == ["/one", "/two"]


def test_invalid_option_raises_stencil_error():
    with pytest.raises(StencilError):
        resolve({"cache": {"not": "a bool"}})


def test_config_options_picks_known_keys():
    data = {"who": "Ada", "cache": True, "async": True, "settings": {}}
    assert config_options(data) == {"cache": True, "async": True}


def test_load_config_from_yaml(tmp_path):
    path = tmp_path / "stencil.yaml"
    path.write_text("cache: true\nasync: true\nviews:\n  - /srv/views\n")

    loaded = load_config(path)
    assert isinstance(loaded, RenderConfig)
    assert loaded.model_fields_set == {"cache", "async_", "views"}

    config = resolve(loaded)
    assert config.cache is True
    assert config.async_ is True
    assert config.view_roots == ["/srv/views"]
    assert config.templates is get_base().templates


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_load_config_rejects_non_mapping(tmp_path):
    path = tmp_path / "stencil.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(StencilError):
        load_config(path)


def test_load_config_malformed_yaml(tmp_path):
    path = tmp_path / "stencil.yaml"
    path.write_text("cache: [true\n")
    with pytest.raises(StencilError) as exc_info:
        load_config(path)
    assert "Invalid YAML" in str(exc_info.value)
