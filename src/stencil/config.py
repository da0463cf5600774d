"""Configuration for stencil renders.

A RenderConfig is built fresh for every render by layering, lowest to
highest priority:

1. Built-in defaults (the field defaults below)
2. The process-wide base config (see configure())
3. For includes, the parent template's effective config
4. Call-site overrides

The template cache is never taken from an override: it always comes from
the base config (or from the parent, which carries the base's cache).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from stencil.cache import TemplateCache
from stencil.exceptions import StencilError

log = logging.getLogger(__name__)


class RenderConfig(BaseModel):
    """Effective configuration for a single render or include."""

    model_config = ConfigDict(
        extra="allow",
        frozen=True,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    # Pipeline
    async_: bool = Field(default=False, alias="async")
    cache: bool = False
    name: str | None = None
    filename: str | None = None

    # Path resolution
    views: str | list[str] | None = None
    root: str = "/"
    default_extension: str = ".tpl"

    # Compilation
    tags: tuple[str, str] = ("<%", "%>")
    auto_escape: bool = True
    auto_trim: bool = True
    strict: bool = False
    var_name: str = "it"
    filter: Callable[[Any], Any] | None = None

    templates: TemplateCache = Field(
        default_factory=TemplateCache, exclude=True, repr=False
    )

    @field_validator("views", mode="before")
    @classmethod
    def _coerce_views(cls, value: Any) -> Any:
        if isinstance(value, os.PathLike):
            return os.fspath(value)
        if isinstance(value, (list, tuple)):
            return [os.fspath(v) if isinstance(v, os.PathLike) else v for v in value]
        return value

    @field_validator("filename", "root", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Any:
        if isinstance(value, os.PathLike):
            return os.fspath(value)
        return value

    @property
    def view_roots(self) -> list[str]:
        """Configured views roots as a list (empty when unset)."""
        if self.views is None:
            return []
        if isinstance(self.views, str):
            return [self.views]
        return list(self.views)

    def with_filename(self, filename: str) -> RenderConfig:
        return self.model_copy(update={"filename": filename})


Options = Mapping[str, Any] | RenderConfig

CONFIG_KEYS = frozenset(RenderConfig.model_fields) | {"async"}


def override_items(overrides: Options) -> dict[str, Any]:
    """Normalize an override object into a field-name keyed dict."""
    if isinstance(overrides, RenderConfig):
        items = {key: getattr(overrides, key) for key in overrides.model_fields_set}
        items.update(overrides.model_extra or {})
    else:
        items = dict(overrides)
        if "async" in items:
            items["async_"] = items.pop("async")

    if "templates" in items:
        log.debug("Ignoring 'templates' override; the cache comes from the base config")
        items.pop("templates")
    return items


def config_options(data: Mapping[str, Any]) -> dict[str, Any]:
    """Pick the recognized configuration keys out of a data mapping."""
    return {key: value for key, value in data.items() if key in CONFIG_KEYS}


_base = RenderConfig()


def get_base() -> RenderConfig:
    """Return the process-wide base configuration."""
    return _base


def resolve(
    overrides: Options | None = None,
    parent: RenderConfig | None = None,
    base: RenderConfig | None = None,
) -> RenderConfig:
    """Merge base, parent and override layers into an effective config.

    Args:
        overrides: Call-site options (mapping or RenderConfig).
        parent: The including template's config, for nested includes.
        base: Base config to merge onto. Defaults to the process-wide one.

    Returns:
        A new RenderConfig sharing the base's template cache.
    """
    if base is None:
        base = _base

    merged: dict[str, Any] = dict(base)
    if parent is not None:
        merged.update(dict(parent))
    if overrides:
        merged.update(override_items(overrides))

    merged["templates"] = parent.templates if parent is not None else base.templates

    try:
        return RenderConfig.model_validate(merged)
    except ValidationError as e:
        raise StencilError(f"Invalid render options:\n\n{e}") from e


def configure(options: Options | None = None, **kwargs: Any) -> RenderConfig:
    """Update the process-wide base configuration.

    The base keeps its template cache across calls.

    Example:
        configure(views="/srv/views", cache=True)
        configure({"async": True})
    """
    global _base

    merged = override_items(options) if options is not None else {}
    merged.update(kwargs)
    _base = resolve(merged)
    log.debug("Base configuration updated: %s", sorted(merged))
    return _base


def reset_defaults() -> RenderConfig:
    """Restore built-in defaults with a fresh, empty template cache."""
    global _base

    _base = RenderConfig()
    return _base


def load_config(path: str | Path) -> RenderConfig:
    """Load render options from a YAML file.

    Only the keys present in the file count as set, so the result can be
    passed to configure() or resolve() as an override layer.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise StencilError(f"Invalid YAML in config file {path}:\n\n{e}") from e

    if not isinstance(data, dict):
        raise StencilError(f"Config file must contain a mapping: {path}")

    try:
        return RenderConfig.model_validate(data)
    except ValidationError as e:
        raise StencilError(f"Invalid config file {path}:\n\n{e}") from e
