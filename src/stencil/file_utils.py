"""Template file lookup and reading."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from stencil.config import RenderConfig
from stencil.exceptions import TemplateReadError, TemplateResolutionError

log = logging.getLogger(__name__)

# POSIX absolute path or Windows drive path
_ABSOLUTE = re.compile(r"^[A-Za-z]+:\\|^/")


def _whole_path(name: str, base: str, extension: str) -> str:
    """Join name onto base and append the default extension if it has none."""
    path = os.path.abspath(os.path.join(base, name))
    if extension and not os.path.splitext(name)[1]:
        path += extension
    return path


def get_path(path: str | os.PathLike, config: RenderConfig) -> str:
    """Resolve a template path to an absolute filename.

    Relative paths are tried next to config.filename (the including
    template) first, then inside each views root. Absolute paths are looked
    up inside each views root with leading slashes stripped, then joined to
    config.root.

    Args:
        path: Template path as written by the caller or the template.
        config: Effective config (filename, views, root, default_extension).

    Returns:
        Absolute path of the template file.

    Raises:
        TemplateResolutionError: If a relative path matches no candidate.
    """
    path = os.fspath(path)
    extension = config.default_extension
    memo_key = (config.filename, path, config.root, tuple(config.view_roots))

    if config.cache:
        memoized = config.templates.paths.get(memo_key)
        if memoized is not None:
            return memoized

    tried: list[str] = []

    def search_views(name: str) -> str | None:
        for view in config.view_roots:
            candidate = _whole_path(name, view, extension)
            tried.append(candidate)
            if Path(candidate).is_file():
                return candidate
        return None

    resolved: str | None = None
    if _ABSOLUTE.match(path):
        stripped = path.lstrip("/")
        resolved = search_views(stripped)
        if resolved is None:
            resolved = _whole_path(stripped, config.root, extension)
    else:
        if config.filename:
            candidate = _whole_path(path, os.path.dirname(config.filename), extension)
            tried.append(candidate)
            if Path(candidate).is_file():
                resolved = candidate
        if resolved is None:
            resolved = search_views(path)
        if resolved is None:
            raise TemplateResolutionError(path, tried)

    log.debug("Resolved template path %s -> %s", path, resolved)
    if config.cache:
        config.templates.paths[memo_key] = resolved
    return resolved


def read_file(path: str | os.PathLike) -> str:
    """Read a template file as UTF-8 text."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise TemplateReadError(os.fspath(path), e.strerror or str(e)) from e
    except UnicodeDecodeError as e:
        raise TemplateReadError(os.fspath(path), str(e)) from e
