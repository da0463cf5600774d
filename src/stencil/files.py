"""Render templates from files.

Hook into a host framework's view rendering with render_file:

    app.engine("tpl", stencil.render_file)

The framework then calls render_file(path, data_and_settings, callback),
with view options nested under data_and_settings["settings"].
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
from typing import Any, Mapping

from stencil.compiler import TemplateFunction, compile
from stencil.config import Options, RenderConfig, config_options, override_items, resolve
from stencil.exceptions import TemplateCompileError
from stencil.file_utils import get_path, read_file
from stencil.invocation import Callback, RenderCall, settle

log = logging.getLogger(__name__)

PathLike = str | os.PathLike


def _file_config(file_path: PathLike, options: Options) -> RenderConfig:
    config = options if isinstance(options, RenderConfig) else resolve(options)
    if not config.filename:
        config = config.with_filename(os.fspath(file_path))
    return config


def _compile_file(
    source: str, file_path: PathLike, config: RenderConfig, skip_cache: bool
) -> TemplateFunction:
    try:
        fn = compile(source, config)
    except Exception as e:
        raise TemplateCompileError(f"Loading file: {file_path} failed:\n\n{e}") from e

    if config.cache and not skip_cache:
        log.debug("Caching template %s", config.filename)
        config.templates.define(config.filename, fn)
    return fn


def load_file(
    file_path: PathLike, options: Options, skip_cache: bool = False
) -> TemplateFunction:
    """Read a template file, compile it and cache it if caching is on.

    Args:
        file_path: Absolute path to the template file.
        options: Effective config, or overrides to resolve one from.
        skip_cache: Never register the compiled function.

    Returns:
        The compiled TemplateFunction.

    Raises:
        TemplateReadError: If the file cannot be read.
        TemplateCompileError: If the file does not compile.
    """
    config = _file_config(file_path, options)
    source = read_file(file_path)
    return _compile_file(source, file_path, config, skip_cache)


async def load_file_async(
    file_path: PathLike, options: Options, skip_cache: bool = False
) -> TemplateFunction:
    """Like load_file(), reading the file in a worker thread."""
    config = _file_config(file_path, options)
    source = await asyncio.to_thread(read_file, file_path)
    return _compile_file(source, file_path, config, skip_cache)


def handle_cache(config: RenderConfig) -> TemplateFunction:
    """Return the template function for config.filename.

    config.filename must already be resolved.
    """
    filename = config.filename
    if config.cache:
        fn = config.templates.get(filename)
        if fn is not None:
            log.debug("Cache hit for template %s", filename)
            return fn
        return load_file(filename, config)

    return load_file(filename, config, skip_cache=True)


async def handle_cache_async(config: RenderConfig) -> TemplateFunction:
    """Like handle_cache(), suspending while the file is read.

    Two renders of the same uncached file in flight at once both compile;
    the later registration replaces the earlier one.
    """
    filename = config.filename
    if config.cache:
        fn = config.templates.get(filename)
        if fn is not None:
            log.debug("Cache hit for template %s", filename)
            return fn
        return await load_file_async(filename, config)

    return await load_file_async(filename, config, skip_cache=True)


def include_file(path: PathLike, config: RenderConfig) -> tuple[TemplateFunction, RenderConfig]:
    """Get the template function for an included file.

    The returned config carries the included file's resolved filename, so
    the included template can resolve its own includes relative to itself.

    Args:
        path: Include path (relative to config.filename or a views root).
        config: The including template's effective config.

    Returns:
        (template function, config to call it with)
    """
    child = resolve({"filename": get_path(path, config)}, parent=config)
    return handle_cache(child), child


def _settings_config(call: RenderCall) -> RenderConfig:
    """Build the config for a render_file call.

    An explicit config object wins. Otherwise config keys are read from the
    data itself, plus the host framework's data["settings"].
    """
    if call.options is not None:
        return resolve(call.overrides())

    data = call.data
    options = override_items(config_options(data))
    settings = data.get("settings") or {}
    if settings.get("views"):
        options["views"] = settings["views"]
    if settings.get("view cache"):
        options["cache"] = True
    view_options = settings.get("view options")
    if view_options:
        options.update(override_items(view_options))
    if call.force_async:
        options["async_"] = True
    return resolve(options)


def _execute(filename: PathLike, data: Mapping[str, Any], config: RenderConfig) -> str:
    config = config.with_filename(get_path(filename, config))
    return handle_cache(config)(data, config)


async def _execute_async(
    filename: PathLike, data: Mapping[str, Any], config: RenderConfig
) -> str:
    config = config.with_filename(get_path(filename, config))
    fn = await handle_cache_async(config)
    result = fn(data, config)
    if inspect.isawaitable(result):
        result = await result
    return result


def run_file(filename: PathLike, call: RenderCall) -> Any:
    """Render a template file for an already normalized call."""
    return settle(
        call,
        lambda: _settings_config(call),
        lambda config: _execute(filename, call.data, config),
        lambda config: _execute_async(filename, call.data, config),
    )


def render_file(
    filename: PathLike,
    data: Mapping[str, Any] | None = None,
    config: Options | Callback | None = None,
    callback: Callback | None = None,
) -> Any:
    """Render a template file.

    Two call shapes are supported:

    - render_file(filename, data_and_config[, callback]): config keys and
      data["settings"] are read from the data mapping
    - render_file(filename, data, config[, callback])

    Relative filenames are looked up in config.views.

    Example:
        render_file("./page", {"title": "Home"}, {"views": "/srv/views", "cache": True})

        await render_file_async("./page", {"title": "Home"}, {"views": "/srv/views"})
    """
    return run_file(filename, RenderCall.from_args(data, config, callback))


def render_file_async(
    filename: PathLike,
    data: Mapping[str, Any] | None = None,
    config: Options | Callback | None = None,
    callback: Callback | None = None,
) -> Any:
    """Like render_file(), with `async` forced on."""
    return run_file(filename, RenderCall.from_args(data, config, callback, force_async=True))
