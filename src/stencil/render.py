"""Render template strings (or precompiled template functions)."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Mapping

from stencil.compiler import TemplateFunction, compile
from stencil.config import Options, RenderConfig, resolve
from stencil.invocation import Callback, RenderCall, settle

log = logging.getLogger(__name__)

Template = str | TemplateFunction | Callable[..., Any]


def handle_cache(template: Template, config: RenderConfig) -> TemplateFunction:
    """Return the template function for a string render.

    With caching on and a `name` set, a cached function wins over the given
    source. Otherwise the source is compiled (or the given function used)
    and registered under the name when caching is on.
    """
    if config.cache and config.name:
        cached = config.templates.get(config.name)
        if cached is not None:
            log.debug("Cache hit for template %s", config.name)
            return cached

    fn = template if callable(template) else compile(template, config)

    # No need to check for an existing entry: we would have returned above
    if config.cache and config.name:
        log.debug("Caching template %s", config.name)
        config.templates.define(config.name, fn)

    return fn


def _execute(template: Template, data: Mapping[str, Any], config: RenderConfig) -> str:
    return handle_cache(template, config)(data, config)


async def _execute_async(
    template: Template, data: Mapping[str, Any], config: RenderConfig
) -> str:
    result = handle_cache(template, config)(data, config)
    if inspect.isawaitable(result):
        result = await result
    return result


def run(template: Template, call: RenderCall) -> Any:
    """Render a template string for an already normalized call."""
    return settle(
        call,
        lambda: resolve(call.overrides()),
        lambda config: _execute(template, call.data, config),
        lambda config: _execute_async(template, call.data, config),
    )


def render(
    template: Template,
    data: Mapping[str, Any] | None = None,
    config: Options | Callback | None = None,
    callback: Callback | None = None,
) -> Any:
    """Render a template string or template function.

    - async off: returns the rendered string (and calls the callback, if given)
    - async on with a callback: calls callback(err, rendered)
    - async on without a callback: returns a coroutine of the rendered string

    With `cache` on and a `name` set, the template is compiled on the first
    render and the cached function is used for every later render.

    Example:
        >>> render("Hi <%= name %>", {"name": "Ada"})
        'Hi Ada'
    """
    return run(template, RenderCall.from_args(data, config, callback))


def render_async(
    template: Template,
    data: Mapping[str, Any] | None = None,
    config: Options | Callback | None = None,
    callback: Callback | None = None,
) -> Any:
    """Like render(), with `async` forced on.

    Example:
        rendered = await render_async("Hi <%= name %>", {"name": "Ada"})
    """
    return run(template, RenderCall.from_args(data, config, callback, force_async=True))
