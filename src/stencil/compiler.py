"""Compiler - turns template source into a callable TemplateFunction.

Templates are compiled with Jinja2. The configured tags map onto Jinja
delimiters:

    <%= expr %>    interpolate an expression
    <% stmt %>     statement ({% ... %} in plain Jinja)
    <%# note %>    comment

Two globals are available inside every template:

    include(name, data=None)        render a template cached under `name`
    include_file(path, data=None)   render a file relative to this template
"""

from __future__ import annotations

import inspect
import logging
from functools import lru_cache
from typing import Any, Awaitable, Callable, Mapping

from jinja2 import Environment, StrictUndefined, Template, TemplateSyntaxError, Undefined, pass_context
from markupsafe import Markup

from stencil.config import RenderConfig
from stencil.exceptions import StencilError, TemplateCompileError, TemplateRenderError, TemplateResolutionError
from stencil.invocation import Callback, deliver

log = logging.getLogger(__name__)

CONFIG_VAR = "__config__"
DATA_VAR = "__data__"


def build_context(data: Mapping[str, Any], config: RenderConfig) -> dict[str, Any]:
    """Build the Jinja render context for one invocation.

    Data keys are exposed as top-level variables and, as a whole, under
    config.var_name (default `it`).
    """
    context = dict(data)
    context[config.var_name] = data
    context[CONFIG_VAR] = config
    context[DATA_VAR] = data
    return context


# (tags, auto_escape, auto_trim, strict, filter)
CompileOptions = tuple[tuple[str, str], bool, bool, bool, Any]


class TemplateFunction:
    """A compiled template.

    Call it with (data, config[, callback]). In synchronous mode it returns
    the rendered string. In asynchronous mode it returns an awaitable of the
    string. With a callback, the result is also delivered as
    callback(err, str).

    The source is compiled for the mode it was first needed in. The other
    mode is compiled on first use, so one cached function serves both.
    """

    def __init__(
        self,
        source: str,
        options: CompileOptions,
        label: str = "<string>",
        template: Template | None = None,
    ):
        self.source = source
        self.options = options
        self.label = label
        self._templates: dict[bool, Template] = {}
        if template is not None:
            self._templates[template.environment.is_async] = template

    @property
    def modes(self) -> frozenset[bool]:
        """The modes (False: sync, True: async) compiled so far."""
        return frozenset(self._templates)

    def template_for(self, is_async: bool) -> Template:
        template = self._templates.get(is_async)
        if template is None:
            log.debug("Compiling %s for %s rendering", self.label, "async" if is_async else "sync")
            template = _from_string(self.source, self.options, is_async)
            self._templates[is_async] = template
        return template

    def __call__(
        self,
        data: Mapping[str, Any],
        config: RenderConfig,
        callback: Callback | None = None,
    ) -> str | Awaitable[str] | Any:
        if config.async_:
            result = self._render_async(data, config)
            if callback is None:
                return result
            return deliver(result, callback)

        if callback is None:
            return self._render(data, config)

        try:
            rendered = self._render(data, config)
        except Exception as e:
            callback(e, None)
            return None
        callback(None, rendered)
        return rendered

    def _render(self, data: Mapping[str, Any], config: RenderConfig) -> str:
        try:
            return self.template_for(False).render(build_context(data, config))
        except StencilError:
            raise
        except Exception as e:
            raise TemplateRenderError(self.label, str(e)) from e

    async def _render_async(self, data: Mapping[str, Any], config: RenderConfig) -> str:
        try:
            return await self.template_for(True).render_async(build_context(data, config))
        except StencilError:
            raise
        except Exception as e:
            raise TemplateRenderError(self.label, str(e)) from e

    def __repr__(self) -> str:
        return f"<TemplateFunction {self.label}>"


def _embed(result: str | Awaitable[str]) -> Any:
    """Mark included output as safe so autoescape leaves it alone."""
    if inspect.isawaitable(result):
        return _embed_async(result)
    return Markup(result)


async def _embed_async(result: Awaitable[str]) -> Markup:
    return Markup(await result)


@pass_context
def include(context, name: str, data: Mapping[str, Any] | None = None) -> Any:
    """Render a template registered in the cache under `name`.

    Example:
        <%= include("header", {"title": "Home"}) %>
    """
    config: RenderConfig = context[CONFIG_VAR]
    fn = config.templates.get(name)
    if fn is None:
        raise TemplateResolutionError(name)
    return _embed(fn(context[DATA_VAR] if data is None else data, config))


@pass_context
def include_file(context, path: str, data: Mapping[str, Any] | None = None) -> Any:
    """Render another template file, resolved relative to the current one.

    Args:
        path: Template path (relative to this template or a views root).
        data: Data for the included template. Defaults to the caller's data.

    Example:
        <%= include_file("./partials/nav", {"active": "home"}) %>
    """
    from stencil.files import include_file as resolve_include

    config: RenderConfig = context[CONFIG_VAR]
    fn, child_config = resolve_include(path, config)
    return _embed(fn(context[DATA_VAR] if data is None else data, child_config))


@lru_cache(maxsize=32)
def build_environment(
    tags: tuple[str, str],
    auto_escape: bool = True,
    auto_trim: bool = True,
    strict: bool = False,
    is_async: bool = False,
    finalize: Callable[[Any], Any] | None = None,
) -> Environment:
    """Create a Jinja2 Environment for the given compile options.

    Environments are shared between compiles with identical options.
    """
    start, end = tags
    env = Environment(
        block_start_string=start,
        block_end_string=end,
        variable_start_string=start + "=",
        variable_end_string=end,
        comment_start_string=start + "#",
        comment_end_string=end,
        autoescape=auto_escape,
        trim_blocks=auto_trim,
        lstrip_blocks=auto_trim,
        keep_trailing_newline=True,
        undefined=StrictUndefined if strict else Undefined,
        enable_async=is_async,
        finalize=finalize,
    )
    env.globals["include"] = include
    env.globals["include_file"] = include_file
    return env


def compile_options(config: RenderConfig) -> CompileOptions:
    """The config values that change how source compiles, minus the mode."""
    return (
        tuple(config.tags),
        config.auto_escape,
        config.auto_trim,
        config.strict,
        config.filter,
    )


def _from_string(source: str, options: CompileOptions, is_async: bool) -> Template:
    tags, auto_escape, auto_trim, strict, finalize = options
    env = build_environment(tags, auto_escape, auto_trim, strict, is_async, finalize)
    try:
        return env.from_string(source)
    except TemplateSyntaxError as e:
        raise TemplateCompileError(
            f"Bad template syntax\n\n{e.message} (line {e.lineno})"
        ) from e


def compile(source: str, config: RenderConfig) -> TemplateFunction:
    """Compile template source into a TemplateFunction.

    Args:
        source: Template text.
        config: Effective config; its compile options select the environment
            and config.async_ picks the mode compiled up front.

    Returns:
        The compiled TemplateFunction.

    Raises:
        TemplateCompileError: If the source is not valid template syntax.
    """
    options = compile_options(config)
    label = config.filename or config.name or "<string>"
    template = _from_string(source, options, config.async_)

    log.debug("Compiled template %s (async=%s)", label, config.async_)
    return TemplateFunction(source, options, label, template)
