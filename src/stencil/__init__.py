"""Stencil - compile, cache and render text templates."""

from stencil._version import __version__
from stencil.cache import TemplateCache
from stencil.compiler import TemplateFunction, compile
from stencil.config import RenderConfig, configure, get_base, load_config, reset_defaults, resolve
from stencil.exceptions import (
    StencilError,
    TemplateCompileError,
    TemplateReadError,
    TemplateRenderError,
    TemplateResolutionError,
)
from stencil.files import include_file, load_file, render_file, render_file_async
from stencil.render import render, render_async

__all__ = [
    "__version__",
    "TemplateCache",
    "TemplateFunction",
    "RenderConfig",
    "configure",
    "get_base",
    "load_config",
    "reset_defaults",
    "resolve",
    "StencilError",
    "TemplateCompileError",
    "TemplateReadError",
    "TemplateRenderError",
    "TemplateResolutionError",
    "include_file",
    "load_file",
    "render_file",
    "render_file_async",
    "render",
    "render_async",
]
