"""Stencil Exceptions

Every error raised by the compile-cache-render pipeline derives from
StencilError, so callers can catch one type.
"""

from __future__ import annotations

from typing import Sequence


class StencilError(Exception):
    """Base exception for all stencil errors."""

    pass


class TemplateResolutionError(StencilError):
    """Raised when a template path cannot be resolved to a file."""

    def __init__(self, path: str, tried: Sequence[str] = ()):
        self.path = path
        self.tried = list(tried)
        message = f'Could not find the template "{path}".'
        if self.tried:
            message += " Paths tried: " + ", ".join(self.tried)
        super().__init__(message)


class TemplateReadError(StencilError):
    """Raised when a template file exists in config but cannot be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Failed to read template at '{path}': {reason}")


class TemplateCompileError(StencilError):
    """Raised when template source fails to compile."""

    pass


class TemplateRenderError(StencilError):
    """Raised when a compiled template fails while rendering."""

    def __init__(self, template: str, reason: str):
        self.template = template
        super().__init__(f"Rendering {template} failed:\n\n{reason}")
