"""Template cache - compiled template functions keyed by name or filename."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterator, Mapping

if TYPE_CHECKING:
    from stencil.compiler import TemplateFunction

log = logging.getLogger(__name__)


class TemplateCache:
    """Maps a template key to its compiled TemplateFunction.

    Keys are template names (string templates) or absolute filenames (file
    templates). Entries are never evicted; the cache grows with the number
    of distinct keys rendered and is only emptied by reset().

    The cache also memoizes template path lookups so repeated renders of a
    cached file skip the filesystem search.
    """

    def __init__(self) -> None:
        self._templates: dict[str, TemplateFunction] = {}
        self.paths: dict[tuple[Any, ...], str] = {}

    def get(self, key: str) -> TemplateFunction | None:
        return self._templates.get(key)

    def define(self, key: str, fn: TemplateFunction) -> None:
        """Register fn under key, replacing any existing entry."""
        if key in self._templates:
            log.debug("Replacing cached template %s", key)
        self._templates[key] = fn

    def remove(self, key: str) -> None:
        self._templates.pop(key, None)

    def load(self, templates: Mapping[str, TemplateFunction]) -> None:
        """Register several precompiled templates at once."""
        for key, fn in templates.items():
            self.define(key, fn)

    def reset(self) -> None:
        """Drop every cached template and memoized path."""
        log.debug("Resetting template cache (%d entries)", len(self._templates))
        self._templates.clear()
        self.paths.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[str]:
        return iter(self._templates)

    def __repr__(self) -> str:
        return f"TemplateCache({len(self._templates)} templates)"
