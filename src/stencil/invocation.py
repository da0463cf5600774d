"""Invocation adapter - one execution path, three ways to get the result.

Every render is described by a RenderCall. The orchestrator hands settle()
a `prepare` step that builds the effective config and two executors, one
synchronous and one returning a coroutine. settle() then delivers the
result the way the caller asked for it:

- sync mode: return the string (errors raise without a callback)
- any mode, callback: callback(err, None) or callback(None, result)
- async mode, no callback: return a coroutine resolving to the string
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Awaitable, Callable, Mapping

from stencil.config import Options, RenderConfig, override_items

log = logging.getLogger(__name__)

Callback = Callable[[BaseException | None, str | None], Any]


@dataclass
class RenderCall:
    """Canonical arguments of one render call."""

    data: Mapping[str, Any] = field(default_factory=dict)
    options: Options | None = None
    callback: Callback | None = None
    force_async: bool = False

    @classmethod
    def from_args(
        cls,
        data: Mapping[str, Any] | None = None,
        config: Options | Callback | None = None,
        callback: Callback | None = None,
        *,
        force_async: bool = False,
    ) -> RenderCall:
        """Build a RenderCall from the positional convenience shape.

        Supports both (data, config, callback) and (data, callback).
        """
        if data is None:
            data = {}
        if callable(config) and not isinstance(config, Mapping):
            if callback is not None:
                raise TypeError("Two callbacks given; pass config as the third argument")
            callback, config = config, None
        if callback is not None and not callable(callback):
            raise TypeError(f"callback must be callable, got {type(callback).__name__}")
        return cls(data=data, options=config, callback=callback, force_async=force_async)

    def overrides(self) -> dict[str, Any] | None:
        """Explicit options, with async forced on if requested."""
        if self.options is None:
            return {"async_": True} if self.force_async else None
        items = override_items(self.options)
        if self.force_async:
            items["async_"] = True
        return items


async def _settled(result: str | Awaitable[str]) -> str:
    if inspect.isawaitable(result):
        return await result
    return result


def _finish(callback: Callback, task: asyncio.Task[str]) -> None:
    if task.cancelled():
        callback(asyncio.CancelledError(), None)
        return
    error = task.exception()
    if error is not None:
        callback(error, None)
    else:
        callback(None, task.result())


def deliver(
    result: str | Awaitable[str], callback: Callback
) -> asyncio.Task[str] | None:
    """Drive a (possibly deferred) result and hand it to a callback.

    Inside a running event loop the work is scheduled as a task, which is
    returned so the caller can await completion. Without a running loop the
    result is computed to completion before this returns.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop is not None:
        task = loop.create_task(_settled(result))
        task.add_done_callback(partial(_finish, callback))
        return task

    try:
        value = asyncio.run(_settled(result))
    except Exception as e:
        callback(e, None)
        return None
    callback(None, value)
    return None


def settle(
    call: RenderCall,
    prepare: Callable[[], RenderConfig],
    execute: Callable[[RenderConfig], str],
    execute_async: Callable[[RenderConfig], Awaitable[str]],
) -> Any:
    """Run a render and deliver its result as the call requested.

    Args:
        call: The normalized call.
        prepare: Builds the effective config. Runs first, always synchronously.
        execute: Fetch/compile/invoke for synchronous mode.
        execute_async: Coroutine factory for asynchronous mode.
    """
    callback = call.callback

    try:
        config = prepare()
    except Exception as e:
        if callback is None:
            raise
        callback(e, None)
        return None

    if config.async_:
        deferred = execute_async(config)
        if callback is None:
            return deferred
        return deliver(deferred, callback)

    if callback is None:
        return execute(config)

    try:
        result = execute(config)
    except Exception as e:
        log.debug("Render failed, delivering error to callback: %s", e)
        callback(e, None)
        return None
    callback(None, result)
    return result
