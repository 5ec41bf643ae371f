"""
Tool Registry
=============

Name-keyed set of callables the runner can invoke. Tools may be plain
functions (run in a worker thread) or coroutine functions (awaited). The
registry is safe to share between concurrently running plans.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import threading
from typing import Any, Callable, Mapping

from .errors import ToolInvocationError, ToolNotFoundError

logger = logging.getLogger(__name__)


class ToolRegistry:
    def __init__(self, tools: Mapping[str, Callable] | None = None):
        self._tools: dict[str, Callable] = {}
        self._lock = threading.Lock()
        for name, fn in (tools or {}).items():
            self.register(name, fn)

    def register(self, name: str, fn: Callable, description: str = "", replace: bool = False) -> Callable:
        if not name:
            raise ValueError("Tool name must not be empty")
        if not callable(fn):
            raise TypeError(f"Tool '{name}' is not callable")
        with self._lock:
            if name in self._tools and not replace:
                raise ValueError(f"Tool '{name}' is already registered")
            self._tools[name] = fn
        if description:
            setattr(fn, "__tool_description__", description)
        logger.debug(f"Registered tool '{name}'")
        return fn

    def tool(self, name: str, description: str = "") -> Callable:
        """Decorator form of register."""

        def decorator(fn: Callable) -> Callable:
            return self.register(name, fn, description)

        return decorator

    def resolve(self, name: str) -> Callable:
        with self._lock:
            fn = self._tools.get(name)
        if fn is None:
            raise ToolNotFoundError(name)
        return fn

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._tools)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._tools

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)


async def invoke_tool(fn: Callable, arguments: Any) -> Any:
    """Call a tool with mapping arguments as keywords, anything else positionally."""
    if isinstance(arguments, Mapping):
        call = functools.partial(fn, **arguments)
    elif arguments is None:
        call = fn
    else:
        call = functools.partial(fn, arguments)

    if inspect.iscoroutinefunction(fn):
        return await call()
    result = await asyncio.to_thread(call)
    if inspect.isawaitable(result):
        result = await result
    return result


def with_timeout(fn: Callable, timeout_seconds: float) -> Callable:
    """Wrap a tool so a call running longer than ``timeout_seconds`` fails."""

    async def _bounded(*args: Any, **kwargs: Any) -> Any:
        arguments: Any = kwargs if kwargs else (args[0] if args else None)
        try:
            return await asyncio.wait_for(invoke_tool(fn, arguments), timeout=timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise ToolInvocationError(
                f"Tool timed out after {timeout_seconds}s", timeout_seconds=timeout_seconds
            ) from exc

    functools.update_wrapper(_bounded, fn)
    return _bounded
