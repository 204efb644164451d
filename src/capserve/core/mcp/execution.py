"""Bounded execution of tool, resource and prompt handlers."""

import asyncio
import functools
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from .exceptions import HandlerTimeoutError

logger = logging.getLogger(__name__)


async def _bounded(
    target: str,
    call: Awaitable[Any],
    deadline: float | None,
    timeout: float | None,
) -> Any:
    scope = asyncio.timeout_at(deadline)
    try:
        async with scope:
            return await call
    except TimeoutError as e:
        # A TimeoutError raised by the handler itself is a handler failure
        if not scope.expired():
            raise
        logger.warning(f"Handler for {target} timed out after {timeout}s")
        raise HandlerTimeoutError(target, timeout or 0.0) from e


async def run_handler(
    target: str,
    handler: Callable[..., Any],
    kwargs: dict[str, Any],
    timeout: float | None,
) -> Any:
    """Run a handler with keyword arguments, bounded by ``timeout`` seconds.

    Coroutine functions are awaited on the running loop; plain functions run
    in a worker thread so a blocking handler never stalls other requests.
    A sync handler that overruns keeps its thread until it returns, but the
    caller is released as soon as the bound expires.

    Raises:
        HandlerTimeoutError: If the handler does not finish in time
        Exception: Whatever the handler itself raises
    """
    deadline = None
    if timeout is not None:
        deadline = asyncio.get_running_loop().time() + timeout

    if inspect.iscoroutinefunction(handler):
        result = await _bounded(target, handler(**kwargs), deadline, timeout)
    else:
        thread_call = asyncio.to_thread(functools.partial(handler, **kwargs))
        result = await _bounded(target, thread_call, deadline, timeout)

    # Callable objects with an async __call__ hand back a coroutine; it shares
    # the deadline of the first step
    if inspect.isawaitable(result):
        result = await _bounded(target, result, deadline, timeout)
    return result
