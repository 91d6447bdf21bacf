"""Classification of an invocation's completion.

An authorizer function completes through ``done(error, result)``.  The
pair is classified once, at the callback boundary, into one of three
outcomes:

* ``Rejected`` - an error was passed, or the result itself is an exception
* ``Deferred`` - the result is awaitable and settles later
* ``Resolved`` - any other result (including ``None``) is the policy
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
import threading
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Rejected:
    cause: Any


@dataclass(frozen=True)
class Deferred:
    awaitable: Any

    async def settle(self) -> Any:
        """Wait for the deferred value; exceptions propagate to the caller."""
        if isinstance(self.awaitable, concurrent.futures.Future):
            return await asyncio.wrap_future(self.awaitable)
        return await self.awaitable


@dataclass(frozen=True)
class Resolved:
    value: Any


InvocationOutcome = Union[Rejected, Deferred, Resolved]


def is_deferred(value: Any) -> bool:
    return inspect.isawaitable(value) or isinstance(value, concurrent.futures.Future)


def classify_completion(error: Any, result: Any) -> InvocationOutcome:
    """Map a ``(error, result)`` completion to exactly one outcome."""
    if error is not None:
        return Rejected(error)
    if is_deferred(result):
        return Deferred(result)
    if isinstance(result, BaseException):
        return Rejected(result)
    return Resolved(result)


class CompletionSlot:
    """Write-once holder for the first completion of an invocation.

    ``settle`` may be called from any thread and any number of times;
    only the first call is kept.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._future: asyncio.Future[InvocationOutcome] = loop.create_future()
        self._lock = threading.Lock()
        self._settled = False
        self.extra_completions = 0

    @property
    def settled(self) -> bool:
        return self._settled

    def settle(self, error: Any, result: Any) -> bool:
        """Record a completion; return ``False`` if one was already recorded."""
        with self._lock:
            if self._settled:
                self.extra_completions += 1
                return False
            self._settled = True

        outcome = classify_completion(error, result)
        if self._in_loop_thread():
            self._future.set_result(outcome)
        else:
            self._loop.call_soon_threadsafe(self._future.set_result, outcome)
        return True

    async def wait(self) -> InvocationOutcome:
        return await self._future

    def _in_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False
