"""Lambda-style invocation context for emulated functions.

The context exposes the attributes Python handlers usually read
(``function_name``, ``aws_request_id``, ``get_remaining_time_in_millis``...)
together with ``done``/``succeed``/``fail`` completion helpers.  The
completion callback fires at most once; a timer completes the
invocation with a ``TimeoutError`` when the function runs too long.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Any, Callable

from gateway_offline.shared.constants import DEFAULT_MEMORY_SIZE_MB, FUNCTION_VERSION_LATEST

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[Any, Any], None]


class InvocationContext:
    """Context object handed to a function for one invocation."""

    def __init__(
        self,
        function_name: str,
        callback: CompletionCallback,
        *,
        timeout: float,
        memory_size: int = DEFAULT_MEMORY_SIZE_MB,
        region: str = "us-east-1",
        no_timeout: bool = False,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.function_name = function_name
        self.function_version = FUNCTION_VERSION_LATEST
        self.invoked_function_arn = (
            f"arn:aws:lambda:{region}:123456789012:function:{function_name}"
        )
        self.memory_limit_in_mb = str(memory_size)
        self.aws_request_id = str(uuid.uuid4())
        self.log_group_name = f"/aws/lambda/{function_name}"
        self.log_stream_name = time.strftime("%Y/%m/%d") + "/[$LATEST]" + uuid.uuid4().hex

        self._callback = callback
        self._timeout = timeout
        self._deadline = time.monotonic() + timeout
        self._finished = False
        self._timer: asyncio.TimerHandle | None = None

        if not no_timeout and loop is not None:
            self._timer = loop.call_later(timeout, self._on_timeout)

    @property
    def finished(self) -> bool:
        return self._finished

    def get_remaining_time_in_millis(self) -> int:
        return max(0, int((self._deadline - time.monotonic()) * 1000))

    def done(self, error: Any = None, result: Any = None) -> None:
        """Complete the invocation; later calls are ignored."""
        if self._finished:
            logger.debug("Ignoring extra completion for %s", self.function_name)
            return
        self._finished = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._callback(error, result)

    def succeed(self, result: Any = None) -> None:
        self.done(None, result)

    def fail(self, error: Any) -> None:
        self.done(error, None)

    def _on_timeout(self) -> None:
        self._timer = None
        self.done(TimeoutError(f"Task timed out after {self._timeout:.2f} seconds"), None)


def create_invocation_context(
    fun_options: dict[str, Any],
    callback: CompletionCallback,
    *,
    region: str = "us-east-1",
    no_timeout: bool = False,
    loop: asyncio.AbstractEventLoop | None = None,
) -> InvocationContext:
    """Build an InvocationContext from resolved function options.

    When *loop* is omitted the running event loop (if any) drives the
    timeout timer.
    """
    if loop is None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

    return InvocationContext(
        fun_options["fun_name"],
        callback,
        timeout=fun_options["fun_timeout"],
        memory_size=fun_options["memory_size"],
        region=region,
        no_timeout=no_timeout,
        loop=loop,
    )
