"""Unit tests for the Lambda-style invocation context."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import MagicMock

from gateway_offline.functions.context import InvocationContext, create_invocation_context

_FUN_OPTIONS = {"fun_name": "authorizerFunc", "fun_timeout": 6, "memory_size": 512}


class TestInvocationContext:
    def test_lambda_attributes(self) -> None:
        context = create_invocation_context(_FUN_OPTIONS, MagicMock(), region="eu-west-1")

        assert context.function_name == "authorizerFunc"
        assert context.function_version == "$LATEST"
        assert context.memory_limit_in_mb == "512"
        assert context.invoked_function_arn.startswith("arn:aws:lambda:eu-west-1:")
        assert context.log_group_name == "/aws/lambda/authorizerFunc"
        assert 0 < context.get_remaining_time_in_millis() <= 6000

    def test_request_ids_unique(self) -> None:
        first = create_invocation_context(_FUN_OPTIONS, MagicMock())
        second = create_invocation_context(_FUN_OPTIONS, MagicMock())
        assert first.aws_request_id != second.aws_request_id

    def test_callback_fires_once(self) -> None:
        callback = MagicMock()
        context = create_invocation_context(_FUN_OPTIONS, callback)

        context.succeed({"principalId": "u"})
        context.fail(ValueError("late"))
        context.done(None, {"principalId": "later"})

        callback.assert_called_once_with(None, {"principalId": "u"})
        assert context.finished

    def test_fail_passes_error(self) -> None:
        callback = MagicMock()
        error = ValueError("denied")
        create_invocation_context(_FUN_OPTIONS, callback).fail(error)
        callback.assert_called_once_with(error, None)

    def test_timeout_completes_with_error(self) -> None:
        async def scenario() -> list[tuple[Any, Any]]:
            calls: list[tuple[Any, Any]] = []
            InvocationContext(
                "slow",
                lambda err, res: calls.append((err, res)),
                timeout=0.01,
                loop=asyncio.get_running_loop(),
            )
            await asyncio.sleep(0.05)
            return calls

        calls = asyncio.run(scenario())
        assert len(calls) == 1
        error, result = calls[0]
        assert isinstance(error, TimeoutError)
        assert "Task timed out after 0.01 seconds" in str(error)
        assert result is None

    def test_no_timeout_disables_timer(self) -> None:
        async def scenario() -> MagicMock:
            callback = MagicMock()
            InvocationContext(
                "slow",
                callback,
                timeout=0.01,
                no_timeout=True,
                loop=asyncio.get_running_loop(),
            )
            await asyncio.sleep(0.05)
            return callback

        asyncio.run(scenario()).assert_not_called()

    def test_completion_cancels_timer(self) -> None:
        async def scenario() -> MagicMock:
            callback = MagicMock()
            context = create_invocation_context({**_FUN_OPTIONS, "fun_timeout": 0.01}, callback)
            context.succeed("ok")
            await asyncio.sleep(0.05)
            return callback

        asyncio.run(scenario()).assert_called_once_with(None, "ok")
