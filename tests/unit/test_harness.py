"""Unit tests for handler loading."""

from __future__ import annotations

import asyncio
import os
from typing import Any
from unittest.mock import MagicMock

import pytest

from gateway_offline.functions.definition import FunctionDefinition
from gateway_offline.functions.harness import clear_cache, create_handler, get_function_options
from gateway_offline.shared.config import OfflineOptions
from gateway_offline.shared.errors import ConfigurationError, InvocationStartError

_FIXTURES_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "fixtures")
_OPTIONS = OfflineOptions(service_path=_FIXTURES_DIR)


def _fun_options(handler: str, **overrides: Any) -> dict[str, Any]:
    fun = FunctionDefinition.model_validate({"name": "authorizerFunc", "handler": handler, **overrides})
    return get_function_options(fun, fun, _OPTIONS)


@pytest.fixture(autouse=True)
def _fresh_modules() -> None:
    clear_cache()


class TestGetFunctionOptions:
    def test_splits_handler(self) -> None:
        options = _fun_options("authorizers.allow")

        assert options["handler_path"] == os.path.join(_FIXTURES_DIR, "authorizers")
        assert options["handler_name"] == "allow"
        assert options["fun_name"] == "authorizerFunc"

    def test_nested_handler_path(self) -> None:
        options = _fun_options("src/auth/handler.authorize")
        assert options["handler_path"].endswith(os.path.join("src/auth", "handler"))
        assert options["handler_name"] == "authorize"

    def test_defaults(self) -> None:
        options = _fun_options("authorizers.allow")
        assert options["fun_timeout"] == 6
        assert options["memory_size"] == 1024
        assert options["runtime"] == "python3.12"

    def test_overrides(self) -> None:
        options = _fun_options("authorizers.allow", timeout=30, memorySize=128, runtime="python3.11")
        assert options["fun_timeout"] == 30
        assert options["memory_size"] == 128
        assert options["runtime"] == "python3.11"

    def test_invalid_handler(self) -> None:
        with pytest.raises(ConfigurationError):
            _fun_options("allow")


class TestCreateHandler:
    def test_returned_value_completes(self) -> None:
        handler = create_handler("python3.12", _fun_options("authorizers.allow"), _OPTIONS)
        done = MagicMock()
        handler({"type": "TOKEN"}, MagicMock(), done)
        done.assert_called_once_with(None, {"principalId": "user1"})

    def test_raised_exception_completes_with_error(self) -> None:
        handler = create_handler("python3.12", _fun_options("authorizers.deny"), _OPTIONS)
        done = MagicMock()
        handler({"type": "TOKEN"}, MagicMock(), done)

        error, result = done.call_args.args
        assert isinstance(error, PermissionError)
        assert result is None

    def test_async_function_returns_awaitable(self) -> None:
        handler = create_handler("python3.12", _fun_options("authorizers.async_allow"), _OPTIONS)
        done = MagicMock()
        handler({"type": "TOKEN"}, MagicMock(), done)

        error, coro = done.call_args.args
        assert error is None
        assert asyncio.run(coro) == {"principalId": "user1"}

    def test_unsupported_runtime(self) -> None:
        with pytest.raises(InvocationStartError, match="nodejs18.x"):
            create_handler("nodejs18.x", _fun_options("authorizers.allow"), _OPTIONS)

    def test_missing_module(self) -> None:
        with pytest.raises(InvocationStartError, match="Could not find"):
            create_handler("python3.12", _fun_options("nope.allow"), _OPTIONS)

    def test_import_error_wrapped(self) -> None:
        with pytest.raises(InvocationStartError, match="not_a_real_package"):
            create_handler("python3.12", _fun_options("broken.handler"), _OPTIONS)

    def test_missing_attribute(self) -> None:
        with pytest.raises(InvocationStartError, match="missing"):
            create_handler("python3.12", _fun_options("authorizers.missing"), _OPTIONS)

    def test_module_reloaded_by_default(self) -> None:
        fun_options = _fun_options("authorizers.allow")
        create_handler("python3.12", fun_options, _OPTIONS)

        with pytest.MonkeyPatch.context() as mp:
            mp.setattr(os.path, "exists", lambda _: False)
            with pytest.raises(InvocationStartError):
                create_handler("python3.12", fun_options, _OPTIONS)

    def test_skip_cache_invalidation_reuses_module(self) -> None:
        cached = OfflineOptions(service_path=_FIXTURES_DIR, skip_cache_invalidation=True)
        fun_options = _fun_options("authorizers.allow")
        create_handler("python3.12", fun_options, cached)

        with pytest.MonkeyPatch.context() as mp:
            mp.setattr(os.path, "exists", lambda _: False)
            handler = create_handler("python3.12", fun_options, cached)

        done = MagicMock()
        handler({}, MagicMock(), done)
        done.assert_called_once_with(None, {"principalId": "user1"})
