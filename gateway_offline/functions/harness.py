"""Loading and invoking user function code.

``create_handler`` turns a function's ``handler`` setting
(``path/to/module.function``) into a callable with the
``handler(event, context, done)`` shape the authenticator drives.
Only Python runtimes are supported; the module is imported from its
file under the service path.
"""

from __future__ import annotations

import importlib.util
import logging
import os
import sys
from types import ModuleType
from typing import Any, Callable

from gateway_offline.functions.definition import FunctionDefinition
from gateway_offline.shared.config import OfflineOptions
from gateway_offline.shared.constants import DEFAULT_MEMORY_SIZE_MB, PYTHON_RUNTIME_PREFIX
from gateway_offline.shared.errors import ConfigurationError, InvocationStartError

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any], Any, Callable[[Any, Any], None]], None]

_module_cache: dict[str, ModuleType] = {}


def get_function_options(
    fun: FunctionDefinition,
    populated_fun: FunctionDefinition,
    options: OfflineOptions,
) -> dict[str, Any]:
    """Resolve the options the harness needs to load and run *fun*."""
    handler_path, _, handler_name = populated_fun.handler.rpartition(".")
    if not handler_path or not handler_name:
        raise ConfigurationError(
            f"Invalid handler '{populated_fun.handler}' for function '{fun.name}'"
        )

    return {
        "fun_name": fun.name,
        "handler_path": os.path.join(options.service_path, handler_path),
        "handler_name": handler_name,
        "fun_timeout": populated_fun.timeout or options.default_timeout,
        "memory_size": populated_fun.memory_size or DEFAULT_MEMORY_SIZE_MB,
        "runtime": populated_fun.runtime or options.provider_runtime,
    }


def create_handler(
    runtime: str,
    fun_options: dict[str, Any],
    options: OfflineOptions,
) -> Handler:
    """Load the user function and wrap it as ``handler(event, context, done)``.

    Raises:
        InvocationStartError: If the runtime is unsupported or the code
            cannot be loaded.
    """
    if not runtime.startswith(PYTHON_RUNTIME_PREFIX):
        raise InvocationStartError(f"Unsupported runtime '{runtime}'")

    module = _load_module(fun_options["handler_path"], skip_cache=options.skip_cache_invalidation)
    handler_name = fun_options["handler_name"]
    user_function = getattr(module, handler_name, None)
    if not callable(user_function):
        raise InvocationStartError(
            f"Handler '{handler_name}' not found in {fun_options['handler_path']}.py"
        )

    def handler(event: dict[str, Any], context: Any, done: Callable[[Any, Any], None]) -> None:
        try:
            result = user_function(event, context)
        except Exception as exc:
            logger.debug("Function %s raised %r", fun_options["fun_name"], exc)
            done(exc, None)
            return
        done(None, result)

    return handler


def _load_module(handler_path: str, *, skip_cache: bool) -> ModuleType:
    file_path = os.path.abspath(handler_path + ".py")
    if skip_cache and file_path in _module_cache:
        return _module_cache[file_path]

    if not os.path.exists(file_path):
        raise InvocationStartError(f"Could not find handler module at {file_path}")

    module_name = "gateway_offline_user_" + os.path.basename(handler_path)
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    if spec is None or spec.loader is None:
        raise InvocationStartError(f"Could not load handler module at {file_path}")

    module = importlib.util.module_from_spec(spec)
    module_dir = os.path.dirname(file_path)
    if module_dir not in sys.path:
        sys.path.insert(0, module_dir)
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        raise InvocationStartError(f"Error while importing {file_path}: {exc}") from exc

    _module_cache[file_path] = module
    return module


def clear_cache() -> None:
    """Forget every loaded handler module (useful for testing)."""
    _module_cache.clear()
