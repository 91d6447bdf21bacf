"""TOKEN authorizer emulation for locally served API routes.

``create_auth_scheme`` validates an authorizer function's configuration
once and returns an ``AuthorizationSchemeEvaluator``.  Its
``authenticate`` coroutine runs the authorizer function for every
inbound request and turns the returned policy into credentials, or
answers the request with an error:

* 401 - the function rejected the request (error, failed awaitable, or
  an exception returned as the result)
* 403 - the policy has no ``principalId``
* 500 - the function could not be loaded, or the policy is malformed
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from gateway_offline.auth.events import (
    GatewayRequest,
    build_authorization_event,
    build_method_arn,
)
from gateway_offline.auth.outcome import CompletionSlot, Deferred, Rejected, Resolved
from gateway_offline.auth.policy import PolicyValidationError, validate_policy
from gateway_offline.auth.reply import Reply
from gateway_offline.functions.context import create_invocation_context
from gateway_offline.functions.definition import FunctionDefinition
from gateway_offline.functions.environment import (
    EnvironmentGuard,
    process_guard,
    to_plain_or_empty_dict,
)
from gateway_offline.functions.harness import create_handler, get_function_options
from gateway_offline.shared.config import OfflineOptions
from gateway_offline.shared.constants import AUTHORIZER_TYPE_TOKEN, IDENTITY_SOURCE_PATTERN
from gateway_offline.shared.errors import ConfigurationError, GatewayError
from gateway_offline.shared.log import LogFunc, debug_log, serverless_log

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

_IDENTITY_SOURCE_RE = re.compile(IDENTITY_SOURCE_PATTERN)


@dataclass(frozen=True)
class AuthorizerConfig:
    """Static configuration of one authorizer, validated at construction."""

    function_name: str
    identity_header: str
    runtime: str
    function_options: dict[str, Any]
    region: str
    stage: str
    target_function_name: str
    endpoint_path: str
    environment: dict[str, str] = field(default_factory=dict)

    @property
    def method_arn(self) -> str:
        return build_method_arn(
            self.region, self.stage, self.target_function_name, self.endpoint_path
        )


def parse_identity_header(identity_source: str | None, function_name: str) -> str:
    """Return the lower-cased header name of a ``method.request.header.X`` source."""
    match = _IDENTITY_SOURCE_RE.match(identity_source or "")
    if match is None:
        raise ConfigurationError(
            "Serverless Offline only supports retrieving tokens from the headers "
            f"(λ: {function_name})"
        )
    return match.group(1).lower()


def build_authorizer_config(
    auth_fun: FunctionDefinition,
    fun_runtime: str,
    fun_name: str,
    endpoint_path: str,
    options: OfflineOptions,
) -> AuthorizerConfig:
    """Populate and validate *auth_fun*.

    Raises:
        ConfigurationError: If the authorizer type or identity source is
            unsupported.
        VariableResolutionError: If stage/region population fails.
    """
    auth_fun_name = auth_fun.name

    try:
        populated = auth_fun.to_object_populated(stage=options.stage, region=options.region)
    except Exception:
        debug_log(
            "Error while populating function '%s' with stage '%s' and region '%s':",
            auth_fun_name,
            options.stage,
            options.region,
        )
        raise

    authorizer = populated.authorizer
    if authorizer.type != AUTHORIZER_TYPE_TOKEN:
        raise ConfigurationError(f"Authorizer Type must be TOKEN (λ: {auth_fun_name})")

    identity_header = parse_identity_header(authorizer.identity_source, auth_fun_name)
    function_options = get_function_options(auth_fun, populated, options)

    return AuthorizerConfig(
        function_name=auth_fun_name,
        identity_header=identity_header,
        runtime=fun_runtime,
        function_options=function_options,
        region=options.region,
        stage=options.stage,
        target_function_name=fun_name,
        endpoint_path=endpoint_path,
        environment=to_plain_or_empty_dict(populated.environment),
    )


class _TrackedReply:
    """Reply wrapper that remembers whether a response was handed over."""

    def __init__(self, reply: Reply) -> None:
        self._reply = reply
        self.sent = False

    def proceed(self, data: dict[str, Any]) -> None:
        self.sent = True
        self._reply.proceed(data)

    def error(self, error: GatewayError) -> None:
        self.sent = True
        self._reply.error(error)


class AuthorizationSchemeEvaluator:
    """Runs an authorizer function for each inbound request."""

    def __init__(
        self,
        config: AuthorizerConfig,
        options: OfflineOptions,
        *,
        log: LogFunc = serverless_log,
        env_guard: EnvironmentGuard | None = None,
    ) -> None:
        self.config = config
        self._options = options
        self._log = log
        self._env_guard = env_guard if env_guard is not None else process_guard()

    async def authenticate(self, request: GatewayRequest, reply: Reply) -> None:
        """Authenticate *request* and answer through *reply* exactly once."""
        name = self.config.function_name
        self._safe_log(f"Running Authorization function for {request.method} {request.path} (λ: {name})")

        tracked = _TrackedReply(reply)
        try:
            await self._authenticate(request, tracked)
        except Exception as exc:
            logger.exception("Unexpected error in authorizer %s", name)
            if tracked.sent:
                return
            reply.error(GatewayError.bad_implementation(f"Error while running {name}", cause=exc))

    async def _authenticate(self, request: GatewayRequest, reply: Reply) -> None:
        config = self.config
        name = config.function_name

        authorization = request.header(config.identity_header)
        debug_log("Retrieved %s header %s", config.identity_header, authorization)

        event = build_authorization_event(authorization, config.method_arn)

        # Environment must be reset before the function can observe it
        self._env_guard.apply(config.environment)

        try:
            handler = create_handler(config.runtime, config.function_options, self._options)
        except Exception as exc:
            self._safe_log(f"Error while loading {name}", exc)
            reply.error(GatewayError.bad_implementation(f"Error while loading {name}", cause=exc))
            return

        loop = asyncio.get_running_loop()
        slot = CompletionSlot(loop)
        context = create_invocation_context(
            config.function_options,
            slot.settle,
            region=config.region,
            no_timeout=self._options.no_timeout,
            loop=loop,
        )

        try:
            handler(event, context, context.done)
        except Exception as exc:
            context.done(exc, None)

        outcome = await slot.wait()

        if isinstance(outcome, Rejected):
            self._on_error(outcome.cause, reply)
        elif isinstance(outcome, Deferred):
            debug_log("Auth function returned an awaitable")
            timeout = None
            if not self._options.no_timeout:
                timeout = context.get_remaining_time_in_millis() / 1000
            try:
                policy = await asyncio.wait_for(outcome.settle(), timeout)
            except Exception as exc:
                self._on_error(exc, reply)
                return
            self._on_success(policy, reply)
        elif isinstance(outcome, Resolved):
            self._on_success(outcome.value, reply)

    def _on_error(self, cause: Any, reply: Reply) -> None:
        name = self.config.function_name
        self._safe_log(f"Authorization function returned an error response: (λ: {name})", cause)
        reply.error(GatewayError.unauthorized("Unauthorized"))

    def _on_success(self, policy: Any, reply: Reply) -> None:
        name = self.config.function_name
        try:
            credentials = validate_policy(policy)
        except PolicyValidationError as exc:
            self._safe_log(f"{exc.log_message}: (λ: {name})")
            reply.error(exc.response)
            return

        self._safe_log(f"Authorization function returned a successful response: (λ: {name})", policy)
        reply.proceed({"credentials": credentials.to_dict()})

    def _safe_log(self, message: str, detail: Any = None) -> None:
        try:
            if detail is None:
                self._log(message)
            else:
                self._log(message, detail)
        except Exception:
            logger.warning("Logging collaborator failed for message: %s", message, exc_info=True)


def create_auth_scheme(
    auth_fun: FunctionDefinition,
    fun_runtime: str,
    fun_name: str,
    endpoint_path: str,
    options: OfflineOptions,
    serverless_log: LogFunc = serverless_log,
    *,
    env_guard: EnvironmentGuard | None = None,
) -> AuthorizationSchemeEvaluator:
    """Validate *auth_fun* and build its evaluator.

    Args:
        auth_fun: The authorizer function definition.
        fun_runtime: Runtime the authorizer code runs in.
        fun_name: Name of the function serving the protected route.
        endpoint_path: Resource path of the route as registered.
        options: Simulated deployment options.
        serverless_log: Logging collaborator ``(message, detail=None)``.
        env_guard: Environment guard to use instead of the process-wide one.

    Raises:
        ConfigurationError: If the authorizer cannot be supported.
    """
    config = build_authorizer_config(auth_fun, fun_runtime, fun_name, endpoint_path, options)
    return AuthorizationSchemeEvaluator(config, options, log=serverless_log, env_guard=env_guard)
