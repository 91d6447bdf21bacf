"""Offline TOKEN authorizer emulation."""

from gateway_offline.auth.events import GatewayRequest
from gateway_offline.auth.policy import Credentials
from gateway_offline.auth.reply import AuthResponse, RecordingReply
from gateway_offline.auth.scheme import (
    AuthorizationSchemeEvaluator,
    AuthorizerConfig,
    create_auth_scheme,
)

__all__ = [
    "AuthorizationSchemeEvaluator",
    "AuthorizerConfig",
    "AuthResponse",
    "Credentials",
    "GatewayRequest",
    "RecordingReply",
    "create_auth_scheme",
]
