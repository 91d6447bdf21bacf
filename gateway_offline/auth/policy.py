"""Validation of authorizer policies and translation into credentials.

The policy returned by an authorizer function is untrusted.  Validation
stops at the first failed rule and raises a ``PolicyValidationError``
carrying both the HTTP error for the client and the message to log.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from gateway_offline.shared.constants import (
    ALLOWED_CONTEXT_TYPE_NAMES,
    ALLOWED_CONTEXT_TYPES,
    INVALID_POLICY_SEQUENCE,
)
from gateway_offline.shared.errors import GatewayError

ContextValue = str | int | float | bool


@dataclass(frozen=True)
class Credentials:
    """Identity handed to the rest of the request pipeline."""

    user: str
    context: dict[str, ContextValue] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"user": self.user}
        if self.context is not None:
            data["context"] = self.context
        return data


class PolicyValidationError(Exception):
    """Raised when a policy fails one of the validation rules."""

    def __init__(self, log_message: str, response: GatewayError) -> None:
        super().__init__(response.message)
        self.log_message = log_message
        self.response = response


def serialize_policy(policy: Any) -> str:
    """Serialize *policy* compactly for diagnostics.

    Falls back to ``repr`` for policies JSON cannot encode (e.g. non-string keys).
    """
    try:
        return json.dumps(policy, separators=(",", ":"), ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(policy)


def find_invalid_sequence(serialized: str) -> int:
    """Return the position of an escaped double quote, or ``-1``.

    This only catches policies built from double-encoded strings; it is
    not a full well-formedness check.
    """
    return serialized.find(INVALID_POLICY_SEQUENCE)


def _get(policy: Any, key: str) -> Any:
    if isinstance(policy, Mapping):
        return policy.get(key)
    return None


def validate_policy(policy: Any) -> Credentials:
    """Validate *policy* and build the credentials it grants.

    Raises:
        PolicyValidationError: On the first rule the policy breaks.
    """
    serialized = serialize_policy(policy)
    position = find_invalid_sequence(serialized)
    if position != -1:
        raise PolicyValidationError(
            f"Invalid auth data at position {position}",
            GatewayError.bad_implementation(
                f"Invalid auth data at position {position}. Data: {serialized}"
            ),
        )

    principal_id = _get(policy, "principalId")
    if not principal_id:
        raise PolicyValidationError(
            "Authorization response did not include a principalId",
            GatewayError.forbidden("No principalId set on the Response"),
        )

    if not isinstance(principal_id, str):
        raise PolicyValidationError(
            "Authorization response error: principalId can be only a String",
            GatewayError.bad_implementation("principalId is not a string"),
        )

    context = _get(policy, "context")
    if context is None:
        return Credentials(user=principal_id)

    if not isinstance(context, Mapping):
        type_name = type(context).__name__
        raise PolicyValidationError(
            f"Authorization response context has type {type_name}, expected an object",
            GatewayError.bad_implementation(f"Not allowed context type {type_name}"),
        )

    for key, value in context.items():
        if not isinstance(key, str):
            key_type = type(key).__name__
            raise PolicyValidationError(
                f"Context key {key!r} has type {key_type}, only string keys are allowed",
                GatewayError.bad_implementation(f"Not allowed context key type {key_type}"),
            )
        if not isinstance(value, ALLOWED_CONTEXT_TYPES):
            type_name = type(value).__name__
            raise PolicyValidationError(
                f"Context key {key} has type {type_name}, "
                f"allowed only ({', '.join(ALLOWED_CONTEXT_TYPE_NAMES)})",
                GatewayError.bad_implementation(
                    f"Not allowed context key '{key}' of type {type_name}"
                ),
            )

    return Credentials(user=principal_id, context=dict(context))
