"""Inbound request shape and authorization event construction."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from gateway_offline.shared.constants import (
    ARN_ACCOUNT_PLACEHOLDER,
    ARN_API_PLACEHOLDER,
    AUTHORIZER_TYPE_TOKEN,
    METHOD_ARN_TEMPLATE,
)


@dataclass(frozen=True)
class GatewayRequest:
    """The parts of an inbound HTTP request the authenticator reads.

    Header names are lower-cased on construction so lookups are
    case-insensitive.
    """

    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(
            self,
            "headers",
            {str(name).lower(): value for name, value in self.headers.items()},
        )

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())


def build_method_arn(region: str, stage: str, function_name: str, endpoint_path: str) -> str:
    """Synthesize the method ARN; account and API ids are placeholders."""
    return METHOD_ARN_TEMPLATE.format(
        region=region,
        account=ARN_ACCOUNT_PLACEHOLDER,
        api=ARN_API_PLACEHOLDER,
        stage=stage,
        function_name=function_name,
        endpoint_path=endpoint_path,
    )


def build_authorization_event(token: str | None, method_arn: str) -> dict[str, Any]:
    """Build the TOKEN authorizer event passed to the authorizer function."""
    return {
        "type": AUTHORIZER_TYPE_TOKEN,
        "authorizationToken": token,
        "methodArn": method_arn,
    }
