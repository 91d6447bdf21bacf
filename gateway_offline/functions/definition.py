"""Function definitions as declared in the service configuration.

Definitions are validated with pydantic.  Before an authorizer reads its
settings the definition is *populated*: deployment-time variables such
as ``${opt:stage}`` are substituted with the simulated stage/region.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from gateway_offline.shared.constants import (
    AUTHORIZER_TYPE_TOKEN,
    DEFAULT_IDENTITY_SOURCE,
    DEFAULT_RESULT_TTL_SECONDS,
)
from gateway_offline.shared.errors import VariableResolutionError

# ${opt:stage}, ${self:provider.region}, ${opt:stage, 'dev'}
_VARIABLE_RE = re.compile(r"\$\{([^}]+)\}")
_DEFAULT_RE = re.compile(r"^\s*(?P<ref>[^,]+?)\s*(?:,\s*(?P<quote>['\"])(?P<default>.*)(?P=quote)\s*)?$")

_KNOWN_REFERENCES = {
    "opt:stage": "stage",
    "self:provider.stage": "stage",
    "opt:region": "region",
    "self:provider.region": "region",
}


class AuthorizerSettings(BaseModel):
    """The ``authorizer`` block of a function definition."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str | None = None
    type: str = AUTHORIZER_TYPE_TOKEN
    identity_source: str = Field(DEFAULT_IDENTITY_SOURCE, alias="identitySource")
    result_ttl_in_seconds: int = Field(DEFAULT_RESULT_TTL_SECONDS, alias="resultTtlInSeconds")


class FunctionDefinition(BaseModel):
    """A single function of the service."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = Field(..., min_length=1)
    handler: str = Field(..., min_length=1)
    runtime: str | None = None
    timeout: int | None = Field(None, ge=1)
    memory_size: int | None = Field(None, alias="memorySize", ge=1)
    environment: dict[str, Any] = Field(default_factory=dict)
    authorizer: AuthorizerSettings = Field(default_factory=AuthorizerSettings)

    def to_object_populated(self, *, stage: str, region: str) -> FunctionDefinition:
        """Return a copy with stage/region variables substituted.

        Raises:
            VariableResolutionError: If a variable cannot be resolved.
        """
        values = {"stage": stage, "region": region}
        raw = self.model_dump(by_alias=True)
        return FunctionDefinition.model_validate(populate_variables(raw, values))


def populate_variables(value: Any, values: dict[str, str]) -> Any:
    """Recursively substitute ``${...}`` references in *value*."""
    if isinstance(value, str):
        return _populate_string(value, values)
    if isinstance(value, dict):
        return {key: populate_variables(item, values) for key, item in value.items()}
    if isinstance(value, list):
        return [populate_variables(item, values) for item in value]
    return value


def _populate_string(text: str, values: dict[str, str]) -> str:
    def replace(match: re.Match[str]) -> str:
        expression = match.group(1)
        parsed = _DEFAULT_RE.match(expression)
        if parsed is None:
            raise VariableResolutionError(f"Invalid variable reference: ${{{expression}}}")

        key = _KNOWN_REFERENCES.get(parsed.group("ref"))
        if key is not None and values.get(key):
            return values[key]
        if parsed.group("default") is not None:
            return parsed.group("default")
        raise VariableResolutionError(f"Unable to resolve variable: ${{{expression}}}")

    return _VARIABLE_RE.sub(replace, text)
