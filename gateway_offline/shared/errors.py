"""Error types raised and surfaced by the offline authenticator."""

from __future__ import annotations

from typing import Any

from gateway_offline.shared.constants import (
    STATUS_FORBIDDEN,
    STATUS_INTERNAL_ERROR,
    STATUS_UNAUTHORIZED,
)


class ConfigurationError(ValueError):
    """Raised when an authorizer definition cannot be supported."""


class VariableResolutionError(ValueError):
    """Raised when a ``${...}`` variable in a function definition cannot be resolved."""


class InvocationStartError(RuntimeError):
    """Raised when the handler of a function cannot be created or loaded."""


_ERROR_NAMES = {
    STATUS_UNAUTHORIZED: "Unauthorized",
    STATUS_FORBIDDEN: "Forbidden",
    STATUS_INTERNAL_ERROR: "Internal Server Error",
}


class GatewayError(Exception):
    """HTTP-shaped error handed to the response channel.

    Carries the status code, the standard error name for that status and
    a human-readable message.  ``cause`` holds the underlying exception
    for internal errors, if any.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        *,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error = _ERROR_NAMES.get(status_code, "Error")
        self.message = message
        self.cause = cause

    @classmethod
    def unauthorized(cls, message: str = "Unauthorized") -> GatewayError:
        return cls(STATUS_UNAUTHORIZED, message)

    @classmethod
    def forbidden(cls, message: str) -> GatewayError:
        return cls(STATUS_FORBIDDEN, message)

    @classmethod
    def bad_implementation(
        cls,
        message: str,
        *,
        cause: BaseException | None = None,
    ) -> GatewayError:
        return cls(STATUS_INTERNAL_ERROR, message, cause=cause)

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= STATUS_INTERNAL_ERROR

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body sent back to the client."""
        return {
            "statusCode": self.status_code,
            "error": self.error,
            "message": self.message,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GatewayError):
            return NotImplemented
        return (self.status_code, self.message) == (other.status_code, other.message)

    def __hash__(self) -> int:
        return hash((self.status_code, self.message))

    def __repr__(self) -> str:
        return f"GatewayError({self.status_code}, {self.message!r})"
