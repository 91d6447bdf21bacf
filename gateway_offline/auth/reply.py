"""Response channel between the authenticator and the request pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from gateway_offline.shared.errors import GatewayError

logger = logging.getLogger(__name__)

KIND_CONTINUE = "continue"
KIND_ERROR = "error"


class Reply(Protocol):
    """What the authenticator needs from the pipeline."""

    def proceed(self, data: dict[str, Any]) -> None:
        """Continue processing the request with *data* (the credentials)."""

    def error(self, error: GatewayError) -> None:
        """Answer the request with *error*."""


@dataclass(frozen=True)
class AuthResponse:
    """A recorded authenticator response."""

    kind: str
    data: dict[str, Any] | None = None
    error: GatewayError | None = None

    @property
    def status_code(self) -> int:
        return self.error.status_code if self.error is not None else 200

    @property
    def credentials(self) -> dict[str, Any] | None:
        return (self.data or {}).get("credentials")


class RecordingReply:
    """Reply that keeps the first response it receives."""

    def __init__(self) -> None:
        self.response: AuthResponse | None = None
        self.calls = 0

    def proceed(self, data: dict[str, Any]) -> None:
        self._record(AuthResponse(KIND_CONTINUE, data=data))

    def error(self, error: GatewayError) -> None:
        self._record(AuthResponse(KIND_ERROR, error=error))

    def _record(self, response: AuthResponse) -> None:
        self.calls += 1
        if self.response is not None:
            logger.warning("Reply already sent, dropping %s response", response.kind)
            return
        self.response = response
