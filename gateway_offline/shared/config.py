"""Offline options loaded from environment variables.

The emulator reads these values once at start-up to decide which
stage/region to simulate and where user function code lives.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from gateway_offline.shared.constants import (
    DEFAULT_REGION,
    DEFAULT_RUNTIME,
    DEFAULT_STAGE,
    DEFAULT_TIMEOUT_SECONDS,
)

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class OfflineOptions:
    """Deployment options shared by every emulated function."""

    stage: str = DEFAULT_STAGE
    region: str = DEFAULT_REGION

    # Directory the function handler paths are relative to
    service_path: str = "."
    provider_runtime: str = DEFAULT_RUNTIME

    # Re-import user code on every invocation unless set
    skip_cache_invalidation: bool = False

    # Disable the invocation timeout timer
    no_timeout: bool = False
    default_timeout: int = DEFAULT_TIMEOUT_SECONDS


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


def load_offline_options() -> OfflineOptions:
    """Build OfflineOptions from environment variables."""
    timeout_str = os.environ.get("DEFAULT_TIMEOUT", "")
    default_timeout = int(timeout_str) if timeout_str else DEFAULT_TIMEOUT_SECONDS

    return OfflineOptions(
        stage=os.environ.get("STAGE", DEFAULT_STAGE),
        region=os.environ.get("AWS_REGION", DEFAULT_REGION),
        service_path=os.environ.get("SERVICE_PATH", "."),
        provider_runtime=os.environ.get("PROVIDER_RUNTIME", DEFAULT_RUNTIME),
        skip_cache_invalidation=_env_flag("SKIP_CACHE_INVALIDATION"),
        no_timeout=_env_flag("NO_TIMEOUT"),
        default_timeout=default_timeout,
    )
