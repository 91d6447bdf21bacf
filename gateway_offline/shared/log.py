"""Logging helpers for the offline emulator.

``serverless_log`` is the default logging collaborator handed to the
authenticator.  ``debug_log`` output only shows up when ``SLS_DEBUG`` is
set in the environment at start-up.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable

from gateway_offline.shared.constants import DEBUG_ENV_VAR, LOG_PREFIX

logger = logging.getLogger("gateway_offline")

# Signature of the logging collaborator: (message, optional detail)
LogFunc = Callable[..., None]


def configure_logging() -> None:
    """Attach a stream handler and pick the level from ``SLS_DEBUG``."""
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if os.environ.get(DEBUG_ENV_VAR) else logging.INFO)


def serverless_log(message: str, detail: Any = None) -> None:
    """Log a user-facing message, optionally followed by structured detail."""
    if detail is None:
        logger.info("%s%s", LOG_PREFIX, message)
    else:
        logger.info("%s%s %r", LOG_PREFIX, message, detail)


def debug_log(message: str, *args: Any) -> None:
    logger.debug(message, *args)
