"""Process environment handling between function invocations.

Every emulated function runs in the same process, so the variables a
function declares are written into ``os.environ`` right before it is
invoked.  ``EnvironmentGuard`` remembers what it changed so the next
``apply`` starts from the baseline again.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Mapping, MutableMapping
from typing import Any

logger = logging.getLogger(__name__)

# Marker for variables that did not exist before the guard touched them
_MISSING = object()


def to_plain_or_empty_dict(value: Any) -> dict[str, str]:
    """Return *value* as a ``str -> str`` dict, or ``{}`` if it is not a mapping."""
    if not isinstance(value, Mapping):
        return {}
    return {str(key): "" if item is None else str(item) for key, item in value.items()}


class EnvironmentGuard:
    """Owns the variables applied to a process environment.

    The guard is a single mutable resource: ``apply`` and ``restore`` are
    serialized with a lock, and the last writer wins.
    """

    def __init__(self, environ: MutableMapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ
        self._lock = threading.Lock()
        self._baseline: dict[str, Any] = {}
        self._applied: dict[str, str] = {}

    @property
    def applied(self) -> dict[str, str]:
        """The variable set written by the last ``apply``."""
        return dict(self._applied)

    def apply(self, new_vars: Mapping[str, str]) -> None:
        """Reset to the baseline, then write *new_vars*."""
        with self._lock:
            self._reset_locked()
            for key, value in new_vars.items():
                self._baseline[key] = self._environ.get(key, _MISSING)
                self._environ[key] = value
            self._applied = dict(new_vars)
        logger.debug("Applied %d environment variables", len(new_vars))

    def restore(self) -> None:
        """Undo the last ``apply``."""
        with self._lock:
            self._reset_locked()

    def _reset_locked(self) -> None:
        for key, original in self._baseline.items():
            if original is _MISSING:
                self._environ.pop(key, None)
            else:
                self._environ[key] = original
        self._baseline = {}
        self._applied = {}


_process_guard = EnvironmentGuard()


def process_guard() -> EnvironmentGuard:
    """Return the guard shared by every evaluator writing to ``os.environ``."""
    return _process_guard
