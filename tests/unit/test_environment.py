"""Unit tests for the environment guard."""

from __future__ import annotations

import os
from unittest.mock import patch

from gateway_offline.functions.environment import EnvironmentGuard, process_guard, to_plain_or_empty_dict


class TestToPlainOrEmptyDict:
    def test_mapping_stringified(self) -> None:
        assert to_plain_or_empty_dict({"A": 1, "B": None, "C": "c"}) == {"A": "1", "B": "", "C": "c"}

    def test_non_mapping_is_empty(self) -> None:
        assert to_plain_or_empty_dict(None) == {}
        assert to_plain_or_empty_dict(["A=1"]) == {}
        assert to_plain_or_empty_dict("A=1") == {}


class TestEnvironmentGuard:
    def test_apply_sets_variables(self) -> None:
        environ = {"KEEP": "1"}
        guard = EnvironmentGuard(environ)
        guard.apply({"NEW": "x"})

        assert environ == {"KEEP": "1", "NEW": "x"}
        assert guard.applied == {"NEW": "x"}

    def test_apply_removes_previous_set(self) -> None:
        environ: dict[str, str] = {}
        guard = EnvironmentGuard(environ)
        guard.apply({"FIRST": "1", "SHARED": "a"})
        guard.apply({"SHARED": "b"})

        assert environ == {"SHARED": "b"}

    def test_overwritten_baseline_restored(self) -> None:
        environ = {"PATH_LIKE": "original"}
        guard = EnvironmentGuard(environ)
        guard.apply({"PATH_LIKE": "override"})
        assert environ["PATH_LIKE"] == "override"

        guard.apply({})
        assert environ == {"PATH_LIKE": "original"}

    def test_restore(self) -> None:
        environ = {"A": "base"}
        guard = EnvironmentGuard(environ)
        guard.apply({"A": "x", "B": "y"})
        guard.restore()

        assert environ == {"A": "base"}
        assert guard.applied == {}

    def test_defaults_to_process_environment(self) -> None:
        with patch.dict(os.environ, {}):
            os.environ.pop("GUARD_TEST_VAR", None)
            guard = EnvironmentGuard()
            guard.apply({"GUARD_TEST_VAR": "on"})
            assert os.environ["GUARD_TEST_VAR"] == "on"
            guard.restore()
            assert "GUARD_TEST_VAR" not in os.environ


class TestProcessGuard:
    def test_single_shared_instance(self) -> None:
        assert process_guard() is process_guard()

    def test_tracks_process_environment(self) -> None:
        with patch.dict(os.environ, {}):
            os.environ.pop("GUARD_TEST_VAR", None)
            process_guard().apply({"GUARD_TEST_VAR": "on"})
            assert os.environ["GUARD_TEST_VAR"] == "on"
            process_guard().apply({})
            assert "GUARD_TEST_VAR" not in os.environ
