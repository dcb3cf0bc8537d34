"""Metadata helpers surfaced by the package and the ``info`` command."""

from __future__ import annotations

import pytest

import lib_log_loghub
from lib_log_loghub import __init__conf__, summary_info


def test_summary_info_contains_metadata() -> None:
    summary = summary_info()

    assert "Info for lib_log_loghub" in summary
    assert f"version       = {__init__conf__.version}" in summary
    assert summary.endswith("\n")


def test_summary_info_is_idempotent() -> None:
    assert summary_info() == summary_info()


def test_print_info_defaults_to_stdout(capsys: pytest.CaptureFixture[str]) -> None:
    __init__conf__.print_info()

    assert capsys.readouterr().out == summary_info()


def test_public_surface_is_exported() -> None:
    for name in lib_log_loghub.__all__:
        assert hasattr(lib_log_loghub, name), name
