"""
Pytest configuration and shared fixtures for spacekit tests.
"""

import io
import json
import os
import stat
import sys
import tarfile
from pathlib import Path
from typing import Callable, Dict

import pytest

from spacekit.tool.executor import ExecResult


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )
    config.addinivalue_line(
        "markers", "posix: marks tests that run shell scripts as fake binaries"
    )


def pytest_runtest_setup(item):
    """Skip tests relying on shell-script binaries on Windows."""
    if "posix" in item.keywords and os.name == "nt":
        pytest.skip("requires a POSIX shell")


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def make_executable(tmp_path) -> Callable[..., Path]:
    """
    Factory creating an executable shell script.

    Example:
        def test_something(make_executable):
            binary = make_executable("bin/spacectl", 'echo \'{"version":"1.2.3"}\'')
    """

    def _make(relative: str, body: str = "exit 0") -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


@pytest.fixture
def release_archive() -> Callable[[Dict[str, bytes]], bytes]:
    """
    Factory building an in-memory .tar.gz release archive.

    Every member is stored with mode 0755.
    """

    def _build(members: Dict[str, bytes]) -> bytes:
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
            for name, content in members.items():
                info = tarfile.TarInfo(name)
                info.size = len(content)
                info.mode = 0o755
                tar.addfile(info, io.BytesIO(content))
        return buffer.getvalue()

    return _build


@pytest.fixture
def version_result() -> Callable[[str], ExecResult]:
    """Factory for the ExecResult of a successful ``version`` call."""

    def _result(version: str) -> ExecResult:
        return ExecResult(
            exit_code=0, stdout=json.dumps({"version": version}), stderr=""
        )

    return _result


@pytest.fixture
def python_exe() -> str:
    """Path of the running interpreter, used as a portable child process."""
    return sys.executable
