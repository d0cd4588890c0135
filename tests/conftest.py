"""Pytest configuration and fixtures for varakit tests."""

from __future__ import annotations

import logging
import os
import stat
import sys
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from varakit import AllowedCommand, CommandPolicy, ProcessRunner
from varakit.logging_setup import LOGGER_NAME

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="requires POSIX shell and permissions")

FAKE_CARGO = """#!/bin/sh
echo "$*" >> "$FAKE_CARGO_LOG"
case "$1" in
  build)
    profile=debug
    target=
    prev=
    for arg in "$@"; do
      if [ "$arg" = "--release" ]; then profile=release; fi
      if [ "$prev" = "--target" ]; then target=$arg; fi
      prev=$arg
    done
    if [ "${FAKE_CARGO_BUILD_EXIT:-0}" != "0" ]; then
      echo "error[E0425]: cannot find value" >&2
      exit "$FAKE_CARGO_BUILD_EXIT"
    fi
    mkdir -p "target/$target/$profile"
    touch "target/$target/$profile/demo.wasm" "target/$target/$profile/demo.opt.wasm" "target/$target/$profile/demo.idl"
    echo "    Finished $profile"
    ;;
  test)
    echo "running 4 tests"
    echo "test tests::increments ... ok"
    echo "test result: ok. 3 passed; 0 failed; 1 ignored; 0 measured; 0 filtered out"
    echo "test result: ok. 1 passed; 0 failed; 0 ignored; 0 measured; 0 filtered out"
    exit "${FAKE_CARGO_TEST_EXIT:-0}"
    ;;
  sails)
    if [ "${FAKE_SAILS:-1}" = "0" ]; then
      echo "error: no such command: sails" >&2
      exit 101
    fi
    if [ "$2" = "new-program" ]; then
      mkdir -p "$3/src"
      echo "[package]" > "$3/Cargo.toml"
      echo "// program" > "$3/src/lib.rs"
    fi
    ;;
  *)
    exit 2
    ;;
esac
"""

FAKE_RUSTUP = """#!/bin/sh
if [ "${FAKE_RUSTUP_MISSING:-0}" = "1" ]; then
  exit 1
fi
if [ "$1" = "target" ] && [ "$2" = "list" ]; then
  printf '%s\\n' ${FAKE_RUSTUP_TARGETS:-wasm32v1-none}
  exit 0
fi
exit 1
"""


def write_executable(path: Path, content: str | bytes) -> Path:
    """Write a file and mark it executable for everyone."""
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory(prefix="varakit_test_") as tmp:
        yield Path(tmp)


@pytest.fixture
def python_policy() -> CommandPolicy:
    """Policy that allowlists only the running Python interpreter."""
    return CommandPolicy(commands=(AllowedCommand(sys.executable),))


@pytest.fixture
def runner(python_policy: CommandPolicy) -> ProcessRunner:
    """Runner that can execute the running Python interpreter."""
    return ProcessRunner(python_policy, kill_grace_period=0.5)


@pytest.fixture
def workspace(temp_dir: Path) -> Path:
    """Workspace root containing one cargo project called 'counter'."""
    root = temp_dir / "workspace"
    project = root / "counter"
    project.mkdir(parents=True)
    (project / "Cargo.toml").write_text('[package]\nname = "counter"\n')
    return root


@pytest.fixture
def fake_toolchain(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    Put fake cargo and rustup scripts first on PATH.

    Returns the log file where the fake cargo records its arguments.
    """
    if sys.platform == "win32":
        pytest.skip("fake toolchain scripts require /bin/sh")

    bin_dir = temp_dir / "fakebin"
    bin_dir.mkdir()
    write_executable(bin_dir / "cargo", FAKE_CARGO)
    write_executable(bin_dir / "rustup", FAKE_RUSTUP)

    log_file = temp_dir / "cargo.log"
    log_file.touch()

    monkeypatch.setenv("PATH", str(bin_dir) + os.pathsep + os.environ.get("PATH", ""))
    monkeypatch.setenv("FAKE_CARGO_LOG", str(log_file))
    return log_file


@pytest.fixture
def empty_path(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Replace PATH with a single empty directory."""
    empty = temp_dir / "emptybin"
    empty.mkdir()
    monkeypatch.setenv("PATH", str(empty))
    return empty


@pytest.fixture
def clean_package_logger() -> Generator[logging.Logger, None, None]:
    """Remove handlers added to the varakit logger during a test."""
    pkg_logger = logging.getLogger(LOGGER_NAME)
    handlers = list(pkg_logger.handlers)
    level = pkg_logger.level
    try:
        yield pkg_logger
    finally:
        pkg_logger.handlers[:] = handlers
        pkg_logger.setLevel(level)
