"""Tests for settings and logging configuration."""

from __future__ import annotations

import io
import logging
import os
from pathlib import Path

import pytest

from varakit import Settings, configure_logging
from varakit.logging_setup import LOGGER_NAME


class TestSettings:
    """Tests for Settings.from_env."""

    def test_defaults(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Defaults are the current directory and INFO."""
        monkeypatch.chdir(temp_dir)
        settings = Settings.from_env({})
        assert settings.workspace_root == os.getcwd()
        assert settings.log_level == "INFO"

    def test_reads_variables(self, temp_dir: Path) -> None:
        """Both variables are read and normalized."""
        settings = Settings.from_env({"VARA_WORKSPACE_ROOT": str(temp_dir), "VARA_LOG_LEVEL": "debug"})
        assert settings.workspace_root == os.path.abspath(temp_dir)
        assert settings.log_level == "DEBUG"

    def test_expands_home(self) -> None:
        """A leading ~ is expanded."""
        settings = Settings.from_env({"VARA_WORKSPACE_ROOT": "~/programs"})
        assert settings.workspace_root == os.path.abspath(os.path.expanduser("~/programs"))

    def test_unknown_level(self) -> None:
        """An unknown level name is rejected."""
        with pytest.raises(ValueError, match="VARA_LOG_LEVEL"):
            Settings.from_env({"VARA_LOG_LEVEL": "chatty"})

    def test_reads_process_environment(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without a mapping, os.environ is used."""
        monkeypatch.setenv("VARA_WORKSPACE_ROOT", str(temp_dir))
        monkeypatch.delenv("VARA_LOG_LEVEL", raising=False)
        assert Settings.from_env().workspace_root == os.path.abspath(temp_dir)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_writes_to_stream(self, clean_package_logger: logging.Logger) -> None:
        """Records from package modules reach the configured stream."""
        stream = io.StringIO()
        configure_logging(logging.DEBUG, stream=stream)
        logging.getLogger("varakit.toolchain").debug("building %s", "counter")
        assert "building counter" in stream.getvalue()
        assert "[varakit.toolchain]" in stream.getvalue()

    def test_idempotent(self, clean_package_logger: logging.Logger) -> None:
        """Repeated calls update the level without adding handlers."""
        first = configure_logging("info", stream=io.StringIO())
        count = len(first.handlers)
        second = configure_logging("warning", stream=io.StringIO())
        assert second is first
        assert len(second.handlers) == count
        assert second.level == logging.WARNING

    def test_returns_package_logger(self, clean_package_logger: logging.Logger) -> None:
        assert configure_logging(stream=io.StringIO()).name == LOGGER_NAME
