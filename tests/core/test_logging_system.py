"""Unit tests for the logging system with platform-aware paths and rotation."""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from flightroute.core.logging_system import (
    LoggerMixin,
    LoggingError,
    get_logger,
    get_platform_log_dir,
    initialize_logging,
    rotate_logs,
    shutdown_logging,
)

FILE_LOGGING_YAML = """
level: DEBUG
combined_log:
  enabled: true
  filename: flightroute.log
  backup_count: 3
components:
  flightroute.quiet:
    enabled: false
  flightroute.terse:
    level: ERROR
"""


@pytest.fixture
def file_logging_config(tmp_path):
    """Logging YAML enabling the combined log file."""
    path = tmp_path / "logging.yaml"
    path.write_text(FILE_LOGGING_YAML)
    return path


@pytest.fixture(autouse=True)
def reset_logging():
    """Leave the logging system uninitialized after every test."""
    yield
    shutdown_logging()


class TestPlatformLogDir:
    """Tests for get_platform_log_dir function."""

    def test_macos_log_dir(self) -> None:
        """Test macOS log directory path."""
        with patch("platform.system", return_value="Darwin"):
            assert get_platform_log_dir() == Path.home() / "Library" / "Logs" / "FlightRoute"

    def test_linux_log_dir(self) -> None:
        """Test Linux log directory path."""
        with patch("platform.system", return_value="Linux"):
            assert get_platform_log_dir() == Path.home() / ".flightroute" / "logs"

    def test_windows_log_dir(self) -> None:
        """Test Windows log directory path."""
        with patch("platform.system", return_value="Windows"):
            with patch.dict("os.environ", {"APPDATA": "C:/Users/Test/AppData/Roaming"}):
                log_dir = get_platform_log_dir()
                assert log_dir.parts[-2:] == ("FlightRoute", "Logs")


class TestLogRotation:
    """Tests for log rotation functionality."""

    def test_rotate_without_log_does_nothing(self, tmp_path) -> None:
        """Test rotation when no log file exists."""
        rotate_logs(tmp_path, "test.log", 5)
        assert list(tmp_path.iterdir()) == []

    def test_rotate_shifts_old_logs(self, tmp_path) -> None:
        """Test rotation renames the current log and shifts older ones."""
        (tmp_path / "test.log").write_text("current")
        (tmp_path / "test.log.1").write_text("previous-1")
        (tmp_path / "test.log.2").write_text("previous-2")

        rotate_logs(tmp_path, "test.log", 5)

        assert not (tmp_path / "test.log").exists()
        assert (tmp_path / "test.log.1").read_text() == "current"
        assert (tmp_path / "test.log.2").read_text() == "previous-1"
        assert (tmp_path / "test.log.3").read_text() == "previous-2"

    def test_rotate_deletes_beyond_keep_count(self, tmp_path) -> None:
        """Test that the oldest log beyond keep_count is deleted."""
        (tmp_path / "test.log").write_text("current")
        (tmp_path / "test.log.1").write_text("old-1")
        (tmp_path / "test.log.2").write_text("old-2")

        rotate_logs(tmp_path, "test.log", keep_count=2)

        assert (tmp_path / "test.log.1").read_text() == "current"
        assert (tmp_path / "test.log.2").read_text() == "old-1"
        assert not (tmp_path / "test.log.3").exists()


class TestLoggingInitialization:
    """Tests for logging system initialization."""

    def test_default_config_installs_no_file(self, tmp_path) -> None:
        """Test that the default configuration writes no log file."""
        with patch(
            "flightroute.core.logging_system.get_platform_log_dir", return_value=tmp_path
        ):
            initialize_logging(use_platform_dir=True)
            get_logger("flightroute.test").warning("Silent by default")

        assert list(tmp_path.iterdir()) == []

    def test_missing_config_raises(self) -> None:
        """Test initialization fails with a missing config file."""
        with pytest.raises(LoggingError, match="Logging config file not found"):
            initialize_logging(config_path="/nonexistent/config.yaml")

    def test_invalid_yaml_raises(self, tmp_path) -> None:
        """Test initialization fails with a malformed config file."""
        path = tmp_path / "broken.yaml"
        path.write_text("level: [DEBUG\n")

        with pytest.raises(LoggingError, match="Failed to load logging config"):
            initialize_logging(config_path=path)

    def test_file_logging_writes_messages(self, tmp_path, file_logging_config) -> None:
        """Test that logger messages reach the combined log file."""
        with patch(
            "flightroute.core.logging_system.get_platform_log_dir", return_value=tmp_path
        ):
            initialize_logging(file_logging_config, use_platform_dir=True)
            logger = get_logger("flightroute.test")
            logger.info("Assembled %s -> %s", "KORD", "KDEN")
            logger.debug("Debug message")
            shutdown_logging()

        content = (tmp_path / "flightroute.log").read_text()
        assert "Assembled KORD -> KDEN" in content
        assert "Debug message" in content

    def test_startup_rotates_previous_session(self, tmp_path, file_logging_config) -> None:
        """Test that a second initialization rotates the first session's log."""
        with patch(
            "flightroute.core.logging_system.get_platform_log_dir", return_value=tmp_path
        ):
            initialize_logging(file_logging_config, use_platform_dir=True)
            get_logger("flightroute.test").info("First session")
            shutdown_logging()

            initialize_logging(file_logging_config, use_platform_dir=True)
            get_logger("flightroute.test").info("Second session")
            shutdown_logging()

        assert "First session" in (tmp_path / "flightroute.log.1").read_text()
        current = (tmp_path / "flightroute.log").read_text()
        assert "Second session" in current
        assert "First session" not in current

    def test_component_levels(self, tmp_path, file_logging_config) -> None:
        """Test that components can be disabled or given their own level."""
        with patch(
            "flightroute.core.logging_system.get_platform_log_dir", return_value=tmp_path
        ):
            initialize_logging(file_logging_config, use_platform_dir=True)

            assert get_logger("flightroute.quiet").disabled
            assert get_logger("flightroute.terse").level == logging.ERROR


class TestLoggerFunctionality:
    """Tests for logger creation and usage."""

    def test_get_logger_caches_loggers(self) -> None:
        """Test that loggers are cached and reused."""
        first = get_logger("flightroute.cached")
        second = get_logger("flightroute.cached")

        assert isinstance(first, logging.Logger)
        assert first is second
        assert first.name == "flightroute.cached"

    def test_logger_mixin(self, caplog) -> None:
        """Test that the mixin logs through its attached component logger."""

        class Component(LoggerMixin):
            def __init__(self) -> None:
                self.attach_logger("flightroute.component")

        component = Component()
        with caplog.at_level(logging.INFO, logger="flightroute.component"):
            component.log_info("Loaded %d legs", 4)
            component.log_warning("Nothing found for %s. Ignoring.", "ZZZZZ")

        assert "Loaded 4 legs" in caplog.text
        assert "Nothing found for ZZZZZ. Ignoring." in caplog.text

    def test_logger_mixin_without_logger_is_silent(self) -> None:
        """Test that logging before attach_logger is a no-op."""
        LoggerMixin().log_error("never logged")
