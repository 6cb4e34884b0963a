"""Logging system for the route planner components.

This module provides a logging setup driven by YAML configuration, with
per-component loggers, platform-aware log locations and startup-based
rotation of the combined log file.

Platform-specific log locations (used when file logging is enabled):
    - macOS: ~/Library/Logs/FlightRoute/flightroute.log
    - Linux: ~/.flightroute/logs/flightroute.log
    - Windows: %AppData%/FlightRoute/Logs/flightroute.log

The planner is an in-memory library, so the default configuration installs no
handler at all; host applications call initialize_logging() with their own
YAML file to enable console or file output.

Typical usage example:
    from flightroute.core.logging_system import get_logger

    logger = get_logger(__name__)
    logger.warning("Nothing found for %s. Ignoring.", ident)
"""

import logging
import logging.handlers
import os
import platform
import time
from pathlib import Path
from typing import Any

import yaml

_logging_config: dict[str, Any] = {}
_loggers_cache: dict[str, logging.Logger] = {}
_installed_handlers: list[logging.Handler] = []
_initialized = False


class LoggingError(Exception):
    """Raised when logging system operations fail."""


def get_platform_log_dir() -> Path:
    """Get platform-specific log directory.

    Returns:
        Path to the platform-appropriate log directory.
    """
    system = platform.system()

    if system == "Darwin":
        return Path.home() / "Library" / "Logs" / "FlightRoute"
    elif system == "Windows":
        appdata = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return appdata / "FlightRoute" / "Logs"
    else:
        return Path.home() / ".flightroute" / "logs"


def rotate_logs(
    log_dir: Path, log_filename: str = "flightroute.log", keep_count: int = 5
) -> None:
    """Rotate logs on startup, keeping the last N runs.

    Renames the current log to flightroute.log.1, shifts older logs and
    deletes logs beyond keep_count.

    Args:
        log_dir: Directory containing log files.
        log_filename: Base name of the log file.
        keep_count: Number of old logs to keep.
    """
    log_file = log_dir / log_filename

    if not log_file.exists():
        return

    oldest_log = log_dir / f"{log_filename}.{keep_count}"
    if oldest_log.exists():
        oldest_log.unlink()

    for i in range(keep_count - 1, 0, -1):
        old_log = log_dir / f"{log_filename}.{i}"
        new_log = log_dir / f"{log_filename}.{i + 1}"
        if old_log.exists():
            old_log.rename(new_log)

    log_file.rename(log_dir / f"{log_filename}.1")


def initialize_logging(
    config_path: str | Path | None = None, use_platform_dir: bool = False
) -> None:
    """Initialize the logging system from YAML configuration.

    Can be called again to reconfigure; handlers installed by a previous call
    are removed first, handlers installed by the host application are kept.

    Args:
        config_path: Path to logging configuration YAML file.
            If None, uses the default (silent) configuration.
        use_platform_dir: If True, write log files to the platform-specific
            log directory instead of the directory from the config.

    Raises:
        LoggingError: If the configuration cannot be loaded.

    Examples:
        >>> initialize_logging("config/logging.yaml")
        >>> log = get_logger("flightroute.assembler")
        >>> log.info("Logging initialized")
    """
    global _logging_config, _initialized

    if config_path:
        config_path = Path(config_path)
        if not config_path.exists():
            raise LoggingError(f"Logging config file not found: {config_path}")

        try:
            with config_path.open("r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise LoggingError(f"Failed to load logging config: {e}") from e

        _logging_config = _merge_with_defaults(loaded)
    else:
        _logging_config = _get_default_config()

    if use_platform_dir:
        _logging_config["log_dir"] = str(get_platform_log_dir())

    if _logging_config["combined_log"].get("enabled", False):
        log_dir = Path(_logging_config.get("log_dir", "logs"))
        log_dir.mkdir(parents=True, exist_ok=True)
        rotate_logs(
            log_dir,
            _logging_config["combined_log"].get("filename", "flightroute.log"),
            _logging_config["combined_log"].get("backup_count", 5),
        )

    _configure_root_logger()
    _apply_component_levels()

    _initialized = True


def _get_default_config() -> dict[str, Any]:
    return {
        "version": 1,
        "level": "INFO",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        "date_format": "%Y-%m-%d %H:%M:%S",
        "log_dir": "logs",
        "combined_log": {
            "enabled": False,
            "filename": "flightroute.log",
            "backup_count": 5,
        },
        "console": {
            "enabled": False,
            "level": "INFO",
        },
        "components": {},
    }


def _merge_with_defaults(loaded: dict[str, Any]) -> dict[str, Any]:
    config = _get_default_config()
    for key, value in loaded.items():
        if isinstance(value, dict) and isinstance(config.get(key), dict):
            config[key] = {**config[key], **value}
        else:
            config[key] = value
    return config


def _configure_root_logger() -> None:
    root_logger = logging.getLogger()

    for handler in _installed_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    if _logging_config.get("console", {}).get("enabled", False):
        console_handler = logging.StreamHandler()
        console_level = _logging_config.get("console", {}).get("level", "INFO")
        console_handler.setLevel(getattr(logging, console_level))
        console_handler.setFormatter(_get_formatter())
        root_logger.addHandler(console_handler)
        _installed_handlers.append(console_handler)

    if _logging_config.get("combined_log", {}).get("enabled", False):
        combined_config = _logging_config["combined_log"]
        log_dir = Path(_logging_config.get("log_dir", "logs"))
        log_file = log_dir / combined_config.get("filename", "flightroute.log")

        # Rotation already happened on startup, start a fresh file
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(_get_formatter())
        root_logger.addHandler(file_handler)
        _installed_handlers.append(file_handler)

    if _installed_handlers:
        root_logger.setLevel(getattr(logging, _logging_config.get("level", "INFO")))


def _apply_component_levels() -> None:
    for name, component_config in _logging_config.get("components", {}).items():
        logger = logging.getLogger(name)
        if not component_config.get("enabled", True):
            logger.disabled = True
        elif "level" in component_config:
            logger.setLevel(getattr(logging, component_config["level"]))


class MillisecondFormatter(logging.Formatter):
    """Formatter that appends milliseconds with a dot separator."""

    def formatTime(self, record, datefmt=None):
        """Format time with milliseconds using dot separator."""
        ct = self.converter(record.created)
        if datefmt:
            s = time.strftime(datefmt, ct)
        else:
            s = time.strftime("%Y-%m-%d %H:%M:%S", ct)
        return f"{s}.{int(record.msecs):03d}"


def _get_formatter() -> logging.Formatter:
    fmt = _logging_config.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    datefmt = _logging_config.get("date_format", "%Y-%m-%d %H:%M:%S")
    return MillisecondFormatter(fmt, datefmt)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a component.

    Loggers are cached and reused. A component can get its own level or be
    disabled in the 'components' section of the logging YAML.

    Args:
        name: Logger name (typically the module name).

    Returns:
        Configured logger instance.

    Note:
        Use lazy formatting (%) instead of f-strings.
    """
    if not _initialized:
        initialize_logging()

    if name in _loggers_cache:
        return _loggers_cache[name]

    logger = logging.getLogger(name)
    component_config = _logging_config.get("components", {}).get(name, {})
    if not component_config.get("enabled", True):
        logger.disabled = True
    elif "level" in component_config:
        logger.setLevel(getattr(logging, component_config["level"]))

    _loggers_cache[name] = logger
    return logger


def shutdown_logging() -> None:
    """Flush and close all handlers installed by initialize_logging()."""
    global _initialized

    root_logger = logging.getLogger()
    for handler in _installed_handlers:
        handler.flush()
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()
    _loggers_cache.clear()
    _initialized = False


class LoggerMixin:
    """Mixin class to add a component logger to any class.

    Examples:
        >>> class Session(LoggerMixin):
        ...     def __init__(self):
        ...         self.attach_logger("flightroute.session")
    """

    def attach_logger(self, name: str) -> None:
        """Attach a logger to this instance.

        Args:
            name: Logger name to use.
        """
        self._log = get_logger(name)

    def log_debug(self, message: str, *args: Any) -> None:
        """Log a debug message."""
        if hasattr(self, "_log"):
            self._log.debug(message, *args)

    def log_info(self, message: str, *args: Any) -> None:
        """Log an info message."""
        if hasattr(self, "_log"):
            self._log.info(message, *args)

    def log_warning(self, message: str, *args: Any) -> None:
        """Log a warning message."""
        if hasattr(self, "_log"):
            self._log.warning(message, *args)

    def log_error(self, message: str, *args: Any, exc_info: bool = False) -> None:
        """Log an error message."""
        if hasattr(self, "_log"):
            self._log.error(message, *args, exc_info=exc_info)
