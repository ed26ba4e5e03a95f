# desktopsetup/core/logger.py
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)-28s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_DIR = "~/Library/Logs/DesktopSetup"
LOG_FILE_NAME = "desktopsetup.log"


class LoggerProxy:
    """
    Lazy logger accessor to avoid boilerplate logger setup in each module.
    Usage: log = LoggerProxy(__name__)
    """

    def __init__(self, name: str):
        self._name = name
        self._logger: logging.Logger | None = None

    def _get_logger(self) -> logging.Logger:
        if self._logger is None:
            self._logger = logging.getLogger(self._name)
        return self._logger

    def __getattr__(self, item: str) -> Any:
        return getattr(self._get_logger(), item)


def setup_logging(behavior: dict[str, Any], verbose: bool = False) -> Path | None:
    """
    Sets up logging with rich console output and an optional rotating log file.

    Args:
        behavior: The ``script_behavior`` section of the loaded configuration.
        verbose: Whether to enable DEBUG logging regardless of config.

    Returns:
        The log file path when file logging is active, otherwise None.
    """
    level_str = "DEBUG" if verbose else str(behavior.get("log_level_default", "INFO")).upper()
    level = getattr(logging, level_str, logging.INFO)

    log_format = behavior.get("log_format", DEFAULT_LOG_FORMAT)
    date_format = behavior.get("date_format", DEFAULT_DATE_FORMAT)

    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            markup=False,
            show_time=False,
            show_path=False,
        )
    ]

    log_file_path: Path | None = None
    if behavior.get("log_to_file", False):
        log_dir = Path(behavior.get("log_file_directory", DEFAULT_LOG_DIR)).expanduser()
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file_path = log_dir / LOG_FILE_NAME
            file_handler = RotatingFileHandler(
                log_file_path, maxBytes=5 * 1024 * 1024, backupCount=5
            )
            file_handler.setFormatter(logging.Formatter(log_format, date_format))
            handlers.append(file_handler)
        except OSError as e:
            print(f"ERROR: Could not set up file logging at {log_dir}: {e}", file=sys.stderr)
            log_file_path = None

    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    logging.basicConfig(level=level, format="%(message)s", datefmt=date_format, handlers=handlers)

    LoggerProxy(__name__).debug(
        f"Logging initialized. Level: {level_str}. File logging: {log_file_path or 'off'}"
    )
    return log_file_path
