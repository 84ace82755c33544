"""
nearweb3 Logging System
=======================

A unified, thread-safe logging utility for the provider. This module integrates
with the standard Python `logging` library and the `rich` library to provide
structured, safe, and visually distinct logging outputs.

Usage:
    >>> from nearweb3.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Provider started")
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_LEVEL,
    LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_MAX_FILE_SIZE,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_FILE_OUTPUT,
)


PROJECT_ROOT = Path(__file__).parent.parent
LOG_FILE_PATH = PROJECT_ROOT / "logs" / "nearweb3.log"


class LogManager:
    """
    Manages logging configuration via the Singleton pattern.

    This class ensures that the logging subsystem is initialized exactly once.
    It handles the setup of the 'Rich' console handler and, when enabled, a
    rotating file handler.
    """

    _instance: Optional["LogManager"] = None
    _lock: threading.Lock = threading.Lock()

    def __new__(cls) -> "LogManager":
        # Double-checked locking pattern for thread-safe singleton initialization
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return
        self._configured = False
        self._initialized = True

    @staticmethod
    def validate_log_format(log_format: str) -> str:
        """
        Validates a logging format string by formatting a dummy record.

        Returns:
            str: The validated format string, or the default `LOG_FORMAT` if
            validation fails.
        """
        if not log_format:
            return str(LOG_FORMAT.default())
        try:
            formatter = logging.Formatter(fmt=str(log_format))
            record = logging.LogRecord(
                name="test", level=logging.INFO, pathname="", lineno=0,
                msg="test", args=(), exc_info=None,
            )
            formatter.format(record)
            return str(log_format)
        except (ValueError, KeyError, TypeError) as e:
            print(
                f"{time.strftime('%Y-%m-%d %H:%M:%S')} - nearweb3.logger - "
                f"Validation Error: {e}. Using default.",
                file=sys.stderr,
            )
            return str(LOG_FORMAT.default())

    @staticmethod
    def validate_date_format(date_format: str) -> str:
        """Validates a strftime date format, falling back to the default."""
        if not date_format:
            return str(LOG_DATE_FORMAT.default())
        try:
            time.strftime(str(date_format))
        except ValueError:
            return str(LOG_DATE_FORMAT.default())
        return str(date_format)

    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
    ) -> None:
        """
        Configures the root logger with console and file handlers.

        Args:
            log_level (Optional[str]): Logging level (DEBUG, INFO, etc.). Defaults to env var.
            log_file (Optional[Path]): Path to the log file. Defaults to `logs/nearweb3.log`.
            console_output (bool): Enable console logging. Defaults to True.
            file_output (Optional[bool]): Enable rotating file logging. Defaults to env var.
        """
        with self._lock:
            if self._configured:
                return

            level_str = log_level or LOG_LEVEL
            numeric_level = getattr(logging, str(level_str).upper(), logging.INFO)

            root_logger = logging.getLogger()
            root_logger.setLevel(numeric_level)

            # Upstream request chatter drowns out the translation logs
            for lib in ["httpx", "httpcore", "uvicorn.access"]:
                logging.getLogger(lib).setLevel(logging.WARNING)
            for lib in ["uvicorn.error", "uvicorn", "uvicorn.asgi"]:
                logging.getLogger(lib).setLevel(logging.ERROR)

            root_logger.handlers.clear()

            log_format = self.validate_log_format(LOG_FORMAT)
            date_format = self.validate_date_format(LOG_DATE_FORMAT)

            formatter = TerminalSafeFormatter(fmt=log_format, datefmt=date_format + " UTC")
            formatter.converter = time.gmtime

            if console_output:
                if LOG_CONSOLE_HIGHLIGHTING:
                    theme = Theme(
                        {
                            "nearweb3.level_critical": "bold red reverse",
                            "nearweb3.level_debug":    "bold dim",
                            "nearweb3.level_error":    "bold red",
                            "nearweb3.level_info":     "bold green",
                            "nearweb3.level_warning":  "bold yellow",
                            "nearweb3.logger_name":    "magenta",
                            "nearweb3.rpc_method":     "bold white",
                            "nearweb3.hex":            "cyan",
                            "nearweb3.account":        "bold cyan",
                            "nearweb3.timestamp":      "bold cyan",
                            "nearweb3.url":            "cyan",
                        }
                    )
                    rich_handler = RichHandler(
                        console=Console(theme=theme, highlight=False),
                        highlighter=ProviderLogHighlighter(),
                        keywords=[],
                        rich_tracebacks=True,
                        omit_repeated_times=False,
                        show_path=False,
                        show_time=False,
                        show_level=False,
                        markup=False,
                    )
                    rich_handler.setLevel(numeric_level)
                    rich_handler.setFormatter(formatter)
                    root_logger.addHandler(rich_handler)
                else:
                    console_handler = logging.StreamHandler(sys.stdout)
                    console_handler.setLevel(numeric_level)
                    console_handler.setFormatter(formatter)
                    root_logger.addHandler(console_handler)

            if LOG_FILE_OUTPUT if file_output is None else file_output:
                log_file_path = log_file or LOG_FILE_PATH
                log_file_path.parent.mkdir(parents=True, exist_ok=True)

                file_handler = logging.handlers.RotatingFileHandler(
                    filename=str(log_file_path),
                    maxBytes=LOG_MAX_FILE_SIZE,
                    backupCount=LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
                file_handler.setLevel(numeric_level)
                file_handler.setFormatter(formatter)
                root_logger.addHandler(file_handler)

            self._configured = True

    def get_logger(self, name: str) -> logging.Logger:
        """Retrieves a logger, configuring the subsystem on first use."""
        if not self._configured:
            self.configure()
        return logging.getLogger(name)

    @property
    def is_configured(self) -> bool:
        return self._configured


class TerminalSafeFormatter(logging.Formatter):
    """
    A formatter that strips ANSI escape sequences and control characters.

    Request parameters are logged verbatim, so anything a client sends could
    otherwise manipulate the operator's terminal.
    """

    _ansi_escape_re = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"
        r"|\x1b[@-Z\\-_]"
    )
    _control_chars_re = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
    _carriage_return_re = re.compile(r"\r")

    @classmethod
    def sanitize(cls, text: str) -> str:
        if not text:
            return text
        text = cls._ansi_escape_re.sub("", text)
        text = cls._carriage_return_re.sub("", text)
        text = cls._control_chars_re.sub("", text)
        return text

    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class ProviderLogHighlighter(RegexHighlighter):
    """Highlights RPC method names, hex values and NEAR account ids."""

    base_style = "nearweb3."
    highlights = [
        r"(?P<level_critical>\bCRITICAL\b)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_error>\bERROR\b)",
        r"(?P<level_info>\bINFO\b)",
        r"(?P<level_warning>\bWARNING\b)",
        r"\-\s+\w+\s+-\s+(?P<logger_name>[\w.]+)(?=\s-\s)",
        r"(?P<rpc_method>\b(eth|net|web3|near)_[A-Za-z]+\b)",
        r"(?P<hex>\b0x[0-9a-fA-F]+\b)",
        r"(?P<account>(?<=:)[a-z\d][a-z\d\-_.]*[a-z\d]\b)",
        r"(?P<timestamp>^(.*?)UTC)",
        r"(?P<url>https?://\S+)",
    ]


_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    """
    Public accessor of the logging system.
    Delegates to the Singleton LogManager, ensuring configuration is applied.
    """
    return _manager.get_logger(name)
