"""Logging setup shared by every AITrans module.

Modules call ``LoggerUtils.get_logger(__name__)`` at import time; handlers are attached once by
the entry point through ``LoggerUtils.setup``. Every handler carries ``CredentialRedactFilter``,
so API keys in URLs and bearer tokens never reach the console or the log file.
"""

from __future__ import annotations

import logging
import re
import sys
import warnings
from logging import Formatter, Handler, NullHandler, StreamHandler
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import ClassVar, Final, Literal, NamedTuple, Self, TextIO

__all__: list[str] = ["CredentialRedactFilter", "LogLevel", "LoggerUtils"]

type LevelType = Literal["NOTSET", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_LOG_FILE_SIZE: Final[int] = 2 * 1024 * 1024  # 2MB
_LOG_BACKUP_COUNT: Final[int] = 2
_CONSOLE_FORMAT: Final[str] = "%(levelname)s: %(message)s"
_FILE_FORMAT: Final[str] = "%(asctime)s %(levelname)-8s %(lineno)4d %(name)-40s\t%(funcName)s\t%(message)s"

DEFAULT_LOG_LEVEL: Final[int] = logging.INFO
DEFAULT_NAMESPACE: Final[str] = "AITrans"


class LogLevel(NamedTuple):
    name: str
    value: int


class CredentialRedactFilter(logging.Filter):
    """Masks ``key=`` query parameters and ``Bearer`` tokens in formatted log messages."""

    PATTERNS: ClassVar[tuple[re.Pattern[str], ...]] = (
        re.compile(r"(?i)([?&]key=)[^&\s'\"]+"),
        re.compile(r"(?i)(bearer\s+)[^\s'\"]+"),
    )
    MASK: ClassVar[str] = "***"

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message: str = record.getMessage()
        except (TypeError, ValueError):
            # Left for the formatter, which reports it through Handler.handleError
            return True
        redacted: str = self.redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True

    @classmethod
    def redact(cls, text: str) -> str:
        for pattern in cls.PATTERNS:
            text = pattern.sub(rf"\g<1>{cls.MASK}", text)
        return text


class LoggerUtils:
    """Singleton owning the handlers of the ``AITrans`` logger tree.

    The console receives WARNING and above so command output stays readable; the rotating
    file receives everything down to DEBUG. Constructing the class again returns the same
    instance without touching the handlers.

    Attributes:
        _LOGGER_NAMESPACE (str): Prefix of every logger handed out by ``get_logger``.
        _configured (bool): Whether handlers have been attached.
        _instance (LoggerUtils | None): The singleton instance.
    """

    _LOGGER_NAMESPACE: ClassVar[str] = DEFAULT_NAMESPACE
    _configured: ClassVar[bool] = False
    _instance: ClassVar[Self | None] = None

    def __new__(cls, *args, **kwargs) -> Self:
        _ = args, kwargs
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, filename: str | Path, *, use_null_console: bool = False) -> None:
        """Attach the console handler and, if ``filename`` is not empty, the file handler.

        Args:
            filename (str | Path): Absolute path of the log file. An empty value disables file logging.
            use_null_console (bool): Discard console output, e.g. when stderr is unavailable.
        """
        if LoggerUtils._configured:
            return

        self.root_logger: logging.Logger = logging.getLogger(self._LOGGER_NAMESPACE)
        # Handlers filter by level themselves; the logger must let DEBUG through to the file.
        self.root_logger.setLevel(DEFAULT_LOG_LEVEL)

        handlers: list[Handler] = [self._build_console_handler(use_null_console or sys.stderr is None)]
        if str(filename).strip():
            file_handler: Handler | None = self._build_file_handler(Path(filename))
            if file_handler is not None:
                handlers.append(file_handler)
        for handler in handlers:
            handler.addFilter(CredentialRedactFilter())
            self.root_logger.addHandler(handler)

        if not str(filename).strip():
            self.root_logger.warning("Log file name is empty. Logging to the file is not performed.")

        warnings.showwarning = self.warning_to_log
        LoggerUtils._configured = True

    @classmethod
    def setup(cls, data_dir: Path, log_file: str, *, debug: bool = False) -> Self:
        """Create the data directory, attach the handlers and apply the level.

        Args:
            data_dir (Path): Directory that receives the log file.
            log_file (str): Log file name; empty disables file logging.
            debug (bool): Log at DEBUG instead of INFO.

        Returns:
            Self: The configured singleton.
        """
        data_dir.mkdir(parents=True, exist_ok=True)
        instance: Self = cls(data_dir / log_file if log_file else "")
        instance.set_level("DEBUG" if debug else "INFO")
        return instance

    @classmethod
    def initialize(cls, namespace: str) -> None:
        """Change the logger namespace before handlers are attached.

        Raises:
            RuntimeError: If the handlers have already been attached.
        """
        if cls._configured:
            msg = "LoggerUtils is already configured. Reinitialization is not allowed."
            raise RuntimeError(msg)
        cls._LOGGER_NAMESPACE = namespace

    def warning_to_log(
        self,
        message: Warning | str,
        category: type[Warning],
        filename: str,
        lineno: int,
        file: TextIO | None = None,
        line: str | None = None,
    ) -> None:
        """Route ``warnings`` output into the namespace logger."""
        _ = file, line
        self.root_logger.warning("%s:%d: %s: %s", filename, lineno, category.__name__, message)

    @staticmethod
    def _build_console_handler(null_console: bool) -> Handler:
        if null_console:
            return NullHandler()
        handler: StreamHandler[TextIO] = StreamHandler(sys.stderr)
        handler.setLevel(logging.WARNING)
        handler.setFormatter(Formatter(_CONSOLE_FORMAT))
        return handler

    def _build_file_handler(self, path: Path) -> Handler | None:
        try:
            handler = RotatingFileHandler(
                filename=path, maxBytes=_LOG_FILE_SIZE, backupCount=_LOG_BACKUP_COUNT, encoding="utf-8"
            )
        except OSError as err:
            self.root_logger.error("Cannot open log file '%s': %s. Logging to the file is not performed.", path, err)
            return None
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(Formatter(_FILE_FORMAT))
        return handler

    def set_level(self, level: LevelType) -> None:
        """Set the namespace logger level, falling back to INFO for unknown names."""
        level_value: int | None = logging.getLevelNamesMapping().get(level.upper())
        if level_value is None:
            self.root_logger.setLevel(DEFAULT_LOG_LEVEL)
            self.root_logger.warning("Unknown logging level '%s' specified. Logging level set to 'INFO'.", level)
            return
        self.root_logger.setLevel(level_value)

    def get_level(self) -> LogLevel:
        level_value: int = self.root_logger.getEffectiveLevel()
        return LogLevel(name=logging.getLevelName(level_value), value=level_value)

    @staticmethod
    def get_logger(name: str | None = None) -> logging.Logger:
        """Return a logger below the configured namespace.

        Args:
            name (str | None): Module name. None returns the namespace logger itself.
        """
        namespace: str = LoggerUtils._LOGGER_NAMESPACE
        if not namespace:
            return logging.getLogger(name or None)
        return logging.getLogger(f"{namespace}.{name}" if name else namespace)
