"""Shared logging configuration with colored console output and file support."""

import logging
from contextvars import ContextVar, Token
from logging import Logger
from typing import Iterable, Optional

from termcolor import colored

from forma.utility.path_finder import Finder

LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "magenta",
}

# Chatty client and server loggers held at WARNING unless running at DEBUG
NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "uvicorn.access", "PIL")

NO_SESSION = "-"
_current_session: ContextVar[str] = ContextVar("forma_session", default=NO_SESSION)


class SessionContextFilter(logging.Filter):
    """Stamp each record with the id of the session whose transition emitted it."""

    def filter(self, record: logging.LogRecord) -> bool:
        session_id = _current_session.get()
        record.session = session_id[:8] if session_id != NO_SESSION else session_id
        return True


class ColorFormatter(logging.Formatter):
    """
    Formatter that colors the level name for console output.
    File handlers use a plain formatter.
    """

    def format(self, record: logging.LogRecord) -> str:
        # padded so the message column stays aligned
        padded_level = f"{record.levelname + ':':<9}"
        color = LEVEL_COLORS.get(record.levelname)
        record.colored_levelname = colored(padded_level, color) if color else padded_level
        return super().format(record)


class AppLogger:
    """
    Central logging helper.

    Usage:
        from forma.utility.logger import AppLogger

        # In the app bootstrap (once)
        AppLogger.init(level=logging.INFO)

        # In any module
        logger = AppLogger.get_logger(__name__)
        logger.info("Hello")

    Records carry a ``session`` attribute, set for the duration of a session
    transition with ``bind_session``.
    """

    CONSOLE_FORMAT = "%(asctime)s %(colored_levelname)s [%(session)s] %(name)s | %(message)s"
    FILE_FORMAT = (
        "%(asctime)s | %(levelname)-8s | session=%(session)s | %(name)s | "
        "%(filename)s:%(lineno)d | %(message)s"
    )
    DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

    _configured: bool = False

    @classmethod
    def init(
        cls,
        level: int = logging.INFO,
        log_to_file: bool = False,
        filename: str = "forma_server.log",
        quiet: Iterable[str] = NOISY_LOGGERS,
    ) -> None:
        """
        Configure the root logger once; later calls are ignored.

        The console gets every record at ``level``. With ``log_to_file`` the
        warnings and errors are also appended to ``data/logs/<filename>``.
        """
        if cls._configured:
            return

        cls._configured = True
        root_logger = logging.getLogger()
        root_logger.setLevel(level)

        # Drop handlers installed by basicConfig or the server runner
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.addFilter(SessionContextFilter())
        console_handler.setFormatter(ColorFormatter(cls.CONSOLE_FORMAT, datefmt=cls.DATE_FORMAT))
        root_logger.addHandler(console_handler)

        if log_to_file:
            logs_dir = Finder().get_directory("logs")
            file_handler = logging.FileHandler(logs_dir / filename, encoding="utf-8")
            file_handler.setLevel(logging.WARNING)
            file_handler.addFilter(SessionContextFilter())
            file_handler.setFormatter(logging.Formatter(cls.FILE_FORMAT, datefmt=cls.DATE_FORMAT))
            root_logger.addHandler(file_handler)

        if level > logging.DEBUG:
            for name in quiet:
                logging.getLogger(name).setLevel(logging.WARNING)

    @staticmethod
    def level_from_name(name: str) -> int:
        """Translate a level name such as 'debug' into a logging constant."""
        level = logging.getLevelName(str(name).upper())
        return level if isinstance(level, int) else logging.INFO

    @staticmethod
    def bind_session(session_id: str) -> Token:
        """Tag records from the current task with ``session_id``; undo with ``unbind_session``."""
        return _current_session.set(session_id)

    @staticmethod
    def unbind_session(token: Token) -> None:
        _current_session.reset(token)

    @staticmethod
    def get_logger(name: Optional[str] = None) -> Logger:
        """
        Get a named logger. Call this in any module instead of logging.getLogger().
        """
        return logging.getLogger(name if name is not None else __name__)
