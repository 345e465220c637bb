"""
Logging setup for the `async_worker` package.

Every module logs through a child of the `async_worker` logger, so one
setup_logging() call configures the whole package. With a log directory,
records also go to one file per calendar day:

    <log_dir>/async_worker_<YYYYMMDD>_<process start HHMMSS>.log
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Optional, Union

LOGGER_NAME = "async_worker"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Every daily file of one process shares this suffix
PROCESS_STARTED = datetime.now()


def log_file_name(day: date, started: datetime = PROCESS_STARTED) -> str:
    return f"{LOGGER_NAME}_{day:%Y%m%d}_{started:%H%M%S}.log"


class DailyRotatingFileHandler(logging.FileHandler):
    """
    File handler that moves to a fresh file when the calendar day changes.

    The day is re-checked on every record; `today` can be swapped out to
    drive the rollover deterministically.
    """

    def __init__(
        self,
        log_dir: Union[str, Path] = "logs",
        encoding: str = "utf-8",
        today: Callable[[], date] = date.today,
    ):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._today = today
        self.day = today()
        super().__init__(self.path_for(self.day), mode="a", encoding=encoding)

    def path_for(self, day: date) -> str:
        return str(self.log_dir / log_file_name(day))

    def rollover_if_needed(self) -> bool:
        """Reopen on the current day's file. Returns True if it switched."""
        day = self._today()
        if day == self.day:
            return False
        self.close()
        self.day = day
        self.baseFilename = self.path_for(day)
        self.stream = self._open()
        return True

    def emit(self, record: logging.LogRecord) -> None:
        self.rollover_if_needed()
        super().emit(record)


def _resolve_level(log_level: Union[str, int]) -> int:
    if isinstance(log_level, int):
        return log_level
    level = getattr(logging, str(log_level).upper(), None)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(
    log_level: Union[str, int] = "INFO",
    log_dir: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Configure the package logger and return it.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        log_level: Level name (DEBUG, INFO, ...) or number; unknown names mean INFO
        log_dir: Directory for daily log files; console only when None

    Returns:
        The `async_worker` logger
    """
    level = _resolve_level(log_level)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir is not None:
        handlers.append(DailyRotatingFileHandler(log_dir))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if log_dir is not None:
        logger.info(f"Logging to {handlers[-1].baseFilename} at {logging.getLevelName(level)}")
    return logger
