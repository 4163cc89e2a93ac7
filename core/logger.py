"""
=====================================================
Centralized logging configuration for schema tooling.
=====================================================

Library modules only ever call ``logging.getLogger(__name__)``; handlers
are installed once by the entry point (``main.py``) through
``setup_logging``. Console output is colored with a level emoji, file
output is plain text.

Example:
    >>> from core.logger import get_logger, setup_logging
    >>>
    >>> setup_logging(log_level='DEBUG', log_file='schema.log')
    >>> logger = get_logger(__name__)
    >>> logger.info("Compiling annotations")
"""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
CONSOLE_FORMAT = '%(emoji)s ' + LOG_FORMAT
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """Console formatter adding ANSI colors and an emoji per level.

    The record is copied before decoration so that other handlers
    (e.g. the file handler) still see the plain level name.

    Attributes:
        COLORS: Dict mapping level names to ANSI color codes
        EMOJI: Dict mapping level names to emoji markers
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    EMOJI = {
        'DEBUG': '🔍',
        'INFO': 'ℹ️ ',
        'WARNING': '⚠️ ',
        'ERROR': '❌',
        'CRITICAL': '🔥'
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format a record with color codes and an emoji prefix."""
        decorated = logging.makeLogRecord(record.__dict__)
        levelname = record.levelname
        decorated.emoji = self.EMOJI.get(levelname, '')
        if levelname in self.COLORS:
            decorated.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"
        return super().format(decorated)


def _resolve_level(log_level: str) -> int:
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    return level


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a logger instance for the specified module.

    Args:
        name: Logger name (typically __name__ of calling module)
        level: Optional level override (DEBUG/INFO/WARNING/ERROR/CRITICAL)

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)

    if level:
        logger.setLevel(_resolve_level(level))

    return logger


def setup_logging(
    log_level: str = 'INFO',
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    console_output: bool = True,
    use_colors: bool = True
) -> None:
    """Configure the root logger with console and/or file handlers.

    Safe to call more than once: existing root handlers are replaced.

    Args:
        log_level: Logging level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
        log_file: Optional log file name (e.g., 'schema.log')
        log_dir: Optional log directory (defaults to 'logs/')
        console_output: If True, log to stderr
        use_colors: If True, use the colored console formatter

    Raises:
        ValueError: If log_level is not a known level name

    Example:
        >>> setup_logging(log_level='WARNING', use_colors=False)
    """
    level = _resolve_level(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    if console_output:
        # stdout is reserved for the generated SQL
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)

        if use_colors:
            console_formatter = ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT)
        else:
            console_formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_dir) if log_dir else Path('logs')
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path / log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)
