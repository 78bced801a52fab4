"""
Console logging for cron workflow entry points.

Library modules log through ``logging.getLogger(__name__)``; processes such as
the CLI attach this colored handler to the loggers they care about. Records go
to stderr so stdout carries only command output, such as the JSON trace printed
by ``cron-workflow run --format json``.

Usage:
    from shared.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Message here")
"""

import logging
import sys
from typing import Optional, Union

# Global cache of loggers
_loggers = {}


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to console output"""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record):
        # Color a copy so other handlers still see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        return super().format(record)


def resolve_level(level: Union[int, str, None]) -> int:
    if level is None:
        from shared.config import config
        level = config.log_level
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def get_logger(name: str, level: Optional[Union[int, str]] = None) -> logging.Logger:
    """
    Get a logger that outputs colored, structured logs to console.

    Args:
        name: Logger name (typically __name__ or a package such as 'cron_workflow')
        level: Logging level; defaults to ``config.log_level``

    Returns:
        Configured logger instance
    """
    if name in _loggers:
        return _loggers[name]

    level = resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(
        fmt='%(asctime)s | %(name)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    logger.addHandler(console_handler)

    _loggers[name] = logger
    return logger
