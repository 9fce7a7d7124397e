"""
Logging configuration for the l8k command.

Logging is opt-in: the package logger only gets a real handler when
``--enable-logging`` or ``--log-file`` is given. Console logs go to stderr so
stdout stays reserved for user-facing output.
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from k8s_launch_kit.exceptions import ConfigurationError

PACKAGE_LOGGER = "k8s_launch_kit"

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_log_level(level: str) -> int:
    try:
        return LOG_LEVELS[level.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Invalid log level: {level}",
            f"Use one of: {', '.join(LOG_LEVELS)}",
        ) from None


def configure_logging(
    level: str = "info",
    log_file: str | Path | None = None,
    enabled: bool = False,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        level: One of debug, info, warning, error
        log_file: Optional file to append logs to instead of stderr
        enabled: Whether logging is on; a log file implies enabled

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    if not enabled and not log_file:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.CRITICAL + 1)
        return logger

    logger.setLevel(parse_log_level(level))

    handler: logging.Handler
    if log_file:
        handler = logging.FileHandler(log_file, mode="a")
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    else:
        handler = RichHandler(console=Console(stderr=True), show_path=False)
    logger.addHandler(handler)

    return logger
