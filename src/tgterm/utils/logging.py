"""Logging setup for tgterm.

Configures the 'tgterm' logger tree from LoggingConfig and quiets the
HTTP client, whose request log lines would otherwise include the bot
token embedded in every Telegram API URL.
"""

from __future__ import annotations

import logging
import sys

from tgterm.config.settings import LoggingConfig

# Loggers of third-party libraries that log request URLs at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Point the ``tgterm`` logger at stderr and, optionally, a log file.

    Safe to call more than once: earlier handlers are closed and replaced.
    httpx and httpcore never log below WARNING.
    """
    if config is None:
        config = LoggingConfig()

    level = getattr(logging, config.level.upper(), logging.INFO)
    app_logger = logging.getLogger("tgterm")
    app_logger.setLevel(level)

    formatter = logging.Formatter(config.format)

    # Replace handlers from a previous call instead of stacking them
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if config.file:
        file_handler = logging.FileHandler(config.file)
        file_handler.setFormatter(formatter)
        app_logger.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    app_logger.info("Logging initialized at %s level", config.level)
