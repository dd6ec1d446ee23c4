# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Logging utilities for the mail notifier.

This module provides a centralized logging helper. The actual logging setup
(level, handlers, format) is done once via :func:`configure_logging` by the
CLI entry point, so that library users keep control of their own handlers.

Example:
    Typical usage in a module::

        from mail_notifier.logger import get_logger

        logger = get_logger("EmailSender")
        logger.info("Message sent")
"""

import logging
import os

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str = "MailNotifier") -> logging.Logger:
    """Retrieve a logger instance.

    No handlers or formatters are attached here; that responsibility lies
    with the application entry point.

    Args:
        name: The logger name. Defaults to "MailNotifier".

    Returns:
        A ``logging.Logger`` instance bound to the given name.
    """
    return logging.getLogger(name)


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for command line usage.

    Args:
        level: Level name. Falls back to ``MAIL_LOG_LEVEL`` and then INFO.
    """
    level_name = (level or os.getenv("MAIL_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        force=True,
    )
