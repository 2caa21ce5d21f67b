"""Logging configuration using loguru.

Diagnostic logs go to stderr so they never interleave with the
change tables and status rows printed on stdout.
"""

import logging
import sys

from loguru import logger

from appwrite_sync.config.models import LoggingConfig


class _InterceptHandler(logging.Handler):
    """Route standard library logging through loguru.

    httpx and httpcore log every request through the stdlib logging
    module; this sends those records through the same loguru sinks.
    """

    def emit(self, record: logging.LogRecord) -> None:
        # Map stdlib level to loguru level
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller frame (skip logging internals)
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore[assignment]
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(config: LoggingConfig, verbose: bool = False) -> None:
    """
    Configure loguru logger based on configuration.

    Args:
        config: LoggingConfig with level, format, and file settings.
        verbose: Force DEBUG level regardless of the configured level.
    """
    logger.remove()

    level = "DEBUG" if verbose else config.level

    if config.format == "json":
        fmt = "{message}"
        serialize = True
    else:
        fmt = (
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        )
        serialize = False

    logger.add(
        sys.stderr,
        format=fmt,
        level=level,
        serialize=serialize,
        colorize=config.format == "console",
    )

    if config.file:
        logger.add(
            config.file,
            format=fmt,
            level=level,
            serialize=serialize,
            rotation=config.rotation,
            retention=config.retention,
        )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    logger.debug("Logging configured: level={} format={}", level, config.format)
