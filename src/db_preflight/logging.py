"""Logging configuration for the pre-flight pipeline."""

import logging
import sys

from loguru import logger


class InterceptHandler(logging.Handler):
    """Intercept standard logging messages toward loguru."""

    def emit(self, record):
        # Get corresponding loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where the logged message originated
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(log_level: str, compact: bool = False):
    """Configure loguru logging for the whole run.

    Args:
        log_level: Log level to use (from settings or CLI override).
        compact: If True, use the short ``level | message`` CLI format.
    """
    log_level = log_level.upper()

    logger.remove()  # Remove default handler
    if compact:
        logger.add(
            sys.stderr,
            format="<level>{level: <8}</level> | <level>{message}</level>",
            level=log_level,
            colorize=True,
        )
    else:
        logger.add(sys.stderr, level=log_level, colorize=True)

    logger.debug("Log level set to: {}", log_level)

    # Redirect all standard logging to loguru
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in logging.Logger.manager.loggerDict:
        logging_logger = logging.getLogger(name)
        logging_logger.handlers = [InterceptHandler()]
        logging_logger.propagate = False

    # Driver and migration libraries follow the same level as the pipeline (stdlib has no TRACE)
    stdlib_level = "DEBUG" if log_level == "TRACE" else log_level
    for noisy_logger in ("asyncpg", "alembic", "asyncio"):
        logging.getLogger(noisy_logger).setLevel(stdlib_level)

    # INFO on sqlalchemy.engine turns on statement echo
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
