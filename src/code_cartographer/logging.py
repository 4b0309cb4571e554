from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

_LOGGING_CONFIGURED = False


def setup_logging(
    filename: str | Path | None = None,
    *,
    level: int = logging.INFO,
    force: bool = False,
) -> structlog.BoundLogger:
    """Set up structured logging for the code_cartographer package.

    Only the first call configures the handlers unless ``force`` is set; later
    calls return a logger bound to the existing configuration. Loggers are not
    cached, so a forced reconfiguration also changes the level of module
    loggers created earlier.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.
        level: Minimum level to emit (``logging.DEBUG`` when debug mode is on).
        force: Replace an existing configuration (used by the CLI once flags are parsed).

    Returns:
        A structlog logger instance configured for the code_cartographer package.
    """
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if not _LOGGING_CONFIGURED or force:
        handlers: list[logging.Handler] = []
        if filename:
            handlers.append(logging.FileHandler(str(filename), encoding="utf-8"))
        else:
            handlers.append(logging.StreamHandler(sys.stderr))

        logging.basicConfig(
            level=level,
            handlers=handlers,
            format="%(message)s",
            force=force,
        )
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(level),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=False,
        )
        _LOGGING_CONFIGURED = True

    return structlog.get_logger("code_cartographer")


def get_logger(component: str) -> structlog.BoundLogger:
    """Return a lazily bound logger for ``component``, configuring logging if needed."""
    setup_logging()
    return structlog.get_logger("code_cartographer", component=component)
