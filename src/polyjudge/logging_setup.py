from __future__ import annotations

import logging
import sys

import structlog

_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def configure_logging(level: str = "INFO", *, json_output: bool = False) -> None:
    """Configure structlog for polyjudge and its CLI.

    Log lines go to stderr so program output on stdout stays clean.

    Example:
        ```python
        configure_logging("DEBUG", json_output=True)
        ```
    """
    name = level.upper()
    if name not in _LEVELS:
        raise ValueError(f"Unknown log level: {level}")
    numeric = getattr(logging, name)
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
