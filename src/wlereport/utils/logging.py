"""
Logging setup for report runs.

Events go to stderr so that stdout stays free for the rich tables the CLI
prints. Console rendering is the default; ``json_output`` switches to one
JSON object per line for runs whose logs are collected.
"""

import logging
import sys
from typing import Any, TextIO

import structlog

# Plotting stack loggers that flood DEBUG output (font lookup, PNG chunks)
NOISY_LOGGERS = ("matplotlib", "PIL")


def _quiet_libraries(level: int) -> None:
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def _renderer(json_output: bool, stream: TextIO) -> list[structlog.types.Processor]:
    if json_output:
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    return [structlog.dev.ConsoleRenderer(colors=stream.isatty())]


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    *,
    stream: TextIO | None = None,
    cache_loggers: bool = True,
) -> None:
    """
    Route structlog and standard-library logging to one stream.

    Args:
        level: Minimum level name; unknown names fall back to INFO.
        json_output: Emit JSON lines instead of console output.
        stream: Destination, stderr when omitted.
        cache_loggers: Let module loggers cache the configuration on first
            use. Disable when reconfiguring within one process.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO
    stream = stream or sys.stderr

    # scikit-learn, joblib and matplotlib log through the standard library
    logging.basicConfig(format="%(message)s", stream=stream, level=log_level)
    _quiet_libraries(log_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            *_renderer(json_output, stream),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=cache_loggers,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a logger for a module, usually called with ``__name__``."""
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> structlog.contextvars.bound_contextvars:
    """
    Bind values to every event logged inside the block.

    Example:
        with log_context(model="Random forest"):
            log.info("Cache miss, training")  # carries model="Random forest"
    """
    return structlog.contextvars.bound_contextvars(**kwargs)
