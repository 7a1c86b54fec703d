"""structlog setup for the server and the CLI.

Learn: modules just call structlog.get_logger() and emit dotted event
names with keyword context. Only entry points call configure_logging:
the server renders JSON outside development, the CLI keeps stdout clean
for its own output by logging to stderr at WARNING unless --verbose.
"""

import logging
import sys
from typing import TextIO

import structlog


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    stream: TextIO = sys.stdout,
) -> None:
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        logger_factory=structlog.PrintLoggerFactory(file=stream),
    )
