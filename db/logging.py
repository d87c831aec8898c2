from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog


def configure_logging(log_level: str, stream: TextIO | None = None) -> None:
    """
    JSON lines for the service and the seed CLI.

    The CLI passes stderr so stdout stays a parseable report.
    """
    stream = stream or sys.stdout
    logging.basicConfig(format="%(message)s", stream=stream, level=log_level.upper(), force=True)
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(log_level.upper())),
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        # Loggers bind their stream when first used; reconfiguring must reach module-level loggers too.
        cache_logger_on_first_use=False,
    )


logger = structlog.get_logger()
