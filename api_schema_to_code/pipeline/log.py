"""
Logging setup for the pipeline.

Modules log through `structlog.get_logger(__name__)`; this module only wires
structlog to the standard library handler for the command line.
"""

from __future__ import annotations

import logging as py_logging

import structlog


def configure_logging(level: str = "warning", fmt: str = "console") -> None:
    """Configure structlog rendering.

    Args:
        level: Standard logging level name ("debug", "info", ...)
        fmt: "console" for human readable output, "json" for JSON lines
    """
    py_logging.basicConfig(
        level=getattr(py_logging, level.upper()),
        format="%(message)s",
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.ConsoleRenderer(colors=False) if fmt.lower() == "console" else structlog.processors.JSONRenderer(sort_keys=True),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
