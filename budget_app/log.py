"""
Structured Logging

Every component logs through structlog so sync and storage events can be
traced as JSON lines. Logging failures never affect the state flow.
"""

import logging
from typing import Optional

import structlog


structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def get_logger(name: Optional[str] = None):
    """Get a structlog logger bound to the given name."""
    return structlog.get_logger(name or "budget_app")


def set_log_level(level: str = "INFO") -> None:
    """
    Route structlog output through the stdlib root logger at `level`.

    structlog filters by the stdlib level, so nothing below WARNING is
    emitted until this has been called.
    """
    logging.basicConfig(format="%(message)s", level=level.upper())
    logging.getLogger().setLevel(level.upper())


def bind_log_context(**values) -> None:
    """Attach key-value pairs to every log line emitted from now on."""
    structlog.contextvars.bind_contextvars(**values)
