"""Logging for the goalgraph library and CLI.

Library modules log through stdlib ``logging.getLogger(__name__)``; the
CLI routes every record through a single structlog ``ProcessorFormatter``
on stderr, rendered for people by default or as JSON lines with
``--log-json``. Alembic and SQLAlchemy stay at WARNING even under
``--verbose`` so the DEBUG stream carries the graph operations only.
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.types import Processor

_QUIET_LOGGERS = ("alembic", "sqlalchemy.engine", "sqlalchemy.pool")


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderers(log_json: bool) -> list[Processor]:
    if log_json:
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Install the stderr handler; safe to call more than once.

    ``verbose`` lowers the ``goalgraph`` logger to DEBUG (the root stays
    at WARNING). ``log_json`` switches to one JSON object per record.
    """
    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_renderers(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.WARNING)

    logging.getLogger("goalgraph").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
