"""
Logging setup for smartsession.

Library modules log through ``logging.getLogger(__name__)`` and never configure
handlers themselves. Hosts (and the CLI) call ``setup_logging`` once to send
those records through structlog: one JSON object per line on stderr, or a
readable console format when running at DEBUG.
"""

import logging
import sys
from typing import Optional

import structlog

from .config import settings


def _processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging(log_level: Optional[str] = None) -> None:
    """Install a structlog-formatted stderr handler on the root logger.

    Args:
        log_level: Level name overriding ``settings.log_level``
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)

    chain = _processors()
    if level == logging.DEBUG:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        chain.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[*chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # stdout is reserved for CLI results
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)
