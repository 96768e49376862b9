# MISP Bridge: Structured Logging
#
# Configures structlog on top of the standard library so that both
# ``logging.getLogger(__name__)`` loggers and structlog loggers share one
# formatter (JSON for machines, console for humans).

import logging
import sys
from typing import Optional

import structlog

_configured = False


def _shared_processors():
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(level: str = "INFO", fmt: str = "console", stream=None) -> None:
    """Route stdlib and structlog output through a single handler.

    Args:
        level: Root log level name (DEBUG, INFO, ...).
        fmt: ``json`` or ``console``.
        stream: Output stream (default stderr; stdout is left alone
            for tool output).
    """
    global _configured

    renderer = (
        structlog.processors.JSONRenderer()
        if fmt == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=_shared_processors() + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    if _configured:
        for old in list(root_logger.handlers):
            if getattr(old, "_misp_bridge", False):
                root_logger.removeHandler(old)
    handler._misp_bridge = True
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper())

    # httpx logs every request at INFO; keep it behind our own DEBUG lines.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True


def get_logger(name: Optional[str] = None):
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name or "misp_bridge")
