"""structlog wiring for mortar.

mortar loggers are structlog loggers wrapping standard-library loggers under
the ``mortar`` namespace, so nothing is emitted unless the application
enables them.  Either configure the ``mortar`` stdlib logger yourself or
call :func:`configure_logging` once at startup::

    from mortar.logger import configure_logging

    configure_logging("DEBUG")             # console lines, every statement
    configure_logging("INFO", json=True)   # JSON lines
"""
from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

ROOT_LOGGER = "mortar"

_PROCESSORS: list[Processor] = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
]


def get_logger(name: str, **context: Any) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger backed by the stdlib logger ``name``.

    Args:
        name: Dotted logger name, normally ``__name__``.
        **context: Key/value pairs bound to every event.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
        **context,
    )


def configure_logging(level: str = "INFO", json: bool = False, stream: Any = None) -> None:
    """Attach a rendering handler to the ``mortar`` logger.

    Calling it again replaces the previous handler.

    Args:
        level: Minimum level name (``DEBUG``, ``INFO``, ``WARNING``, ...).
        json: Render events as JSON lines instead of console text.
        stream: Output stream (default: ``sys.stderr``).
    """
    level_no = logging.getLevelName(level.upper())
    if not isinstance(level_no, int):
        raise ValueError(f"Unknown log level: {level!r}")

    renderer: Processor
    if json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger(ROOT_LOGGER)
    for existing in list(root.handlers):
        if getattr(existing, "_mortar_handler", False):
            root.removeHandler(existing)
    handler._mortar_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level_no)
