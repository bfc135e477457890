"""
Logging setup for strata.

Slicing orchestration (model passes, pipeline steps) logs structlog events;
the geometry leaves log through stdlib ``logging``. Both end up on the same
handlers and renderer, so a run reads as one stream either as console lines
or as JSON lines for batch jobs.

Events logged while a layer is processed carry ``layer`` and ``z`` through
:func:`layer_context`.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog

_PRE_CHAIN: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _renderer(json_output: bool) -> structlog.types.Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """
    Route structlog and stdlib records through one renderer.

    Args:
        level: Level name; unknown names fall back to INFO.
        json_output: Render JSON lines instead of console lines.
        log_file: Also append records to this file.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=handlers,
        force=True,
    )

    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_PRE_CHAIN,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(json_output),
        ],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """structlog logger for ``name`` (usually ``__name__``)."""
    return structlog.get_logger(name)


@contextmanager
def layer_context(layer: int, z: float, **extra: object) -> Iterator[None]:
    """Bind ``layer`` and ``z`` to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(layer=layer, z=round(z, 6), **extra):
        yield
