from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

import structlog

if TYPE_CHECKING:
    from launch_forge.core.config import ForgeConfig


def configure_logging(
    level: str = "INFO",
    json: bool = True,
    stream: object = None,
) -> None:
    """Route structlog through stdlib logging with one structured handler.

    ``json=True`` renders one JSON object per line for log shippers;
    ``json=False`` renders coloured key/value lines for local development.
    Build context bound with :func:`build_context` is merged into every line.

    Args:
        level: Logging level name, e.g. ``"DEBUG"`` or ``"WARNING"``.
        json: Render JSON instead of console output.
        stream: Output stream; defaults to ``sys.stdout``.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    out = stream or sys.stdout

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    renderer: structlog.types.Processor
    if json:
        renderer = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )
    handler = logging.StreamHandler(out)  # type: ignore[arg-type]
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)
    # Transport internals are noisy at INFO.
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))


def configure_from_config(config: ForgeConfig) -> None:
    configure_logging(level=config.log_level, json=config.log_json)


@contextmanager
def build_context(build_id: str, **fields: object) -> Iterator[None]:
    """Bind *build_id* (and *fields*) to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(build_id=build_id, **fields):
        yield
