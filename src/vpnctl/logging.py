"""structlog setup for the controller; log lines go to stderr, operator output to stdout."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

# Request-level chatter from the update and ip-echo fetches.
_HTTP_LOGGERS = ("httpx", "httpcore")


def _renderer(app_env: str, json_output: bool | None) -> structlog.types.Processor:
    if json_output is None:
        json_output = app_env == "prod"
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    level: str, *, app_env: str = "dev", json_output: bool | None = None
) -> None:
    """Route stdlib and structlog records through one stderr handler.

    JSON is used in prod unless ``json_output`` says otherwise. Unknown level
    names fall back to INFO.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(app_env, json_output),
            ],
        )
    )
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)

    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


@contextmanager
def log_context(**kwargs: object) -> Iterator[None]:
    """Attach fields to every record logged inside the block."""
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
