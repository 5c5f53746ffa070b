"""Logging setup for tripcoord.

structlog events and plain stdlib records (uvicorn, redis) go through one
stdout handler and one renderer. The ``tripcoord`` logger has its own level so
engine events can be turned up or down without touching third-party output.
"""

import logging
import logging.config

import structlog
from asgi_correlation_id.context import correlation_id

APP_LOGGER = "tripcoord"


def add_correlation_id(logger, method, event_dict):
    """Stamp the request's correlation id, when there is one."""
    cid = correlation_id.get(None)
    if cid:
        event_dict["correlation_id"] = cid
    return event_dict


def _pre_chain() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_correlation_id,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def _render_chain(json_logs: bool) -> list:
    chain = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if json_logs:
        # Tracebacks become structured fields instead of one escaped string
        chain += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer())
    return chain


def configure_structlog(
    log_level: str = "INFO",
    json_logs: bool = True,
    third_party_level: str = "INFO",
) -> None:
    """Install the handler, formatter and structlog processor chain.

    Must run before tripcoord modules create their loggers.

    Args:
        log_level: Level of the ``tripcoord`` logger (``Settings.log_level``)
        json_logs: JSON lines when True, colored console output when False
        third_party_level: Root level, which everything outside tripcoord inherits
    """
    pre_chain = _pre_chain()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": _render_chain(json_logs),
                "foreign_pre_chain": pre_chain,
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["stdout"], "level": third_party_level},
        "loggers": {
            APP_LOGGER: {"level": log_level},
            "uvicorn.access": {"level": "WARNING"},
        },
    })

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
