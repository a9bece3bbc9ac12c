"""Structured logging configuration.

structlog is the only logging front-end; the stdlib bridge makes uvicorn,
SQLAlchemy and boto records render through the same processor chain. Every
event carries the request correlation id, plus whichever client / draft /
brief ids the current request has bound.
"""

import logging
import logging.config

import structlog
from asgi_correlation_id.context import correlation_id

# Third-party loggers that only speak up at WARNING and above
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "botocore", "httpx", "anthropic")


def add_correlation_id(logger, method, event_dict):
    """Inject correlation_id from asgi-correlation-id context into every log entry."""
    cid = correlation_id.get(None)
    if cid:
        event_dict["correlation_id"] = cid
    return event_dict


def get_correlation_id() -> str | None:
    return correlation_id.get(None)


def bind_brief_context(
    *, client_id: str | None = None, draft_id: str | None = None, brief_id: str | None = None
) -> None:
    """Attach brief identifiers to every log line emitted by the current request."""
    ids = {"client_id": client_id, "draft_id": draft_id, "brief_id": brief_id}
    structlog.contextvars.bind_contextvars(**{key: value for key, value in ids.items() if value})


def _processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_correlation_id,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]


def configure_structlog(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Route structlog and stdlib logging through one renderer.

    Call before any module binds a logger: structlog caches the processor
    chain on first use.

    Args:
        log_level: Root log level ("DEBUG", "INFO", "WARNING", "ERROR")
        json_logs: JSON lines when True, colored console output otherwise
    """
    chain = _processors()
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "brief_studio": {
                "()": structlog.stdlib.ProcessorFormatter,
                "foreign_pre_chain": chain,
                "processors": [structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "brief_studio",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["stdout"], "level": log_level},
        "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
    })

    structlog.configure(
        processors=[*chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
