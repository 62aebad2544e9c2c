"""Structured Logging

Engine events go through structlog loggers named ``shapeguard.<domain>``.
Nothing is configured on import. A host either calls ``configure_logging``
once or routes the ``shapeguard`` stdlib logger itself.

Domains:
    schema     object and tuple construction, index overlap warnings
    algebra    intersection, merge and the derived-schema cache
    scope      registration and freezing
    validator  failed validation runs
"""
import logging
import sys

import structlog
from structlog.types import EventDict, Processor

from shapeguard.core.config import get_settings

# Fields whose values are schema expressions; recursive schemas can render long.
EXPRESSION_FIELDS = frozenset({"schema", "left", "right", "base", "property", "index"})
MAX_EXPRESSION_LENGTH = 200

DOMAINS = ("schema", "algebra", "scope", "validator")


def _tag_library(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("library", "shapeguard")
    return event_dict


def _clip_expressions(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    for name in EXPRESSION_FIELDS.intersection(event_dict):
        value = event_dict[name]
        if isinstance(value, str) and len(value) > MAX_EXPRESSION_LENGTH:
            event_dict[name] = value[:MAX_EXPRESSION_LENGTH - 3] + "..."
    return event_dict


def get_shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _clip_expressions,
        _tag_library,
    ]


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Attach a single structlog-formatted handler to the ``shapeguard`` logger.

    Arguments left as None come from ``SHAPEGUARD_LOG_LEVEL`` and
    ``SHAPEGUARD_LOG_JSON``. Calling again replaces the handler.
    """
    settings = get_settings()
    level = level or settings.LOG_LEVEL
    json_logs = settings.LOG_JSON if json_logs is None else json_logs

    shared = get_shared_processors()
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    structlog.configure(
        processors=[
            *shared,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    ))

    library = logging.getLogger("shapeguard")
    library.handlers = [handler]
    library.setLevel(getattr(logging, level.upper(), logging.INFO))
    library.propagate = False


def get_logger(name: str = "shapeguard") -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class LoggerRegistry:
    """One bound logger per engine domain, created on first use."""

    _loggers: dict[str, structlog.stdlib.BoundLogger] = {}

    @classmethod
    def get(cls, domain: str) -> structlog.stdlib.BoundLogger:
        if domain not in DOMAINS:
            raise ValueError(f"Unknown logging domain {domain!r}; expected one of {', '.join(DOMAINS)}")
        if domain not in cls._loggers:
            cls._loggers[domain] = get_logger(f"shapeguard.{domain}")
        return cls._loggers[domain]


def schema_logger() -> structlog.stdlib.BoundLogger:
    return LoggerRegistry.get("schema")


def algebra_logger() -> structlog.stdlib.BoundLogger:
    return LoggerRegistry.get("algebra")


def scope_logger() -> structlog.stdlib.BoundLogger:
    return LoggerRegistry.get("scope")


def validator_logger() -> structlog.stdlib.BoundLogger:
    return LoggerRegistry.get("validator")
