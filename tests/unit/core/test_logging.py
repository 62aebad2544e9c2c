"""Logging configuration and domain loggers."""
from __future__ import annotations

import logging

import pytest

from shapeguard.core.config import get_settings
from shapeguard.core.logging import (
    MAX_EXPRESSION_LENGTH,
    LoggerRegistry,
    algebra_logger,
    configure_logging,
    get_shared_processors,
    schema_logger,
    scope_logger,
    validator_logger,
)


def _run_shared(event: dict) -> dict:
    for processor in get_shared_processors()[-2:]:
        event = processor(None, "info", event)
    return event


def test_domain_loggers_are_cached() -> None:
    assert schema_logger() is schema_logger()
    assert LoggerRegistry.get("algebra") is algebra_logger()
    assert scope_logger() is not validator_logger()


def test_unknown_domain_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown logging domain"):
        LoggerRegistry.get("ingest")


def test_configure_logging_sets_library_logger() -> None:
    configure_logging(level="debug", json_logs=True)

    library = logging.getLogger("shapeguard")
    assert library.level == logging.DEBUG
    assert library.propagate is False
    assert len(library.handlers) == 1

    configure_logging(level="warning")
    assert library.level == logging.WARNING
    assert len(library.handlers) == 1


def test_configure_logging_reads_settings(monkeypatch) -> None:
    monkeypatch.setenv("SHAPEGUARD_LOG_LEVEL", "ERROR")
    get_settings.cache_clear()

    configure_logging()

    assert logging.getLogger("shapeguard").level == logging.ERROR


def test_events_are_tagged_with_the_library() -> None:
    assert _run_shared({"event": "x"})["library"] == "shapeguard"


def test_long_expressions_are_clipped() -> None:
    long_schema = "{ " + ", ".join(f"k{i}: string" for i in range(100)) + " }"
    event = _run_shared({"event": "x", "schema": long_schema, "name": long_schema})

    assert len(event["schema"]) == MAX_EXPRESSION_LENGTH
    assert event["schema"].endswith("...")
    assert event["name"] == long_schema
