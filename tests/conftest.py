"""Shared fixtures."""
import pytest

from shapeguard.core.config import get_settings
from shapeguard.validation import Scope, derived_schemas


@pytest.fixture(autouse=True)
def isolated_state(monkeypatch):
    """Fresh settings and an empty derived-schema cache for every test."""
    for name in ("UNDECLARED_POLICY", "EXACT_OPTIONAL_PROPERTY_TYPES", "DEFENSIVE_DEFAULTS", "MAX_DEPTH",
                 "LOG_LEVEL", "LOG_JSON"):
        monkeypatch.delenv(f"SHAPEGUARD_{name}", raising=False)
    get_settings.cache_clear()
    derived_schemas.clear()
    yield
    get_settings.cache_clear()
    derived_schemas.clear()


@pytest.fixture
def scope() -> Scope:
    return Scope()
