# Core module exports
from shapeguard.core.config import SchemaConfig, Settings, UndeclaredPolicy, get_settings
from shapeguard.core.logging import (
    configure_logging,
    get_logger,
    schema_logger,
    algebra_logger,
    scope_logger,
    validator_logger,
)
