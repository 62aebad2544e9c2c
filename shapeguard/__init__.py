"""shapeguard: runtime schema validation and schema algebra."""
from shapeguard.core.config import SchemaConfig, Settings, UndeclaredPolicy
from shapeguard.core.errors import (
    Ok,
    Err,
    SchemaError,
    SchemaConflict,
    UnsatisfiableSchema,
    InvalidTupleShape,
    DefinitionError,
    RegistryFrozen,
    KeyNotFound,
    DefaultProducerError,
)
from shapeguard.core.logging import configure_logging
from shapeguard.validation import *  # noqa: F401,F403
from shapeguard.validation import __all__ as _validation_all

__version__ = "0.1.0"

__all__ = [
    "SchemaConfig",
    "Settings",
    "UndeclaredPolicy",
    "Ok",
    "Err",
    "SchemaError",
    "SchemaConflict",
    "UnsatisfiableSchema",
    "InvalidTupleShape",
    "DefinitionError",
    "RegistryFrozen",
    "KeyNotFound",
    "DefaultProducerError",
    "configure_logging",
    *_validation_all,
]
