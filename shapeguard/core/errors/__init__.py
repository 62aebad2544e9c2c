"""Monadic Error Handling System

Result types, the error code taxonomy, builders and the raised exception
classes used throughout the engine.

Usage:
    from shapeguard.core.errors import Ok, Err, raise_error, schema_conflict

    if key in seen:
        raise_error(schema_conflict(f"duplicate key {key}", key=key, origin="objects"))

    match validate(schema, value):
        case Ok(output):
            ...
        case Err(failures):
            ...
"""
from .types import (
    Result,
    Ok,
    Err,
    AppError,
    ErrorCode,
    ErrorContext,
    ok,
    err,
)

from .builders import (
    schema_conflict,
    duplicate_key,
    unsatisfiable,
    invalid_tuple_shape,
    invalid_definition,
    unresolved_reference,
    registry_frozen,
    key_not_found,
    producer_failed,
)

from .exceptions import (
    SchemaError,
    SchemaConflict,
    UnsatisfiableSchema,
    InvalidTupleShape,
    DefinitionError,
    RegistryFrozen,
    KeyNotFound,
    DefaultProducerError,
    raise_error,
)

__all__ = [
    # Core types
    "Result",
    "Ok",
    "Err",
    "AppError",
    "ErrorCode",
    "ErrorContext",
    "ok",
    "err",
    # Builders
    "schema_conflict",
    "duplicate_key",
    "unsatisfiable",
    "invalid_tuple_shape",
    "invalid_definition",
    "unresolved_reference",
    "registry_frozen",
    "key_not_found",
    "producer_failed",
    # Exceptions
    "SchemaError",
    "SchemaConflict",
    "UnsatisfiableSchema",
    "InvalidTupleShape",
    "DefinitionError",
    "RegistryFrozen",
    "KeyNotFound",
    "DefaultProducerError",
    "raise_error",
]
