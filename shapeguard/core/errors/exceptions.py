"""Raised Error Types

Construction misuse, failed lookups and default producer defects are raised
rather than returned. Each exception wraps the AppError that describes it so
callers still get the code, the metadata and the origin.
"""
from __future__ import annotations

from typing import NoReturn

from .types import AppError, Err, ErrorCode


class SchemaError(Exception):
    """Exception wrapper for AppError.

    Use this when an AppError must leave the engine as an exception
    (schema construction, algebra, lookups).
    """

    def __init__(self, error: AppError):
        self.error = error
        super().__init__(str(error))

    @property
    def code(self) -> ErrorCode:
        return self.error.code


class SchemaConflict(SchemaError):
    """Two parts of a schema cannot coexist (duplicate keys, index clashes)."""


class UnsatisfiableSchema(SchemaError):
    """A composition describes no value at all."""


class InvalidTupleShape(SchemaError):
    """Tuple elements violate the positional ordering rules."""


class DefinitionError(SchemaError):
    """A definition tree could not be turned into a schema."""


class RegistryFrozen(SchemaError):
    """A frozen scope was asked to register a new name."""


class KeyNotFound(SchemaError):
    """A property lookup named a key that can never be present."""


class DefaultProducerError(SchemaError):
    """A user-supplied default producer raised."""


_EXCEPTIONS: dict[ErrorCode, type[SchemaError]] = {
    ErrorCode.E1001_SCHEMA_CONFLICT: SchemaConflict,
    ErrorCode.E1002_UNSATISFIABLE_SCHEMA: UnsatisfiableSchema,
    ErrorCode.E1003_INVALID_TUPLE_SHAPE: InvalidTupleShape,
    ErrorCode.E1004_INVALID_DEFINITION: DefinitionError,
    ErrorCode.E1005_REGISTRY_FROZEN: RegistryFrozen,
    ErrorCode.E3001_KEY_NOT_FOUND: KeyNotFound,
    ErrorCode.E4001_DEFAULT_PRODUCER_FAILED: DefaultProducerError,
}


def raise_error(error: AppError | Err[AppError]) -> NoReturn:
    """Raise the exception class matching the error's code.

    The original cause, if any, is chained.
    """
    if isinstance(error, Err):
        error = error.unwrap_err()
    exc = _EXCEPTIONS.get(error.code, SchemaError)(error)
    if error.cause is not None:
        raise exc from error.cause
    raise exc
