"""Domain-Specific Error Builders

Ergonomic constructors for typed errors across the engine.
Each builder creates an AppError with the appropriate code and context.
"""
from typing import Any

from .types import AppError, ErrorCode, ErrorContext, Err


def _build(code: ErrorCode, message: str, *, origin: str = "", schema: str | None = None,
           cause: Exception | None = None, **metadata: Any) -> Err[AppError]:
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin, schema=schema),
        metadata={k: v for k, v in metadata.items() if v is not None},
        cause=cause,
    ))


# =============================================================================
# Construction Errors (E1xxx)
# =============================================================================

def schema_conflict(message: str, *, key: Any = None, origin: str = "", **metadata) -> Err[AppError]:
    """Create schema conflict error (duplicate keys, incompatible composition)."""
    return _build(ErrorCode.E1001_SCHEMA_CONFLICT, message, origin=origin, key=key, **metadata)


def duplicate_key(key: Any, origin: str = "") -> Err[AppError]:
    return schema_conflict(f"Key {key} is declared more than once", key=key, origin=origin)


def unsatisfiable(left: str, right: str, reason: str = "", origin: str = "") -> Err[AppError]:
    msg = f"Intersection of {left} and {right} is empty"
    if reason:
        msg += f": {reason}"
    return _build(ErrorCode.E1002_UNSATISFIABLE_SCHEMA, msg, origin=origin, left=left, right=right)


def invalid_tuple_shape(message: str, *, position: int | None = None, origin: str = "") -> Err[AppError]:
    return _build(ErrorCode.E1003_INVALID_TUPLE_SHAPE, message, origin=origin, position=position)


def invalid_definition(message: str, *, definition: Any = None, origin: str = "") -> Err[AppError]:
    return _build(
        ErrorCode.E1004_INVALID_DEFINITION,
        message,
        origin=origin,
        definition=repr(definition) if definition is not None else None,
    )


def unresolved_reference(name: str, origin: str = "") -> Err[AppError]:
    return invalid_definition(f"'{name}' is not a keyword or a name defined in scope", origin=origin)


def registry_frozen(name: str, origin: str = "") -> Err[AppError]:
    return _build(
        ErrorCode.E1005_REGISTRY_FROZEN,
        f"Cannot define '{name}': scope is frozen",
        origin=origin,
        name=name,
    )


# =============================================================================
# Lookup Errors (E3xxx)
# =============================================================================

def key_not_found(key: Any, schema: str, origin: str = "") -> Err[AppError]:
    return _build(
        ErrorCode.E3001_KEY_NOT_FOUND,
        f"Key {key} does not exist on {schema}",
        origin=origin,
        schema=schema,
        key=str(key),
    )


# =============================================================================
# Producer Errors (E4xxx)
# =============================================================================

def producer_failed(cause: Exception, origin: str = "") -> Err[AppError]:
    return _build(
        ErrorCode.E4001_DEFAULT_PRODUCER_FAILED,
        f"Default producer raised {type(cause).__name__}: {cause}",
        origin=origin,
        cause=cause,
    )
