"""Result and Error Types

Schema construction reports problems as ``Err[AppError]`` values that the
raising helpers turn into exceptions at the edge. Validation reuses the same
``Ok``/``Err`` pair with a list of failures as the error payload.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, NoReturn, TypeVar, Union, final

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")


class ErrorCode(Enum):
    """Numeric error taxonomy. The thousands digit is the category.

    E1xxx: schema construction (raised)
    E2xxx: validation failures (collected, never raised one by one)
    E3xxx: lookups (raised)
    E4xxx: default producers (raised)
    E9xxx: internal
    """
    # Construction (E1xxx)
    E1000_CONSTRUCTION_GENERIC = 1000
    E1001_SCHEMA_CONFLICT = 1001
    E1002_UNSATISFIABLE_SCHEMA = 1002
    E1003_INVALID_TUPLE_SHAPE = 1003
    E1004_INVALID_DEFINITION = 1004
    E1005_REGISTRY_FROZEN = 1005

    # Validation (E2xxx)
    E2000_VALIDATION_GENERIC = 2000
    E2001_REQUIRED_KEY_MISSING = 2001
    E2002_INVALID_FORMAT = 2002
    E2003_OUT_OF_RANGE = 2003
    E2004_INVALID_TYPE = 2004
    E2005_CONSTRAINT_VIOLATION = 2005
    E2006_UNDECLARED_KEY = 2006
    E2007_INVALID_LENGTH = 2007
    E2008_LITERAL_MISMATCH = 2008
    E2009_DEPTH_EXCEEDED = 2009
    E2010_DUPLICATE_KEY = 2010

    # Lookup (E3xxx)
    E3000_LOOKUP_GENERIC = 3000
    E3001_KEY_NOT_FOUND = 3001

    # Default producers (E4xxx)
    E4000_PRODUCER_GENERIC = 4000
    E4001_DEFAULT_PRODUCER_FAILED = 4001

    # Internal (E9xxx)
    E9000_INTERNAL_GENERIC = 9000
    E9001_UNEXPECTED_ERROR = 9001

    @property
    def category(self) -> str:
        return _CATEGORIES.get(self.value // 1000, "internal")


_CATEGORIES = {1: "construction", 2: "validation", 3: "lookup", 4: "producer"}


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Where an error was raised: the engine module, and the schema involved if any."""
    origin: str = ""
    schema: str | None = None

    def with_origin(self, origin: str) -> ErrorContext:
        return ErrorContext(origin=origin, schema=self.schema)


@dataclass(frozen=True, slots=True)
class AppError:
    """A typed engine error.

    - code: position in the taxonomy
    - message: human-readable, suitable for direct presentation
    - metadata: structured details (keys, positions, operand expressions)
    - cause: the exception this error wraps, chained when raised
    """
    code: ErrorCode
    message: str
    context: ErrorContext = field(default_factory=ErrorContext)
    metadata: dict[str, Any] = field(default_factory=dict)
    cause: Exception | None = None

    def with_metadata(self, **kwargs: Any) -> AppError:
        return AppError(self.code, self.message, self.context, {**self.metadata, **kwargs}, self.cause)

    def chain(self, cause: Exception) -> AppError:
        return AppError(self.code, self.message, self.context, self.metadata, cause)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code.name,
            "code_num": self.code.value,
            "category": self.code.category,
            "message": self.message,
            "origin": self.context.origin,
            "metadata": self.metadata,
        }
        if self.context.schema is not None:
            payload["schema"] = self.context.schema
        return {"error": payload}

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message}"


@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success. For a validation run, ``value`` is the normalized output."""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def unwrap_err(self) -> NoReturn:
        raise ValueError(f"Called unwrap_err on Ok: {self.value!r}")

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        return Ok(f(self.value))

    def match(self, ok: Callable[[T], U], err: Callable[[Any], U]) -> U:
        return ok(self.value)


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure. Carries an AppError, or the ordered failures of a validation run."""
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def unwrap_err(self) -> E:
        return self.error

    def map(self, f: Callable[[Any], Any]) -> Err[E]:
        return self

    def match(self, ok: Callable[[Any], U], err: Callable[[E], U]) -> U:
        return err(self.error)


Result = Union[Ok[T], Err[E]]


def ok(value: T) -> Ok[T]:
    return Ok(value)


def err(error: E) -> Err[E]:
    return Err(error)
