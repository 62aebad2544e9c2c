"""Constraint Primitives

Atomic, immutable checks attached to schema nodes. Every constraint exposes
the same contract: ``check(value) -> ValidationResult`` and a human-readable
``description``.

Variants:
- Range: numeric bounds
- Length: string / sequence length bounds
- Pattern: regex search over strings
- Equals: type-exact literal equality
- TypeTag: instanceof
- Predicate: opaque user-supplied narrowing

Range and Length narrow statically under intersection; the other kinds
accumulate.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable

from shapeguard.core.errors import ErrorCode

from .keys import Symbol, UNDEFINED


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Result of a single constraint check with rich context."""
    is_valid: bool
    error_message: str | None = None
    error_code: ErrorCode | None = None
    constraint: str | None = None
    expected: Any = None
    actual: Any = None

    @classmethod
    def valid(cls) -> ValidationResult:
        return cls(is_valid=True)

    @classmethod
    def invalid(cls, message: str, code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC, *,
                constraint: str | None = None, expected: Any = None, actual: Any = None) -> ValidationResult:
        return cls(is_valid=False, error_message=message, error_code=code, constraint=constraint,
                   expected=expected, actual=actual)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def literal_equal(a: Any, b: Any) -> bool:
    """Equality that never conflates booleans with numbers or symbols by value."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a is b
    if isinstance(a, Symbol) or isinstance(b, Symbol) or a is UNDEFINED or b is UNDEFINED:
        return a is b
    if a is None or b is None:
        return a is b
    if is_number(a) and is_number(b):
        return a == b
    return type(a) is type(b) and a == b


@lru_cache(maxsize=512)
def _compile(pattern: str, flags: int) -> re.Pattern:
    return re.compile(pattern, flags)


class Constraint(ABC):
    """Base class for constraint primitives."""

    @abstractmethod
    def check(self, value: Any) -> ValidationResult:
        """Check a value. Returns ValidationResult."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable constraint name for error messages."""

    def __call__(self, value: Any) -> ValidationResult:
        return self.check(value)


@dataclass(frozen=True, slots=True)
class Range(Constraint):
    """Numeric bounds."""
    min_value: float | int | None = None
    max_value: float | int | None = None
    exclusive_min: bool = False
    exclusive_max: bool = False

    @property
    def description(self) -> str:
        parts = []
        if self.min_value is not None:
            parts.append(f"{'>' if self.exclusive_min else '>='}{self.min_value}")
        if self.max_value is not None:
            parts.append(f"{'<' if self.exclusive_max else '<='}{self.max_value}")
        return f"range[{', '.join(parts)}]" if parts else "range"

    def check(self, value: Any) -> ValidationResult:
        if not is_number(value):
            return ValidationResult.invalid(
                f"must be a number (was {type(value).__name__})",
                ErrorCode.E2004_INVALID_TYPE,
                constraint=self.description,
                expected="number",
                actual=value,
            )
        if self.min_value is not None:
            if self.exclusive_min and value <= self.min_value:
                return ValidationResult.invalid(
                    f"must be more than {self.min_value} (was {value})",
                    ErrorCode.E2003_OUT_OF_RANGE,
                    constraint=self.description,
                    expected=f"> {self.min_value}",
                    actual=value,
                )
            if not self.exclusive_min and value < self.min_value:
                return ValidationResult.invalid(
                    f"must be at least {self.min_value} (was {value})",
                    ErrorCode.E2003_OUT_OF_RANGE,
                    constraint=self.description,
                    expected=f">= {self.min_value}",
                    actual=value,
                )
        if self.max_value is not None:
            if self.exclusive_max and value >= self.max_value:
                return ValidationResult.invalid(
                    f"must be less than {self.max_value} (was {value})",
                    ErrorCode.E2003_OUT_OF_RANGE,
                    constraint=self.description,
                    expected=f"< {self.max_value}",
                    actual=value,
                )
            if not self.exclusive_max and value > self.max_value:
                return ValidationResult.invalid(
                    f"must be at most {self.max_value} (was {value})",
                    ErrorCode.E2003_OUT_OF_RANGE,
                    constraint=self.description,
                    expected=f"<= {self.max_value}",
                    actual=value,
                )
        return ValidationResult.valid()

    def narrow(self, other: Range) -> Range | None:
        """Intersect two ranges. None means no number satisfies both."""
        lo, lo_ex = _tighter(self.min_value, self.exclusive_min, other.min_value, other.exclusive_min, max)
        hi, hi_ex = _tighter(self.max_value, self.exclusive_max, other.max_value, other.exclusive_max, min)
        if lo is not None and hi is not None:
            if lo > hi or (lo == hi and (lo_ex or hi_ex)):
                return None
        return Range(lo, hi, lo_ex, hi_ex)

    def covers(self, other: Range) -> bool:
        """True when every number in ``other`` is also in ``self``."""
        return self.narrow(other) == other


def _tighter(a, a_ex: bool, b, b_ex: bool, pick: Callable) -> tuple[Any, bool]:
    if a is None:
        return b, b_ex
    if b is None:
        return a, a_ex
    if a == b:
        return a, a_ex or b_ex
    chosen = pick(a, b)
    return chosen, a_ex if chosen == a else b_ex


@dataclass(frozen=True, slots=True)
class Length(Constraint):
    """Length bounds for strings and sequences."""
    min_length: int | None = None
    max_length: int | None = None

    @property
    def description(self) -> str:
        if self.min_length is not None and self.max_length is not None:
            return f"length[{self.min_length},{self.max_length}]"
        if self.min_length is not None:
            return f"min_length[{self.min_length}]"
        if self.max_length is not None:
            return f"max_length[{self.max_length}]"
        return "length"

    def check(self, value: Any) -> ValidationResult:
        if not isinstance(value, (str, list, tuple)):
            return ValidationResult.invalid(
                f"must have a length (was {type(value).__name__})",
                ErrorCode.E2004_INVALID_TYPE,
                constraint=self.description,
                actual=value,
            )
        length = len(value)
        if self.min_length is not None and length < self.min_length:
            return ValidationResult.invalid(
                f"must be at least length {self.min_length} (was {length})",
                ErrorCode.E2003_OUT_OF_RANGE,
                constraint=self.description,
                expected=f">= {self.min_length}",
                actual=length,
            )
        if self.max_length is not None and length > self.max_length:
            return ValidationResult.invalid(
                f"must be at most length {self.max_length} (was {length})",
                ErrorCode.E2003_OUT_OF_RANGE,
                constraint=self.description,
                expected=f"<= {self.max_length}",
                actual=length,
            )
        return ValidationResult.valid()

    def narrow(self, other: Length) -> Length | None:
        lo = max((v for v in (self.min_length, other.min_length) if v is not None), default=None)
        hi = min((v for v in (self.max_length, other.max_length) if v is not None), default=None)
        if lo is not None and hi is not None and lo > hi:
            return None
        return Length(lo, hi)

    def covers(self, other: Length) -> bool:
        return self.narrow(other) == other


@dataclass(frozen=True, slots=True)
class Pattern(Constraint):
    """Regex search over strings."""
    pattern: str
    flags: int = 0
    label: str | None = None

    @property
    def description(self) -> str:
        return self.label or f"pattern[{self.pattern}]"

    def check(self, value: Any) -> ValidationResult:
        if not isinstance(value, str):
            return ValidationResult.invalid(
                f"must be a string (was {type(value).__name__})",
                ErrorCode.E2004_INVALID_TYPE,
                constraint=self.description,
                actual=value,
            )
        if not _compile(self.pattern, self.flags).search(value):
            return ValidationResult.invalid(
                f"must match {self.label or '/' + self.pattern + '/'} (was {value[:50]!r})",
                ErrorCode.E2002_INVALID_FORMAT,
                constraint=self.description,
                expected=self.pattern,
                actual=value,
            )
        return ValidationResult.valid()


@dataclass(frozen=True, slots=True)
class Equals(Constraint):
    """Literal equality. ``True`` never equals ``1``."""
    value: Any

    @property
    def description(self) -> str:
        return f"=== {self.value!r}"

    def check(self, value: Any) -> ValidationResult:
        if literal_equal(self.value, value):
            return ValidationResult.valid()
        return ValidationResult.invalid(
            f"must be {self.value!r} (was {value!r})",
            ErrorCode.E2008_LITERAL_MISMATCH,
            constraint=self.description,
            expected=self.value,
            actual=value,
        )


@dataclass(frozen=True, slots=True)
class TypeTag(Constraint):
    """instanceof check against a Python class."""
    cls: type

    @property
    def description(self) -> str:
        return f"instanceof[{self.cls.__name__}]"

    def check(self, value: Any) -> ValidationResult:
        if isinstance(value, self.cls):
            return ValidationResult.valid()
        return ValidationResult.invalid(
            f"must be an instance of {self.cls.__name__} (was {type(value).__name__})",
            ErrorCode.E2004_INVALID_TYPE,
            constraint=self.description,
            expected=self.cls.__name__,
            actual=value,
        )


@dataclass(frozen=True, slots=True)
class Predicate(Constraint):
    """Custom narrowing from a function.

    The function returns a bool or a ValidationResult. Exceptions it raises
    become failures of this constraint.

    Usage:
        even = Predicate(lambda n: n % 2 == 0, name="even")
    """
    fn: Callable[[Any], bool | ValidationResult]
    name: str = "predicate"

    @property
    def description(self) -> str:
        return self.name

    def check(self, value: Any) -> ValidationResult:
        try:
            outcome = self.fn(value)
        except Exception as e:
            return ValidationResult.invalid(f"{self.name} raised {type(e).__name__}: {e}",
                ErrorCode.E2005_CONSTRAINT_VIOLATION, constraint=self.name, actual=value)
        if isinstance(outcome, ValidationResult):
            return outcome
        if outcome:
            return ValidationResult.valid()
        return ValidationResult.invalid(f"must be {self.name} (was {value!r})",
            ErrorCode.E2005_CONSTRAINT_VIOLATION, constraint=self.name, actual=value)
