"""Validation Failure System

Structured failures with key paths, constraints, codes and actual values.
A validation run collects every failure it finds (siblings are never skipped
because one of them failed) and returns them in encounter order.

Failure format:
{
    "path": "user.tags[1]",
    "constraint": "string",
    "code": "E2004_INVALID_TYPE",
    "message": "must be a string (was 5)",
    "value": 5
}
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterator, Sequence

from shapeguard.core.config import SchemaConfig
from shapeguard.core.errors import ErrorCode

from .keys import Symbol

if TYPE_CHECKING:
    from .constraints import ValidationResult
    from .scope import Scope

PathSegment = str | Symbol | int


@dataclass(frozen=True, slots=True)
class ValidationFailure:
    """A single failure.

    - path: keys and indices from the root to the offending value
    - message: human-readable, suitable for direct presentation
    - constraint: description of the constraint that failed
    - code: taxonomy code (E2xxx)
    - actual: the value that failed
    """
    path: tuple[PathSegment, ...]
    message: str
    constraint: str
    code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC
    actual: Any = None

    @property
    def path_str(self) -> str:
        return format_path(self.path)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for reporting."""
        result = {"path": self.path_str, "constraint": self.constraint, "code": self.code.name,
                  "message": self.message}
        if self.actual is not None:
            result["value"] = self.actual
        return result

    def __str__(self) -> str:
        if not self.path:
            return self.message
        return f"{self.path_str} {self.message}"


def format_path(path: Sequence[PathSegment]) -> str:
    """Format a path as ``a.b[0]``; the root is ``$``."""
    if not path:
        return "$"
    parts = []
    for segment in path:
        if isinstance(segment, int):
            parts.append(f"[{segment}]")
        elif isinstance(segment, Symbol):
            parts.append(f"[{segment!r}]")
        elif parts:
            parts.append(f".{segment}")
        else:
            parts.append(str(segment))
    return "".join(parts)


class ValidationError(Exception):
    """Raised by ``assert_valid`` with the collected failures."""

    def __init__(self, failures: Sequence[ValidationFailure], message: str = "Validation failed"):
        self.message = message
        self.failures = list(failures)
        super().__init__(str(self))

    def __str__(self) -> str:
        if not self.failures:
            return self.message
        if len(self.failures) == 1:
            return str(self.failures[0])
        return f"{self.message} ({len(self.failures)} errors)\n" + "\n".join(f"  {f}" for f in self.failures)

    @property
    def by_path(self) -> dict[str, list[ValidationFailure]]:
        """Group failures by rendered path."""
        result: dict[str, list[ValidationFailure]] = {}
        for failure in self.failures:
            result.setdefault(failure.path_str, []).append(failure)
        return result

    def to_dict(self) -> dict[str, Any]:
        return {"error": {"type": "validation_error", "message": self.message,
                          "error_count": len(self.failures), "errors": [f.to_dict() for f in self.failures]}}


class ValidationContext:
    """Per-run state: current path, collected failures, depth and cycle guard.

    Nothing here is shared between runs, so one schema can be validated from
    many threads at once.
    """

    def __init__(self, config: SchemaConfig, scope: Scope | None = None, *,
                 path: Sequence[PathSegment] = (), active: set | None = None, depth: int = 0):
        self.config = config
        self.scope = scope
        self.failures: list[ValidationFailure] = []
        self.depth = depth
        self._path: list[PathSegment] = list(path)
        self._active: set = active if active is not None else set()

    @contextmanager
    def at(self, segment: PathSegment) -> Iterator[None]:
        self._path.append(segment)
        try:
            yield
        finally:
            self._path.pop()

    @property
    def path(self) -> tuple[PathSegment, ...]:
        return tuple(self._path)

    def fail(self, message: str, *, constraint: str, code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC,
             actual: Any = None) -> None:
        self.failures.append(ValidationFailure(self.path, message, constraint, code, actual))

    def fail_result(self, result: ValidationResult, constraint: str) -> None:
        self.fail(result.error_message or "is invalid", constraint=result.constraint or constraint,
                  code=result.error_code or ErrorCode.E2000_VALIDATION_GENERIC, actual=result.actual)

    def mark(self) -> int:
        return len(self.failures)

    def failed_since(self, mark: int) -> bool:
        return len(self.failures) > mark

    def branch(self) -> ValidationContext:
        """Child context for a trial (union branch) with its own failure list."""
        return ValidationContext(self.config, self.scope, path=self._path, active=self._active, depth=self.depth)

    def extend(self, failures: Sequence[ValidationFailure]) -> None:
        self.failures.extend(failures)

    @contextmanager
    def entering(self, token: tuple) -> Iterator[bool]:
        """Track a (handle, value identity) pair on the active path.

        Yields False when the pair is already active, i.e. the value is cyclic.
        """
        if token in self._active:
            yield False
            return
        self._active.add(token)
        try:
            yield True
        finally:
            self._active.discard(token)
