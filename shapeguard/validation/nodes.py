"""Primitive schema nodes.

Schemas form a closed set of node kinds. This module holds the leaf and
combinator kinds; ``ObjectSchema`` and ``TupleSchema`` live in their own
modules. Every consumer matches exhaustively over:

    Keyword | LiteralSchema | Constrained | UnionSchema | IntersectionSchema
    | Ref | ObjectSchema | TupleSchema

Nodes are frozen and hashable so they can key the derived-schema cache.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeAlias

from shapeguard.core.errors import ErrorCode

from .constraints import Constraint, Equals, ValidationResult, is_number
from .keys import Symbol, UNDEFINED

if TYPE_CHECKING:
    from .objects import ObjectSchema
    from .tuples import TupleSchema

    Schema: TypeAlias = (
        "Keyword | LiteralSchema | Constrained | UnionSchema | IntersectionSchema | Ref"
        " | ObjectSchema | TupleSchema"
    )


# Value domains. Every Python value falls in exactly one.
STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"
SYMBOL = "symbol"
NULL = "null"
UNDEFINED_DOMAIN = "undefined"
OBJECT = "object"
ARRAY = "array"
OTHER = "other"

ALL_DOMAINS = frozenset({STRING, NUMBER, BOOLEAN, SYMBOL, NULL, UNDEFINED_DOMAIN, OBJECT, ARRAY, OTHER})
NON_PRIMITIVE_DOMAINS = frozenset({OBJECT, ARRAY, OTHER})


def domain_of(value: Any) -> str:
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, str):
        return STRING
    if is_number(value):
        return NUMBER
    if isinstance(value, Symbol):
        return SYMBOL
    if value is None:
        return NULL
    if value is UNDEFINED:
        return UNDEFINED_DOMAIN
    if isinstance(value, Mapping):
        return OBJECT
    if isinstance(value, (list, tuple)):
        return ARRAY
    return OTHER


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, str):
        return f'"{value}"'
    return repr(value)


@dataclass(frozen=True, slots=True)
class Keyword:
    """A named primitive domain such as ``string`` or ``unknown``."""
    name: str

    def __post_init__(self) -> None:
        if self.name not in _KEYWORD_DOMAINS:
            raise ValueError(f"Unknown keyword '{self.name}'")

    @property
    def domains(self) -> frozenset[str]:
        return _KEYWORD_DOMAINS[self.name]

    @property
    def expression(self) -> str:
        return self.name

    def check(self, value: Any) -> ValidationResult:
        if self.name == "integer":
            ok = is_number(value) and (isinstance(value, int) or value.is_integer())
        else:
            ok = domain_of(value) in self.domains
        if ok:
            return ValidationResult.valid()
        return ValidationResult.invalid(
            f"must be {_article(self.name)} (was {describe_value(value)})",
            ErrorCode.E2004_INVALID_TYPE,
            constraint=self.name,
            expected=self.name,
            actual=value,
        )


_KEYWORD_DOMAINS: dict[str, frozenset[str]] = {
    "string": frozenset({STRING}),
    "number": frozenset({NUMBER}),
    "integer": frozenset({NUMBER}),
    "boolean": frozenset({BOOLEAN}),
    "symbol": frozenset({SYMBOL}),
    "null": frozenset({NULL}),
    "undefined": frozenset({UNDEFINED_DOMAIN}),
    "object": NON_PRIMITIVE_DOMAINS,
    "unknown": ALL_DOMAINS,
}


def _article(name: str) -> str:
    if name in ("null", "undefined"):
        return name
    return f"an {name}" if name[0] in "aeiou" else f"a {name}"


def describe_value(value: Any) -> str:
    domain = domain_of(value)
    if domain in (OBJECT, ARRAY, OTHER):
        return domain if domain != OTHER else type(value).__name__
    return format_value(value)


@dataclass(frozen=True, slots=True)
class LiteralSchema:
    """Exactly one value. ``domain`` keeps ``True`` and ``1`` distinct."""
    value: Any
    domain: str

    @property
    def domains(self) -> frozenset[str]:
        return frozenset({self.domain})

    @property
    def expression(self) -> str:
        return format_value(self.value)

    @property
    def constraint(self) -> Equals:
        return Equals(self.value)

    def check(self, value: Any) -> ValidationResult:
        return self.constraint.check(value)


def literal(value: Any) -> LiteralSchema:
    return LiteralSchema(value, domain_of(value))


@dataclass(frozen=True, slots=True)
class Constrained:
    """A base schema narrowed by constraint primitives."""
    base: Schema
    constraints: tuple[Constraint, ...]

    @property
    def expression(self) -> str:
        return f"{self.base.expression} & {' & '.join(c.description for c in self.constraints)}"


def constrained(base: Schema, *constraints: Constraint) -> Schema:
    if not constraints:
        return base
    if isinstance(base, Constrained):
        return Constrained(base.base, base.constraints + tuple(constraints))
    return Constrained(base, tuple(constraints))


@dataclass(frozen=True, slots=True)
class UnionSchema:
    """Any of the branches. The empty union is ``never``."""
    branches: tuple[Schema, ...]

    @property
    def expression(self) -> str:
        if not self.branches:
            return "never"
        return " | ".join(_wrap(b) for b in self.branches)


@dataclass(frozen=True, slots=True)
class IntersectionSchema:
    """Lazy conjunction, kept when satisfiability is not decidable statically."""
    members: tuple[Schema, ...]

    @property
    def expression(self) -> str:
        return " & ".join(_wrap(m) for m in self.members)


@dataclass(frozen=True, slots=True)
class Ref:
    """Handle to a named schema stored in a scope's arena."""
    arena: int
    handle: int
    name: str

    @property
    def expression(self) -> str:
        return self.name


def _wrap(node: Schema) -> str:
    text = node.expression
    return f"({text})" if isinstance(node, (UnionSchema, IntersectionSchema, Constrained)) else text


NEVER = UnionSchema(())
UNKNOWN = Keyword("unknown")

KEYWORDS: Mapping[str, Schema] = MappingProxyType({
    **{name: Keyword(name) for name in _KEYWORD_DOMAINS},
    "true": literal(True),
    "false": literal(False),
    "never": NEVER,
})
