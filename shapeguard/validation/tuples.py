"""Tuple schemas.

Elements are positional and come in five kinds which must appear in this
order:

    PREFIX* DEFAULTABLE* OPTIONAL* VARIADIC? POSTFIX*

A tuple holds at most one variadic element, postfix elements only follow a
variadic one, and postfix elements cannot coexist with optional or defaultable
ones. An array ``T[]`` is a tuple with a single variadic element.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from shapeguard.core.errors import ErrorCode, invalid_tuple_shape, raise_error

from .nodes import UnionSchema, describe_value
from .properties import DefaultProducer

if TYPE_CHECKING:
    from .errors import ValidationContext
    from .nodes import Schema
    from .validator import Validator


class ElementKind(str, Enum):
    PREFIX = "prefix"
    DEFAULTABLE = "defaultable"
    OPTIONAL = "optional"
    VARIADIC = "variadic"
    POSTFIX = "postfix"

    @property
    def rank(self) -> int:
        return _RANKS[self]


_RANKS = {
    ElementKind.PREFIX: 0,
    ElementKind.DEFAULTABLE: 1,
    ElementKind.OPTIONAL: 2,
    ElementKind.VARIADIC: 3,
    ElementKind.POSTFIX: 4,
}


@dataclass(frozen=True, slots=True)
class TupleElement:
    kind: ElementKind
    schema: Schema
    default: DefaultProducer | None = None

    def __post_init__(self) -> None:
        if (self.kind is ElementKind.DEFAULTABLE) != (self.default is not None):
            raise_error(invalid_tuple_shape(
                f"A {self.kind.value} element must carry a default producer exactly when it is defaultable",
                origin="tuples",
            ))

    @property
    def expression(self) -> str:
        text = self.schema.expression
        if isinstance(self.schema, UnionSchema) and len(self.schema.branches) > 1:
            text = f"({text})"
        match self.kind:
            case ElementKind.OPTIONAL:
                return f"{text}?"
            case ElementKind.DEFAULTABLE:
                return f"{text} = {self.default.expression}"
            case ElementKind.VARIADIC:
                return f"...{text}[]"
            case _:
                return text


@dataclass(frozen=True, slots=True)
class TupleSchema:
    elements: tuple[TupleElement, ...] = ()

    def __post_init__(self) -> None:
        kinds = [e.kind for e in self.elements]
        if kinds.count(ElementKind.VARIADIC) > 1:
            second = [i for i, k in enumerate(kinds) if k is ElementKind.VARIADIC][1]
            raise_error(invalid_tuple_shape("A tuple may have at most one variadic element",
                                            position=second, origin="tuples"))
        if ElementKind.POSTFIX in kinds:
            for i, kind in enumerate(kinds):
                if kind in (ElementKind.OPTIONAL, ElementKind.DEFAULTABLE):
                    raise_error(invalid_tuple_shape(
                        f"A {kind.value} element at position {i} cannot coexist with postfix elements",
                        position=i, origin="tuples",
                    ))
        seen_variadic = False
        for i, kind in enumerate(kinds):
            if kind is ElementKind.VARIADIC:
                seen_variadic = True
            elif kind is ElementKind.POSTFIX and not seen_variadic:
                raise_error(invalid_tuple_shape(
                    f"Postfix element at position {i} must follow a variadic element",
                    position=i, origin="tuples",
                ))
        for i in range(1, len(kinds)):
            if kinds[i].rank < kinds[i - 1].rank:
                raise_error(invalid_tuple_shape(
                    f"A {kinds[i].value} element at position {i} cannot follow a {kinds[i - 1].value} element",
                    position=i, origin="tuples",
                ))

    @property
    def fixed(self) -> tuple[TupleElement, ...]:
        """Leading prefix, defaultable and optional elements."""
        return tuple(e for e in self.elements if e.kind.rank < ElementKind.VARIADIC.rank)

    @property
    def variadic(self) -> TupleElement | None:
        return next((e for e in self.elements if e.kind is ElementKind.VARIADIC), None)

    @property
    def postfix(self) -> tuple[TupleElement, ...]:
        return tuple(e for e in self.elements if e.kind is ElementKind.POSTFIX)

    @property
    def is_array(self) -> bool:
        return len(self.elements) == 1 and self.elements[0].kind is ElementKind.VARIADIC

    def count(self, kind: ElementKind) -> int:
        return sum(1 for e in self.elements if e.kind is kind)

    @property
    def min_length(self) -> int:
        return self.count(ElementKind.PREFIX) + self.count(ElementKind.POSTFIX)

    @property
    def max_length(self) -> int | None:
        """None when a variadic element makes the length unbounded."""
        if self.variadic is not None:
            return None
        return len(self.elements)

    @property
    def expression(self) -> str:
        if self.is_array:
            inner = self.elements[0].schema
            text = inner.expression
            if isinstance(inner, UnionSchema) and len(inner.branches) > 1:
                text = f"({text})"
            return f"{text}[]"
        return "[" + ", ".join(e.expression for e in self.elements) + "]"

    def describe_length(self) -> str:
        lo, hi = self.min_length, self.max_length
        if hi is None:
            return f"at least length {lo}"
        if lo == hi:
            return f"exactly length {lo}"
        return f"between length {lo} and {hi}"


def array(schema: Schema) -> TupleSchema:
    return TupleSchema((TupleElement(ElementKind.VARIADIC, schema),))


def validate_tuple(schema: TupleSchema, value: Any, ctx: ValidationContext, validator: Validator) -> Any:
    """Validate a list or tuple positionally.

    A length outside the allowed range is reported once and no element is
    checked. The output keeps the input's sequence class.
    """
    if not isinstance(value, (list, tuple)):
        ctx.fail(f"must be an array (was {describe_value(value)})", constraint="array",
                 code=ErrorCode.E2004_INVALID_TYPE, actual=value)
        return value

    n = len(value)
    lo, hi = schema.min_length, schema.max_length
    if n < lo or (hi is not None and n > hi):
        ctx.fail(f"must be {schema.describe_length()} (was {n})", constraint=schema.expression,
                 code=ErrorCode.E2007_INVALID_LENGTH, actual=n)
        return value

    fixed = schema.fixed
    variadic = schema.variadic
    tail_start = n - schema.count(ElementKind.POSTFIX)
    output: list[Any] = []

    for i, element in enumerate(fixed):
        if i < tail_start:
            with ctx.at(i):
                output.append(validator.walk(element.schema, value[i], ctx))
        elif element.kind is ElementKind.DEFAULTABLE:
            produced = element.default.produce()
            if ctx.config.defensive_defaults:
                with ctx.at(i):
                    produced = validator.walk(element.schema, produced, ctx)
            output.append(produced)
        else:
            break

    if variadic is not None:
        for i in range(len(fixed), tail_start):
            with ctx.at(i):
                output.append(validator.walk(variadic.schema, value[i], ctx))
        for offset, element in enumerate(schema.postfix):
            i = tail_start + offset
            with ctx.at(i):
                output.append(validator.walk(element.schema, value[i], ctx))

    return tuple(output) if isinstance(value, tuple) else output
