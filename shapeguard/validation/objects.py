"""Object schemas: declared properties, an optional index signature and the
policy for undeclared keys.

Construction rejects duplicate keys and index signatures over anything other
than string/symbol keys. Named keys that the index signature also admits are
kept; when their value schema is not provably narrower than the index value a
``IndexSignatureConflictWarning`` is emitted, since the precedence between the
two is left to the caller.
"""
from __future__ import annotations

import warnings
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import partial
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterable

from shapeguard.core.config import UndeclaredPolicy
from shapeguard.core.errors import ErrorCode, duplicate_key, raise_error, schema_conflict
from shapeguard.core.logging import schema_logger

from .constraints import Pattern
from .keys import PropertyKey, UNDEFINED
from .nodes import STRING, SYMBOL, Constrained, Keyword, describe_value
from .properties import PropertyDescriptor, PropertyKind

if TYPE_CHECKING:
    from .errors import ValidationContext
    from .nodes import Schema
    from .scope import Scope
    from .validator import Validator

log = schema_logger()

NUMERIC_KEY = Constrained(Keyword("string"), (Pattern(r"^-?\d+(\.\d+)?$", label="numeric string"),))
INTEGER_KEY = Constrained(Keyword("string"), (Pattern(r"^-?\d+$", label="integer string"),))


class IndexSignatureConflictWarning(UserWarning):
    """A named property overlaps an index signature with a wider value schema."""


@dataclass(frozen=True, slots=True)
class IndexSignature:
    key: Schema
    value: Schema

    @classmethod
    def of(cls, key: Schema, value: Schema) -> IndexSignature:
        """Normalize numeric key schemas to the string domain."""
        if key == Keyword("number"):
            key = NUMERIC_KEY
        elif key == Keyword("integer"):
            key = INTEGER_KEY
        return cls(key, value)

    @property
    def expression(self) -> str:
        return f"[{self.key.expression}]: {self.value.expression}"


@dataclass(frozen=True, slots=True)
class ObjectSchema:
    properties: tuple[PropertyDescriptor, ...] = ()
    index: IndexSignature | None = None
    undeclared: UndeclaredPolicy = UndeclaredPolicy.IGNORE
    _by_key: Mapping[PropertyKey, PropertyDescriptor] = field(
        init=False, repr=False, compare=False, hash=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        by_key: dict[PropertyKey, PropertyDescriptor] = {}
        for prop in self.properties:
            if prop.key in by_key:
                raise_error(duplicate_key(str(prop.key), origin="objects"))
            by_key[prop.key] = prop
        object.__setattr__(self, "_by_key", MappingProxyType(by_key))
        if self.index is not None:
            from .algebra import node_domains

            domains = node_domains(self.index.key)
            if domains is not None and not domains <= {STRING, SYMBOL}:
                raise_error(schema_conflict(
                    f"Index signature keys must be strings or symbols, not {self.index.key.expression}",
                    origin="objects",
                ))

    @classmethod
    def build(
        cls,
        properties: Iterable[PropertyDescriptor] = (),
        index: IndexSignature | None = None,
        undeclared: UndeclaredPolicy | str = UndeclaredPolicy.IGNORE,
        *,
        scope: Scope | None = None,
    ) -> ObjectSchema:
        """Construct and check an object schema.

        Raises SchemaConflict for duplicate keys or a non string/symbol index.
        """
        schema = cls(tuple(properties), index, UndeclaredPolicy(undeclared))
        if schema.index is not None:
            # The index key may name a schema of the batch being defined.
            check = partial(schema._warn_index_overlap, scope)
            if scope is None or not scope.defer(check):
                check()
        log.debug("object_schema_built", properties=len(schema.properties), index=schema.index is not None,
                  undeclared=schema.undeclared.value)
        return schema

    def _warn_index_overlap(self, scope: Scope | None) -> None:
        from .algebra import is_subset
        from .validator import Validator

        for prop in self.properties:
            if not Validator(scope).accepts(self.index.key, prop.key.raw):
                continue
            if is_subset(prop.value, self.index.value, scope=scope):
                continue
            message = (f"Property {prop.key} ({prop.value.expression}) overlaps index signature "
                       f"{self.index.expression}; precedence between them is unspecified")
            log.warning("index_signature_conflict", key=str(prop.key), property=prop.value.expression,
                        index=self.index.expression)
            warnings.warn(message, IndexSignatureConflictWarning, stacklevel=3)

    def lookup(self, key: Any) -> PropertyDescriptor | None:
        return self._by_key.get(PropertyKey.of(key))

    @property
    def keys(self) -> tuple[PropertyKey, ...]:
        return tuple(p.key for p in self.properties)

    @property
    def expression(self) -> str:
        parts = [p.expression for p in self.properties]
        if self.index is not None:
            parts.append(self.index.expression)
        if self.undeclared is not UndeclaredPolicy.IGNORE:
            parts.insert(0, f"+: {self.undeclared.value}")
        return "{ " + ", ".join(parts) + " }" if parts else "{}"


def validate_object(schema: ObjectSchema, value: Any, ctx: ValidationContext, validator: Validator) -> Any:
    """Validate a mapping against an object schema and build its normalized output.

    Declared properties come first in declaration order, followed by index and
    undeclared keys in input order.
    """
    if not isinstance(value, Mapping):
        ctx.fail(f"must be an object (was {describe_value(value)})", constraint="object",
                 code=ErrorCode.E2004_INVALID_TYPE, actual=value)
        return value

    entries: dict[PropertyKey, tuple[Any, Any]] = {}
    for raw_key, item in value.items():
        try:
            key = PropertyKey.of(raw_key)
        except TypeError:
            with ctx.at(str(raw_key)):
                ctx.fail(f"{raw_key!r} is not a valid key", constraint="key", code=ErrorCode.E2004_INVALID_TYPE,
                         actual=raw_key)
            continue
        if key in entries:
            with ctx.at(key.raw):
                ctx.fail(f"must be given once (also given as {entries[key][0]!r})", constraint="unique_keys",
                         code=ErrorCode.E2010_DUPLICATE_KEY, actual=raw_key)
            continue
        entries[key] = (raw_key, item)

    output: dict[Any, Any] = {}
    exact = ctx.config.exact_optional_property_types

    for prop in schema.properties:
        raw = prop.key.raw
        entry = entries.get(prop.key)
        present = entry is not None
        if present and entry[1] is UNDEFINED and prop.kind is PropertyKind.OPTIONAL and not exact:
            present = False

        with ctx.at(raw):
            if present:
                output[raw] = validator.walk(prop.value, entry[1], ctx)
            elif prop.kind is PropertyKind.REQUIRED:
                ctx.fail("must be present", constraint=f"required[{prop.key}]",
                         code=ErrorCode.E2001_REQUIRED_KEY_MISSING)
            elif prop.kind is PropertyKind.DEFAULTABLE:
                produced = prop.default.produce()
                if ctx.config.defensive_defaults:
                    produced = validator.walk(prop.value, produced, ctx)
                output[raw] = produced

    for key, (raw_key, item) in entries.items():
        if key in schema._by_key:
            continue
        raw = key.raw
        with ctx.at(raw):
            if schema.index is not None and validator.allows(schema.index.key, raw, ctx):
                output[raw] = validator.walk(schema.index.value, item, ctx)
            elif schema.undeclared is UndeclaredPolicy.REJECT:
                ctx.fail(f"must be removed (undeclared key {key})", constraint="undeclared",
                         code=ErrorCode.E2006_UNDECLARED_KEY, actual=raw_key)
            elif schema.undeclared is UndeclaredPolicy.IGNORE:
                output[raw] = item

    return output
