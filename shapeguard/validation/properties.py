"""Property descriptors: one named object member and how its absence is handled."""
from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from shapeguard.core.errors import producer_failed, raise_error, schema_conflict
from shapeguard.core.logging import schema_logger

from .keys import PropertyKey

if TYPE_CHECKING:
    from .nodes import Schema

log = schema_logger()


class PropertyKind(str, Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    DEFAULTABLE = "defaultable"


@dataclass(frozen=True, slots=True, eq=False)
class DefaultProducer:
    """Zero-argument producer of a default value.

    Wraps either a callable or a constant. Constants are deep-copied on every
    production so mutable defaults are never shared between outputs.
    Producers compare by identity.
    """
    source: Any
    is_factory: bool = False

    @classmethod
    def of(cls, source: Any) -> DefaultProducer:
        if isinstance(source, DefaultProducer):
            return source
        return cls(source, is_factory=callable(source))

    @classmethod
    def factory(cls, fn: Callable[[], Any]) -> DefaultProducer:
        return cls(fn, is_factory=True)

    @classmethod
    def constant(cls, value: Any) -> DefaultProducer:
        return cls(value, is_factory=False)

    def produce(self) -> Any:
        """Invoke the producer. Failures propagate as DefaultProducerError."""
        if not self.is_factory:
            return copy.deepcopy(self.source)
        try:
            return self.source()
        except Exception as e:
            log.error("default_producer_failed", producer=repr(self.source), error=str(e))
            raise_error(producer_failed(e, origin="properties"))

    @property
    def expression(self) -> str:
        if self.is_factory:
            return f"{getattr(self.source, '__name__', 'factory')}()"
        return repr(self.source)


@dataclass(frozen=True, slots=True)
class PropertyDescriptor:
    key: PropertyKey
    value: Schema
    kind: PropertyKind = PropertyKind.REQUIRED
    default: DefaultProducer | None = None

    def __post_init__(self) -> None:
        if self.key.is_index:
            raise_error(schema_conflict("Index signatures are not named properties", key=str(self.key),
                                        origin="properties"))
        if (self.kind is PropertyKind.DEFAULTABLE) != (self.default is not None):
            raise_error(schema_conflict(
                f"Property {self.key} must carry a default producer exactly when it is defaultable",
                key=str(self.key),
                origin="properties",
            ))

    @property
    def is_required(self) -> bool:
        return self.kind is PropertyKind.REQUIRED

    @property
    def expression(self) -> str:
        suffix = "?" if self.kind is PropertyKind.OPTIONAL else ""
        text = f"{self.key}{suffix}: {self.value.expression}"
        if self.default is not None:
            text += f" = {self.default.expression}"
        return text


def required(key: Any, value: Schema) -> PropertyDescriptor:
    return PropertyDescriptor(PropertyKey.of(key), value)


def optional(key: Any, value: Schema) -> PropertyDescriptor:
    return PropertyDescriptor(PropertyKey.of(key), value, PropertyKind.OPTIONAL)


def defaultable(key: Any, value: Schema, default: Any) -> PropertyDescriptor:
    return PropertyDescriptor(PropertyKey.of(key), value, PropertyKind.DEFAULTABLE, DefaultProducer.of(default))
