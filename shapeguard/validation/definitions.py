"""Definition Trees

Turns plain Python data into schema nodes.

    "string", "number[]", "user"            keyword, array, or a name in scope
    42, True, None, Symbol(...), UNDEFINED  literal
    {"name": "string", "age?": "integer"}   object
        "+": "reject"                       undeclared key policy
        "[string]": "number"                index signature
        "tags": ["string[]", "=", list]     defaultable property
        "note": ["string", "?"]             optional property
    ["string", "number?", "...", "boolean[]"]   tuple with a spread
    ["===", "a", "b"]                       literal union
    ["string", "|", "number"]               union
    [a, "&", b]                             intersection
    ["number", Range(0, 10)]                constrained

A trailing ``?`` on an object key marks it optional; ``\\?`` keeps a literal
question mark.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from shapeguard.core.config import SchemaConfig, UndeclaredPolicy
from shapeguard.core.errors import invalid_definition, raise_error, schema_conflict, unresolved_reference

from .algebra import intersection, is_schema, union
from .arena import resolve
from .constraints import Constraint
from .keys import UNDEFINED, PropertyKey, Symbol
from .nodes import KEYWORDS, NEVER, Ref, constrained, literal
from .objects import IndexSignature, ObjectSchema
from .properties import DefaultProducer, PropertyDescriptor, PropertyKind
from .tuples import ElementKind, TupleElement, TupleSchema, array

if TYPE_CHECKING:
    from .nodes import Schema
    from .scope import Scope

SPREAD = "..."
_OPERATORS = ("|", "&")


def _is_token(item: Any, token: str) -> bool:
    return isinstance(item, str) and item == token


def _is_optional_form(item: Any) -> bool:
    return isinstance(item, (list, tuple)) and len(item) == 2 and _is_token(item[1], "?")


def _is_default_form(item: Any) -> bool:
    return isinstance(item, (list, tuple)) and len(item) == 3 and _is_token(item[1], "=")


class DefinitionParser:
    def __init__(self, scope: Scope | None = None, config: SchemaConfig | None = None):
        self.scope = scope
        if config is None:
            config = scope.config if scope is not None else SchemaConfig.from_settings()
        self.config = config

    def parse(self, definition: Any) -> Schema:
        if is_schema(definition):
            return definition
        if isinstance(definition, str):
            return self.name(definition)
        if definition is None or definition is UNDEFINED or isinstance(definition, (bool, int, float, Symbol)):
            return literal(definition)
        if isinstance(definition, Mapping):
            return self.object_schema(definition)
        if isinstance(definition, (list, tuple)):
            return self.expression(definition)
        raise_error(invalid_definition(f"Cannot build a schema from {type(definition).__name__}",
                                       definition=definition, origin="definitions"))

    def name(self, text: str) -> Schema:
        if text.endswith("[]"):
            return array(self.name(text[:-2]))
        if text in KEYWORDS:
            return KEYWORDS[text]
        if self.scope is not None:
            ref = self.scope.arena.ref(text)
            if ref is not None:
                return ref
        raise_error(unresolved_reference(text, origin="definitions"))

    def object_schema(self, definition: Mapping) -> ObjectSchema:
        policy = self.config.undeclared_policy
        index: IndexSignature | None = None
        properties: list[PropertyDescriptor] = []
        for raw_key, value in definition.items():
            if raw_key == "+":
                try:
                    policy = UndeclaredPolicy(value)
                except ValueError:
                    raise_error(invalid_definition(f"Unknown undeclared key policy {value!r}",
                                                   definition=value, origin="definitions"))
                continue
            if isinstance(raw_key, str) and len(raw_key) > 2 and raw_key[0] == "[" and raw_key[-1] == "]":
                if index is not None:
                    raise_error(schema_conflict("An object may declare only one index signature",
                                                key=raw_key, origin="definitions"))
                index = IndexSignature.of(self.name(raw_key[1:-1]), self.parse(value))
                continue
            properties.append(self.property(raw_key, value))
        return ObjectSchema.build(properties, index, policy, scope=self.scope)

    def property(self, raw_key: Any, value: Any) -> PropertyDescriptor:
        optional = False
        if isinstance(raw_key, str):
            if raw_key.endswith("\\?"):
                raw_key = raw_key[:-2] + "?"
            elif raw_key.endswith("?"):
                raw_key, optional = raw_key[:-1], True
        try:
            key = PropertyKey.of(raw_key)
        except TypeError:
            raise_error(invalid_definition(f"{raw_key!r} is not a valid property key", origin="definitions"))

        if _is_default_form(value):
            if optional:
                raise_error(schema_conflict(f"Key {key} cannot be both optional and defaultable",
                                            key=str(key), origin="definitions"))
            return PropertyDescriptor(key, self.parse(value[0]), PropertyKind.DEFAULTABLE,
                                      DefaultProducer.of(value[2]))
        if _is_optional_form(value):
            return PropertyDescriptor(key, self.parse(value[0]), PropertyKind.OPTIONAL)
        kind = PropertyKind.OPTIONAL if optional else PropertyKind.REQUIRED
        return PropertyDescriptor(key, self.parse(value), kind)

    def expression(self, items: list | tuple) -> Schema:
        if not items:
            return TupleSchema(())
        if _is_token(items[0], "==="):
            return union(*(literal(v) for v in items[1:]), scope=self.scope) if len(items) > 1 else NEVER
        if len(items) >= 3 and len(items) % 2 == 1 and any(_is_token(items[1], op) for op in _OPERATORS):
            operator = items[1]
            if not all(_is_token(items[i], operator) for i in range(1, len(items), 2)):
                raise_error(invalid_definition("Mixed '|' and '&' need explicit grouping",
                                               definition=items, origin="definitions"))
            operands = [self.parse(items[i]) for i in range(0, len(items), 2)]
            if operator == "|":
                return union(*operands, scope=self.scope)
            result = operands[0]
            for operand in operands[1:]:
                result = intersection(result, operand, self.scope)
            return result
        if len(items) >= 2 and all(isinstance(c, Constraint) for c in items[1:]):
            return constrained(self.parse(items[0]), *items[1:])
        if _is_optional_form(items) or _is_default_form(items):
            raise_error(invalid_definition("Optional and default markers are only valid on properties and "
                                           "tuple elements", definition=items, origin="definitions"))
        return self.tuple_schema(items)

    def tuple_schema(self, items: list | tuple) -> TupleSchema:
        elements: list[TupleElement] = []
        after_variadic = False
        i = 0
        while i < len(items):
            item = items[i]
            if _is_token(item, SPREAD):
                if i + 1 >= len(items):
                    raise_error(invalid_definition("'...' must be followed by a tuple or array definition",
                                                   definition=items, origin="definitions"))
                for element in self.spread(items[i + 1]):
                    if element.kind is ElementKind.VARIADIC:
                        after_variadic = True
                    elif element.kind is ElementKind.PREFIX and after_variadic:
                        element = TupleElement(ElementKind.POSTFIX, element.schema)
                    elements.append(element)
                i += 2
                continue
            elements.append(self.element(item, after_variadic))
            i += 1
        return TupleSchema(tuple(elements))

    def spread(self, definition: Any) -> tuple[TupleElement, ...]:
        node = self.parse(definition)
        while isinstance(node, Ref):
            node = resolve(node, self.scope)
        if not isinstance(node, TupleSchema):
            raise_error(invalid_definition(f"Cannot spread {node.expression} into a tuple",
                                           definition=definition, origin="definitions"))
        return node.elements

    def element(self, item: Any, after_variadic: bool) -> TupleElement:
        if isinstance(item, str) and item.endswith("?") and len(item) > 1:
            return TupleElement(ElementKind.OPTIONAL, self.name(item[:-1]))
        if _is_optional_form(item):
            return TupleElement(ElementKind.OPTIONAL, self.parse(item[0]))
        if _is_default_form(item):
            return TupleElement(ElementKind.DEFAULTABLE, self.parse(item[0]), DefaultProducer.of(item[2]))
        kind = ElementKind.POSTFIX if after_variadic else ElementKind.PREFIX
        return TupleElement(kind, self.parse(item))


def parse(definition: Any, scope: Scope | None = None, config: SchemaConfig | None = None) -> Schema:
    """Build a schema from a definition tree.

    Raises DefinitionError for unknown names or unsupported values,
    SchemaConflict, UnsatisfiableSchema or InvalidTupleShape when the
    definition describes an illegal schema.
    """
    return DefinitionParser(scope, config).parse(definition)
