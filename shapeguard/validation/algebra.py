"""Schema Algebra

Operations that combine or project schemas without mutating them:

- union: normalized disjunction (flattened, deduplicated, subsumed branches pruned)
- intersection: structural AND, statically rejecting provably empty results
- merge: key-wise replacement of object properties
- keyof: the keys an object schema admits, as a schema
- get: the value schema reached by a key path
- is_subset: conservative structural subset check

Intersections and merges are memoized in the single-flight derived-schema
cache. Composition errors raise (SchemaConflict, UnsatisfiableSchema,
KeyNotFound); nothing here returns a partial schema.
"""
from __future__ import annotations

from collections.abc import Mapping
from functools import partial
from typing import TYPE_CHECKING, Any, NoReturn, assert_never

from shapeguard.core.config import UndeclaredPolicy
from shapeguard.core.errors import (
    KeyNotFound,
    UnsatisfiableSchema,
    key_not_found,
    raise_error,
    schema_conflict,
    unsatisfiable,
)
from shapeguard.core.logging import algebra_logger

from .arena import resolve
from .cache import derived_schemas
from .constraints import Constraint, Length, Range, literal_equal
from .keys import KeyDomain, PropertyKey
from .nodes import (
    ARRAY,
    NEVER,
    NUMBER,
    OBJECT,
    UNKNOWN,
    Constrained,
    IntersectionSchema,
    Keyword,
    LiteralSchema,
    Ref,
    UnionSchema,
    constrained,
    format_value,
    literal,
)
from .objects import IndexSignature, ObjectSchema
from .properties import PropertyDescriptor, PropertyKind
from .tuples import ElementKind, TupleElement, TupleSchema, array

if TYPE_CHECKING:
    from .nodes import Schema
    from .scope import Scope

log = algebra_logger()

SCHEMA_TYPES = (Keyword, LiteralSchema, Constrained, UnionSchema, IntersectionSchema, Ref, ObjectSchema, TupleSchema)

BOOLEAN = Keyword("boolean")
UNDEFINED_SCHEMA = Keyword("undefined")
_TRUE = literal(True)
_FALSE = literal(False)

# Branches that carry no transformation, so dropping one never changes an output.
_PRUNABLE = (Keyword, LiteralSchema, Constrained)


def is_schema(value: Any) -> bool:
    return isinstance(value, SCHEMA_TYPES)


def _accepts(node: Schema, value: Any, scope: Scope | None) -> bool:
    from .validator import Validator

    return Validator(scope).accepts(node, value)


def _branches(node: Schema) -> tuple[Schema, ...]:
    return node.branches if isinstance(node, UnionSchema) else (node,)


# =============================================================================
# Domains and subsets
# =============================================================================

def node_domains(node: Schema, scope: Scope | None = None, _seen: frozenset = frozenset()) -> frozenset[str] | None:
    """Value domains a schema can accept, or None when that cannot be determined."""
    match node:
        case Keyword() | LiteralSchema():
            return node.domains
        case Constrained(base=base):
            return node_domains(base, scope, _seen)
        case UnionSchema(branches=branches):
            result: frozenset[str] = frozenset()
            for branch in branches:
                domains = node_domains(branch, scope, _seen)
                if domains is None:
                    return None
                result |= domains
            return result
        case IntersectionSchema(members=members):
            known = [d for m in members if (d := node_domains(m, scope, _seen)) is not None]
            if not known:
                return None
            return frozenset.intersection(*known)
        case Ref():
            if node in _seen:
                return None
            target = resolve(node, scope, pending_ok=True)
            if target is None:
                return None
            return node_domains(target, scope, _seen | {node})
        case ObjectSchema():
            return frozenset({OBJECT})
        case TupleSchema():
            return frozenset({ARRAY})
        case _:
            assert_never(node)


def is_subset(a: Schema, b: Schema, scope: Scope | None = None) -> bool:
    """True only when every value accepted by ``a`` is provably accepted by ``b``."""
    return _subset(a, b, scope, frozenset())


def _subset(a: Schema, b: Schema, scope: Scope | None, seen: frozenset) -> bool:
    if a == b or b == UNKNOWN or a == NEVER:
        return True
    if isinstance(a, Ref) or isinstance(b, Ref):
        pair = (a, b)
        if pair in seen:
            return True
        a_target = resolve(a, scope, pending_ok=True) if isinstance(a, Ref) else a
        b_target = resolve(b, scope, pending_ok=True) if isinstance(b, Ref) else b
        if a_target is None or b_target is None:
            return False
        return _subset(a_target, b_target, scope, seen | {pair})
    if isinstance(a, UnionSchema):
        return all(_subset(branch, b, scope, seen) for branch in a.branches)
    if isinstance(b, IntersectionSchema):
        return all(_subset(a, member, scope, seen) for member in b.members)
    if isinstance(a, IntersectionSchema) and any(_subset(m, b, scope, seen) for m in a.members):
        return True
    if isinstance(b, UnionSchema):
        return any(_subset(a, branch, scope, seen) for branch in b.branches)
    if isinstance(a, Constrained) and not isinstance(b, Constrained):
        return _subset(a.base, b, scope, seen)

    match b:
        case Keyword(name="integer"):
            if isinstance(a, LiteralSchema):
                return a.domain == NUMBER and b.check(a.value).is_valid
            return a == b
        case Keyword():
            domains = node_domains(a, scope)
            return domains is not None and domains <= b.domains
        case LiteralSchema():
            return isinstance(a, LiteralSchema) and a.domain == b.domain and literal_equal(a.value, b.value)
        case Constrained(base=base, constraints=constraints):
            if isinstance(a, LiteralSchema):
                return _subset(a, base, scope, seen) and all(c.check(a.value).is_valid for c in constraints)
            if isinstance(a, Constrained):
                return _subset(a.base, base, scope, seen) and all(_implied(c, a.constraints) for c in constraints)
            return False
        case ObjectSchema():
            return isinstance(a, ObjectSchema) and _object_subset(a, b, scope, seen)
        case TupleSchema():
            return isinstance(a, TupleSchema) and _tuple_subset(a, b, scope, seen)
    return False


def _implied(constraint: Constraint, by: tuple[Constraint, ...]) -> bool:
    for other in by:
        if other == constraint:
            return True
        if isinstance(constraint, (Range, Length)) and type(other) is type(constraint) and constraint.covers(other):
            return True
    return False


def _object_subset(a: ObjectSchema, b: ObjectSchema, scope: Scope | None, seen: frozenset) -> bool:
    if b.undeclared is UndeclaredPolicy.REJECT and a.undeclared is not UndeclaredPolicy.REJECT:
        return False
    if b.index is not None and a.index is None and a.undeclared is not UndeclaredPolicy.REJECT:
        return False
    for pb in b.properties:
        pa = a.lookup(pb.key)
        if pa is None:
            if pb.is_required:
                return False
            if a.index is not None and _accepts(a.index.key, pb.key.raw, scope):
                if not _subset(a.index.value, pb.value, scope, seen):
                    return False
            elif a.undeclared is not UndeclaredPolicy.REJECT:
                return False
            continue
        if pb.is_required and not pa.is_required:
            return False
        if not _subset(pa.value, pb.value, scope, seen):
            return False
    for pa in a.properties:
        if b.lookup(pa.key) is not None:
            continue
        if b.index is not None and _accepts(b.index.key, pa.key.raw, scope):
            if not _subset(pa.value, b.index.value, scope, seen):
                return False
        elif b.undeclared is UndeclaredPolicy.REJECT:
            return False
    if a.index is not None and b.index is not None:
        return a.index.key == b.index.key and _subset(a.index.value, b.index.value, scope, seen)
    return True


def _tuple_subset(a: TupleSchema, b: TupleSchema, scope: Scope | None, seen: frozenset) -> bool:
    if b.is_array:
        return all(_subset(e.schema, b.variadic.schema, scope, seen) for e in a.elements)
    if a.variadic is not None or b.variadic is not None or len(a.elements) != len(b.elements):
        return False
    for ea, eb in zip(a.elements, b.elements):
        if eb.kind is ElementKind.PREFIX and ea.kind is not ElementKind.PREFIX:
            return False
        if not _subset(ea.schema, eb.schema, scope, seen):
            return False
    return True


# =============================================================================
# Union
# =============================================================================

def union(*branches: Schema, scope: Scope | None = None) -> Schema:
    """Normalized union of schemas.

    Nested unions are flattened, ``never`` and duplicates dropped, and
    ``true | false`` collapses to ``boolean``. A primitive branch provably
    contained in another branch is pruned. One branch is returned as-is; no
    branches yields ``never``.
    """
    flat: list[Schema] = []
    for branch in branches:
        for part in _branches(branch):
            if part not in flat:
                flat.append(part)

    if _TRUE in flat and _FALSE in flat:
        first = min(flat.index(_TRUE), flat.index(_FALSE))
        flat = [BOOLEAN if i == first else b for i, b in enumerate(flat) if i == first or b not in (_TRUE, _FALSE)]

    kept = []
    for i, branch in enumerate(flat):
        if isinstance(branch, _PRUNABLE) and any(
            j != i and is_subset(branch, other, scope) and (j < i or not is_subset(other, branch, scope))
            for j, other in enumerate(flat)
        ):
            continue
        kept.append(branch)

    if not kept:
        return NEVER
    if len(kept) == 1:
        return kept[0]
    return UnionSchema(tuple(kept))


# =============================================================================
# Intersection
# =============================================================================

class _Composer:
    """One intersection computation. Tracks reference pairs being expanded.

    ``deferred`` is set once a reference to a definition still being
    registered is met; the result then stays lazy and must not be cached.
    """

    def __init__(self, scope: Scope | None):
        self.scope = scope
        self.expanding: set[tuple[Schema, Schema]] = set()
        self.deferred = False

    def unsatisfiable(self, a: Schema, b: Schema, reason: str) -> NoReturn:
        log.debug("unsatisfiable_intersection", left=a.expression, right=b.expression, reason=reason)
        raise_error(unsatisfiable(a.expression, b.expression, reason, origin="algebra"))

    def intersect(self, a: Schema, b: Schema) -> Schema:
        if a == b:
            return a
        if a == UNKNOWN:
            return b
        if b == UNKNOWN:
            return a
        if a == NEVER or b == NEVER:
            self.unsatisfiable(a, b, "never admits no value")
        if isinstance(a, Ref) or isinstance(b, Ref):
            return self.references(a, b)
        if isinstance(a, UnionSchema):
            return self.distribute(a, b, union_on_left=True)
        if isinstance(b, UnionSchema):
            return self.distribute(b, a, union_on_left=False)

        a_domains, b_domains = node_domains(a, self.scope), node_domains(b, self.scope)
        if a_domains is not None and b_domains is not None and not a_domains & b_domains:
            self.unsatisfiable(a, b, "disjoint value domains")

        if isinstance(a, IntersectionSchema) or isinstance(b, IntersectionSchema):
            members = [*_members(a), *_members(b)]
            return IntersectionSchema(tuple(m for i, m in enumerate(members) if members.index(m) == i))
        if isinstance(a, LiteralSchema):
            return self.literal(a, b)
        if isinstance(b, LiteralSchema):
            return self.literal(b, a)
        if isinstance(a, Constrained) or isinstance(b, Constrained):
            return self.constrained(a, b)

        match (a, b):
            case (ObjectSchema(), ObjectSchema()):
                return self.objects(a, b)
            case (TupleSchema(), TupleSchema()):
                return self.tuples(a, b)
            case (Keyword(), Keyword()):
                if is_subset(a, b, self.scope):
                    return a
                if is_subset(b, a, self.scope):
                    return b
            case (Keyword(), ObjectSchema() | TupleSchema()):
                return b
            case (ObjectSchema() | TupleSchema(), Keyword()):
                return a
        return IntersectionSchema((a, b))

    def references(self, a: Schema, b: Schema) -> Schema:
        pair = (a, b)
        if pair in self.expanding:
            return IntersectionSchema(pair)
        a_target = resolve(a, self.scope, pending_ok=True) if isinstance(a, Ref) else a
        b_target = resolve(b, self.scope, pending_ok=True) if isinstance(b, Ref) else b
        if a_target is None or b_target is None:
            self.deferred = True
            return IntersectionSchema(pair)
        self.expanding.add(pair)
        try:
            return self.intersect(a_target, b_target)
        finally:
            self.expanding.discard(pair)

    def distribute(self, u: UnionSchema, other: Schema, union_on_left: bool) -> Schema:
        results = []
        for branch in u.branches:
            try:
                results.append(self.intersect(branch, other) if union_on_left else self.intersect(other, branch))
            except UnsatisfiableSchema:
                continue
        if not results:
            self.unsatisfiable(u, other, "no branch of the union is compatible")
        return union(*results, scope=self.scope)

    def literal(self, lit: LiteralSchema, other: Schema) -> Schema:
        if _accepts(other, lit.value, self.scope):
            return lit
        self.unsatisfiable(lit, other, f"{lit.expression} does not satisfy {other.expression}")

    def constrained(self, a: Schema, b: Schema) -> Schema:
        a_base, a_constraints = _split(a)
        b_base, b_constraints = _split(b)
        base = self.intersect(a_base, b_base)
        narrowed: list[Constraint] = []
        for c in (*a_constraints, *b_constraints):
            for i, existing in enumerate(narrowed):
                if isinstance(c, (Range, Length)) and type(existing) is type(c):
                    result = existing.narrow(c)
                    if result is None:
                        self.unsatisfiable(a, b, f"{existing.description} and {c.description} are disjoint")
                    narrowed[i] = result
                    break
            else:
                if c not in narrowed:
                    narrowed.append(c)
        return constrained(base, *narrowed)

    def value(self, a: Schema, b: Schema, optional: bool) -> Schema:
        # An optional slot whose schemas conflict can still be satisfied by absence.
        try:
            return self.intersect(a, b)
        except UnsatisfiableSchema:
            if optional:
                return NEVER
            raise

    def objects(self, a: ObjectSchema, b: ObjectSchema) -> ObjectSchema:
        index = self.indexes(a.index, b.index)
        properties = []
        for pa in a.properties:
            pb = b.lookup(pa.key)
            properties.append(self.pass_through(pa, a, b) if pb is None else self.property(pa, pb))
        for pb in b.properties:
            if a.lookup(pb.key) is None:
                properties.append(self.pass_through(pb, b, a))
        undeclared = max(a.undeclared, b.undeclared, key=lambda policy: policy.strictness)
        return ObjectSchema(tuple(properties), index, undeclared)

    def indexes(self, a: IndexSignature | None, b: IndexSignature | None) -> IndexSignature | None:
        if a is None:
            return b
        if b is None:
            return a
        if a.key != b.key:
            raise_error(schema_conflict(
                f"Index signatures {a.expression} and {b.expression} have different key schemas",
                origin="algebra",
            ))
        return IndexSignature(a.key, self.intersect(a.value, b.value))

    def pass_through(self, prop: PropertyDescriptor, owner: ObjectSchema,
                     other: ObjectSchema) -> PropertyDescriptor:
        """A property only ``owner`` declares, met with what ``other`` allows for its key."""
        if other.index is not None and _accepts(other.index.key, prop.key.raw, self.scope):
            value = self.value(prop.value, other.index.value, prop.kind is PropertyKind.OPTIONAL)
        elif other.undeclared is UndeclaredPolicy.REJECT:
            if prop.is_required:
                self.unsatisfiable(owner, other, f"key {prop.key} is required but rejected as undeclared")
            # Absent is the only value both sides accept for this key.
            value = NEVER
        else:
            return prop
        if value == prop.value:
            return prop
        return PropertyDescriptor(prop.key, value, prop.kind, prop.default)

    def property(self, pa: PropertyDescriptor, pb: PropertyDescriptor) -> PropertyDescriptor:
        if pa == pb:
            return pa
        kinds = (pa.kind, pb.kind)
        if PropertyKind.REQUIRED in kinds:
            kind, default = PropertyKind.REQUIRED, None
        elif PropertyKind.DEFAULTABLE in kinds:
            if pa.default is not None and pb.default is not None and pa.default is not pb.default:
                raise_error(schema_conflict(f"Key {pa.key} has conflicting defaults", key=str(pa.key),
                                            origin="algebra"))
            kind, default = PropertyKind.DEFAULTABLE, pa.default or pb.default
        else:
            kind, default = PropertyKind.OPTIONAL, None
        value = self.value(pa.value, pb.value, kind is PropertyKind.OPTIONAL)
        return PropertyDescriptor(pa.key, value, kind, default)

    def tuples(self, a: TupleSchema, b: TupleSchema) -> Schema:
        if (a.max_length is not None and a.max_length < b.min_length) or (
            b.max_length is not None and b.max_length < a.min_length
        ):
            self.unsatisfiable(a, b, f"{a.describe_length()} and {b.describe_length()} are disjoint")
        if a.is_array and b.is_array:
            return array(self.intersect(a.variadic.schema, b.variadic.schema))
        if b.is_array:
            return TupleSchema(tuple(self.element(e, e.schema, b.variadic.schema) for e in a.elements))
        if a.is_array:
            return TupleSchema(tuple(self.element(e, a.variadic.schema, e.schema) for e in b.elements))
        if [e.kind for e in a.elements] == [e.kind for e in b.elements]:
            elements = []
            for ea, eb in zip(a.elements, b.elements):
                if ea.default is not None and ea.default is not eb.default:
                    raise_error(schema_conflict("Tuple elements have conflicting defaults", origin="algebra"))
                elements.append(self.element(ea, ea.schema, eb.schema))
            return TupleSchema(tuple(elements))
        return IntersectionSchema((a, b))

    def element(self, template: TupleElement, left: Schema, right: Schema) -> TupleElement:
        value = self.value(left, right, template.kind is ElementKind.OPTIONAL)
        return TupleElement(template.kind, value, template.default)


def _members(node: Schema) -> tuple[Schema, ...]:
    return node.members if isinstance(node, IntersectionSchema) else (node,)


def _split(node: Schema) -> tuple[Schema, tuple[Constraint, ...]]:
    if isinstance(node, Constrained):
        return node.base, node.constraints
    return node, ()


def intersection(a: Schema, b: Schema, scope: Scope | None = None) -> Schema:
    """Structural AND of two schemas.

    Raises UnsatisfiableSchema when the result provably admits no value and
    SchemaConflict for incompatible defaults or index signatures. Pairs that
    cannot be decided statically become a lazy ``IntersectionSchema``.

    Inside ``Scope.define_all`` an operand may name a schema that is not
    filled yet. That result is lazy and uncached, and the intersection is
    checked again once every definition of the batch is filled.
    """
    composer = _Composer(scope)
    result = derived_schemas.get_or_compute(
        ("intersection", a, b),
        lambda: composer.intersect(a, b),
        cache_if=lambda _: not composer.deferred,
    )
    if composer.deferred and scope is not None:
        scope.defer(partial(intersection, a, b, scope))
    return result


# =============================================================================
# Merge, keyof, get
# =============================================================================

def _object_of(node: Schema, scope: Scope | None, operation: str) -> ObjectSchema:
    while isinstance(node, Ref):
        node = resolve(node, scope)
    if not isinstance(node, ObjectSchema):
        raise_error(schema_conflict(f"{operation} requires an object schema, not {node.expression}",
                                    origin="algebra"))
    return node


def merge(base: Schema, overrides: Mapping[Any, PropertyDescriptor] | ObjectSchema,
          scope: Scope | None = None) -> ObjectSchema:
    """Replace base properties key by key. Overriding descriptors are kept as-is.

    The index signature and undeclared policy come from ``overrides`` when it
    is an object schema that sets them, otherwise from ``base``.
    """
    def compute() -> ObjectSchema:
        target = _object_of(base, scope, "merge")
        if isinstance(overrides, ObjectSchema):
            replacements = {p.key: p for p in overrides.properties}
            index = overrides.index if overrides.index is not None else target.index
            undeclared = (overrides.undeclared if overrides.undeclared is not UndeclaredPolicy.IGNORE
                          else target.undeclared)
        else:
            replacements = {}
            for raw_key, descriptor in overrides.items():
                key = PropertyKey.of(raw_key)
                if not isinstance(descriptor, PropertyDescriptor) or descriptor.key != key:
                    raise_error(schema_conflict(f"Override for {key} must be a property descriptor with that key",
                                                key=str(key), origin="algebra"))
                replacements[key] = descriptor
            index, undeclared = target.index, target.undeclared

        properties = [replacements.get(p.key, p) for p in target.properties]
        properties += [p for key, p in replacements.items() if target.lookup(key) is None]
        log.debug("schemas_merged", base=target.expression, replaced=len(replacements))
        return ObjectSchema(tuple(properties), index, undeclared)

    return derived_schemas.get_or_compute(("merge", base, overrides), compute)


def keyof(schema: Schema, scope: Scope | None = None) -> Schema:
    """Union of the keys a schema admits.

    A ``string`` index reduces the string keys to bare ``string`` and a
    ``symbol`` index reduces the symbol keys to bare ``symbol``. Narrower index
    keys are unioned with the named keys. For a union of objects only keys
    common to every branch are kept.
    """
    match schema:
        case Ref():
            return keyof(resolve(schema, scope), scope)
        case ObjectSchema():
            return _object_keys(schema, scope)
        case UnionSchema(branches=branches) if branches:
            first, *rest = [keyof(b, scope) for b in branches]
            common = [k for k in _branches(first) if all(is_subset(k, other, scope) for other in rest)]
            return union(*common, scope=scope)
        case IntersectionSchema(members=members):
            return union(*(keyof(m, scope) for m in members), scope=scope)
        case Constrained(base=base):
            return keyof(base, scope)
    raise_error(schema_conflict(f"keyof requires an object schema, not {schema.expression}", origin="algebra"))


def _object_keys(schema: ObjectSchema, scope: Scope | None) -> Schema:
    strings = [literal(k.raw) for k in schema.keys if k.domain is KeyDomain.STRING]
    symbols = [literal(k.raw) for k in schema.keys if k.domain is KeyDomain.SYMBOL]
    indexed: list[Schema] = []
    if schema.index is not None:
        for part in _branches(schema.index.key):
            if part == Keyword("string"):
                strings = []
            elif part == Keyword("symbol"):
                symbols = []
            indexed.append(part)
    return union(*strings, *symbols, *indexed, scope=scope)


def _missing(key: Any, node: Schema) -> NoReturn:
    text = key.expression if is_schema(key) else format_value(key)
    raise_error(key_not_found(text, node.expression, origin="algebra"))


def get(schema: Schema, *path: Any, scope: Scope | None = None) -> Schema:
    """Value schema reached by following ``path`` from ``schema``.

    Keys are raw keys (strings, symbols, ints) or key schemas. Optional
    properties contribute ``undefined``. Raises KeyNotFound when a step names a
    key that can never be present.
    """
    node = schema
    for key in path:
        node = _get(node, key, scope)
    return node


def _get(node: Schema, key: Any, scope: Scope | None) -> Schema:
    match node:
        case Ref():
            return _get(resolve(node, scope), key, scope)
        case ObjectSchema():
            return _get_property(node, key, scope)
        case TupleSchema():
            return _get_element(node, key)
        case UnionSchema(branches=branches) if branches:
            return union(*(_get(b, key, scope) for b in branches), scope=scope)
        case IntersectionSchema(members=members):
            found = []
            for member in members:
                try:
                    found.append(_get(member, key, scope))
                except KeyNotFound:
                    continue
            if found:
                result = found[0]
                for other in found[1:]:
                    result = intersection(result, other, scope)
                return result
        case Constrained(base=base):
            return _get(base, key, scope)
    _missing(key, node)


def _get_property(schema: ObjectSchema, key: Any, scope: Scope | None) -> Schema:
    if is_schema(key):
        match key:
            case LiteralSchema(value=value):
                return _get_property(schema, value, scope)
            case UnionSchema(branches=branches) if branches:
                return union(*(_get_property(schema, b, scope) for b in branches), scope=scope)
        if schema.index is not None and is_subset(key, schema.index.key, scope):
            return schema.index.value
        _missing(key, schema)

    try:
        property_key = PropertyKey.of(key)
    except TypeError:
        _missing(key, schema)
    prop = schema.lookup(property_key)
    if prop is not None:
        if prop.kind is PropertyKind.OPTIONAL:
            return union(prop.value, UNDEFINED_SCHEMA, scope=scope)
        return prop.value
    if schema.index is not None and _accepts(schema.index.key, property_key.raw, scope):
        return schema.index.value
    _missing(key, schema)


def _get_element(schema: TupleSchema, key: Any) -> Schema:
    position = key.value if isinstance(key, LiteralSchema) else key
    if isinstance(position, str) and position.isdigit():
        position = int(position)
    if not isinstance(position, int) or isinstance(position, bool) or position < 0:
        _missing(key, schema)

    fixed = schema.fixed
    if position < len(fixed):
        element = fixed[position]
        if element.kind is ElementKind.OPTIONAL:
            return union(element.schema, UNDEFINED_SCHEMA)
        return element.schema
    variadic = schema.variadic
    if variadic is None:
        _missing(key, schema)
    return union(variadic.schema, *(e.schema for e in schema.postfix))
