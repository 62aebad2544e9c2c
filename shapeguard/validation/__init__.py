"""Runtime Schema Engine

Definition trees are parsed into immutable schema nodes, composed with the
schema algebra and used to validate and normalize arbitrary values.

Key Features:
- Constraint primitives with a uniform check/description contract
- Object schemas with required, optional and defaultable properties,
  index signatures and an undeclared key policy (ignore/delete/reject)
- Tuple schemas with prefix, defaultable, optional, variadic and postfix elements
- Schema algebra: union, intersection, merge, keyof, get
- Named, possibly recursive schemas in a freezable scope
- Failures accumulated with key paths instead of raised

Usage:
    from shapeguard.validation import Scope, validate, intersection, keyof

    scope = Scope()
    scope.define("user", {"name": "string", "age?": "integer", "+": "reject"})

    match scope.validate("user", {"name": "ada"}):
        case Ok(output):
            ...
        case Err(failures):
            ...
"""

# Constraint primitives
from .constraints import (
    Constraint,
    Range,
    Length,
    Pattern,
    Equals,
    TypeTag,
    Predicate,
    ValidationResult,
)

# Keys
from .keys import Symbol, UNDEFINED, KeyDomain, PropertyKey

# Schema nodes
from .nodes import (
    Keyword,
    LiteralSchema,
    Constrained,
    UnionSchema,
    IntersectionSchema,
    Ref,
    KEYWORDS,
    NEVER,
    UNKNOWN,
    literal,
    constrained,
)
from .properties import (
    PropertyKind,
    PropertyDescriptor,
    DefaultProducer,
    required,
    optional,
    defaultable,
)
from .objects import ObjectSchema, IndexSignature, IndexSignatureConflictWarning
from .tuples import ElementKind, TupleElement, TupleSchema, array

# Algebra
from .algebra import union, intersection, merge, keyof, get, is_subset, is_schema
from .cache import DerivedSchemaCache, derived_schemas

# Definitions and scopes
from .definitions import parse
from .scope import Scope

# Validation
from .errors import ValidationFailure, ValidationError, ValidationContext
from .validator import Validator, validate, allows, assert_valid

__all__ = [
    # Constraints
    "Constraint",
    "Range",
    "Length",
    "Pattern",
    "Equals",
    "TypeTag",
    "Predicate",
    "ValidationResult",
    # Keys
    "Symbol",
    "UNDEFINED",
    "KeyDomain",
    "PropertyKey",
    # Nodes
    "Keyword",
    "LiteralSchema",
    "Constrained",
    "UnionSchema",
    "IntersectionSchema",
    "Ref",
    "KEYWORDS",
    "NEVER",
    "UNKNOWN",
    "literal",
    "constrained",
    # Properties
    "PropertyKind",
    "PropertyDescriptor",
    "DefaultProducer",
    "required",
    "optional",
    "defaultable",
    # Objects and tuples
    "ObjectSchema",
    "IndexSignature",
    "IndexSignatureConflictWarning",
    "ElementKind",
    "TupleElement",
    "TupleSchema",
    "array",
    # Algebra
    "union",
    "intersection",
    "merge",
    "keyof",
    "get",
    "is_subset",
    "is_schema",
    "DerivedSchemaCache",
    "derived_schemas",
    # Definitions and scopes
    "parse",
    "Scope",
    # Validation
    "ValidationFailure",
    "ValidationError",
    "ValidationContext",
    "Validator",
    "validate",
    "allows",
    "assert_valid",
]
