"""Validator

Walks a schema against a value and produces either the normalized output
(defaults injected, undeclared keys filtered) or the ordered list of
failures. Malformed input never raises; only default producer defects and
schema misuse propagate.

Usage:
    from shapeguard.validation import validate, assert_valid

    match validate(schema, {"name": "x"}):
        case Ok(output):
            ...
        case Err(failures):
            for failure in failures:
                print(failure)
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, assert_never

from shapeguard.core.config import SchemaConfig
from shapeguard.core.errors import Err, ErrorCode, Ok, Result
from shapeguard.core.logging import validator_logger

from .algebra import is_schema, node_domains
from .arena import resolve
from .errors import ValidationContext, ValidationError, ValidationFailure
from .nodes import (
    Constrained,
    IntersectionSchema,
    Keyword,
    LiteralSchema,
    Ref,
    UnionSchema,
    describe_value,
    domain_of,
)
from .constraints import literal_equal
from .objects import ObjectSchema, validate_object
from .tuples import TupleSchema, validate_tuple

if TYPE_CHECKING:
    from .nodes import Schema
    from .scope import Scope

log = validator_logger()


class Validator:
    """Schema walker bound to an optional scope and a configuration."""

    def __init__(self, scope: Scope | None = None, config: SchemaConfig | None = None):
        self.scope = scope
        if config is None:
            config = scope.config if scope is not None else SchemaConfig.from_settings()
        self.config = config

    def run(self, schema: Schema, value: Any) -> Result[Any, list[ValidationFailure]]:
        ctx = ValidationContext(self.config, self.scope)
        output = self.walk(schema, value, ctx)
        if ctx.failures:
            log.debug("validation_failed", schema=schema.expression, failures=len(ctx.failures))
            return Err(ctx.failures)
        return Ok(output)

    def accepts(self, schema: Schema, value: Any) -> bool:
        ctx = ValidationContext(self.config, self.scope)
        self.walk(schema, value, ctx)
        return not ctx.failures

    def allows(self, schema: Schema, value: Any, ctx: ValidationContext) -> bool:
        """Trial run inside an ongoing validation; failures are discarded."""
        trial = ctx.branch()
        self.walk(schema, value, trial)
        return not trial.failures

    def walk(self, node: Schema, value: Any, ctx: ValidationContext) -> Any:
        match node:
            case Keyword():
                result = node.check(value)
                if not result.is_valid:
                    ctx.fail_result(result, node.name)
                return value
            case LiteralSchema():
                if domain_of(value) != node.domain or not literal_equal(node.value, value):
                    ctx.fail(f"must be {node.expression} (was {describe_value(value)})", constraint=node.expression,
                             code=ErrorCode.E2008_LITERAL_MISMATCH, actual=value)
                return value
            case Constrained(base=base, constraints=constraints):
                mark = ctx.mark()
                output = self.walk(base, value, ctx)
                if ctx.failed_since(mark):
                    return output
                for constraint in constraints:
                    result = constraint.check(output)
                    if not result.is_valid:
                        ctx.fail_result(result, constraint.description)
                return output
            case UnionSchema():
                return self._walk_union(node, value, ctx)
            case IntersectionSchema(members=members):
                output = value
                for member in members:
                    output = self.walk(member, output, ctx)
                return output
            case Ref():
                return self._walk_ref(node, value, ctx)
            case ObjectSchema():
                return validate_object(node, value, ctx, self)
            case TupleSchema():
                return validate_tuple(node, value, ctx, self)
            case _:
                assert_never(node)

    def _walk_union(self, node: UnionSchema, value: Any, ctx: ValidationContext) -> Any:
        if not node.branches:
            ctx.fail(f"must be never (was {describe_value(value)})", constraint="never",
                     code=ErrorCode.E2004_INVALID_TYPE, actual=value)
            return value

        attempts = []
        for branch in node.branches:
            trial = ctx.branch()
            output = self.walk(branch, value, trial)
            if not trial.failures:
                return output
            attempts.append((branch, trial.failures))

        domain = domain_of(value)
        matching = [
            failures for branch, failures in attempts
            if (domains := node_domains(branch, self.scope)) is None or domain in domains
        ]
        if len(matching) == 1:
            ctx.extend(matching[0])
        else:
            ctx.fail(f"must be {node.expression} (was {describe_value(value)})", constraint=node.expression,
                     code=ErrorCode.E2004_INVALID_TYPE, actual=value)
        return value

    def _walk_ref(self, node: Ref, value: Any, ctx: ValidationContext) -> Any:
        if ctx.depth >= self.config.max_depth:
            ctx.fail(f"exceeds the maximum depth of {self.config.max_depth}", constraint=node.name,
                     code=ErrorCode.E2009_DEPTH_EXCEEDED)
            return value
        target = resolve(node, self.scope)
        with ctx.entering((node.arena, node.handle, id(value))) as fresh:
            if not fresh:
                # Same reference already checking this very value further up: accept the cycle.
                return value
            ctx.depth += 1
            try:
                return self.walk(target, value, ctx)
            finally:
                ctx.depth -= 1


def _as_schema(schema: Any, scope: Scope | None, config: SchemaConfig | None) -> Schema:
    if is_schema(schema):
        return schema
    from .definitions import parse

    return parse(schema, scope, config)


def validate(schema: Any, value: Any, *, scope: Scope | None = None,
             config: SchemaConfig | None = None) -> Result[Any, list[ValidationFailure]]:
    """Validate ``value`` and return ``Ok(output)`` or ``Err(failures)``.

    ``schema`` is a schema node or a definition tree. Validating through a
    scope freezes it.
    """
    node = _as_schema(schema, scope, config)
    if scope is not None and not scope.frozen:
        scope.freeze()
    return Validator(scope, config).run(node, value)


def allows(schema: Any, value: Any, *, scope: Scope | None = None, config: SchemaConfig | None = None) -> bool:
    return validate(schema, value, scope=scope, config=config).is_ok()


def assert_valid(schema: Any, value: Any, *, scope: Scope | None = None, config: SchemaConfig | None = None) -> Any:
    """Return the normalized output or raise ValidationError with every failure."""
    result = validate(schema, value, scope=scope, config=config)
    if isinstance(result, Err):
        raise ValidationError(result.unwrap_err())
    return result.unwrap()
