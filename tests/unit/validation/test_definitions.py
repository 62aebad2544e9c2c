"""Definition trees parsed into schema nodes."""
from __future__ import annotations

import pytest

from shapeguard.core.errors import DefinitionError, InvalidTupleShape, SchemaConflict
from shapeguard.validation import (
    NEVER,
    UNDEFINED,
    Constrained,
    ElementKind,
    Keyword,
    Length,
    Pattern,
    PropertyKind,
    Range,
    Symbol,
    UnionSchema,
    array,
    literal,
    parse,
    validate,
)

STRING = Keyword("string")
NUMBER = Keyword("number")


class TestNames:
    def test_keywords(self) -> None:
        assert parse("string") == STRING
        assert parse("true") == literal(True)
        assert parse("never") is NEVER

    def test_array_suffix_nests(self) -> None:
        assert parse("string[][]") == array(array(STRING))

    def test_unknown_name(self) -> None:
        with pytest.raises(DefinitionError):
            parse("strnig")

    def test_scope_names(self, scope) -> None:
        ref = scope.define("id", "integer")
        assert scope.schema("id[]") == array(ref)


class TestLiterals:
    @pytest.mark.parametrize("value, domain", [
        (42, "number"), (1.5, "number"), (True, "boolean"), (None, "null"), (UNDEFINED, "undefined"),
    ])
    def test_scalars(self, value, domain) -> None:
        schema = parse(value)
        assert schema.value is value
        assert schema.domain == domain

    def test_symbols(self) -> None:
        token = Symbol("token")
        assert parse(token) == literal(token)

    def test_literal_union(self) -> None:
        assert parse(["===", "a", 1]) == UnionSchema((literal("a"), literal(1)))
        assert parse(["==="]) == NEVER

    def test_unsupported_values(self) -> None:
        with pytest.raises(DefinitionError):
            parse(object())
        with pytest.raises(DefinitionError):
            parse(1j)


class TestObjects:
    def test_property_kinds(self) -> None:
        schema = parse({
            "a": "string",
            "b?": "string",
            "c": ["string", "?"],
            "d": ["string", "=", "x"],
        })
        assert [p.kind for p in schema.properties] == [
            PropertyKind.REQUIRED, PropertyKind.OPTIONAL, PropertyKind.OPTIONAL, PropertyKind.DEFAULTABLE,
        ]

    def test_escaped_question_mark(self) -> None:
        schema = parse({"what\\?": "string"})
        prop = schema.lookup("what?")
        assert prop.kind is PropertyKind.REQUIRED

    def test_optional_and_default_conflict(self) -> None:
        with pytest.raises(SchemaConflict):
            parse({"a?": ["string", "=", "x"]})

    def test_unknown_policy(self) -> None:
        with pytest.raises(DefinitionError):
            parse({"+": "keep"})

    def test_single_index_signature(self) -> None:
        with pytest.raises(SchemaConflict):
            parse({"[string]": "number", "[symbol]": "number"})

    def test_invalid_key(self) -> None:
        with pytest.raises(DefinitionError):
            parse({True: "string"})


class TestExpressions:
    def test_union_chain(self) -> None:
        assert parse(["string", "|", "number", "|", "null"]) == UnionSchema((STRING, NUMBER, Keyword("null")))

    def test_intersection_chain(self) -> None:
        schema = parse([{"a": "string"}, "&", {"b": "number"}, "&", {"c?": "boolean"}])
        assert schema == parse({"a": "string", "b": "number", "c?": "boolean"})

    def test_mixed_operators_need_grouping(self) -> None:
        with pytest.raises(DefinitionError):
            parse(["string", "|", "number", "&", "integer"])
        assert parse([["string", "|", "number"], "&", "integer"]) == Keyword("integer")

    def test_constrained(self) -> None:
        schema = parse(["string", Length(min_length=1), Pattern("^a")])
        assert schema == Constrained(STRING, (Length(min_length=1), Pattern("^a")))
        assert validate(schema, "abc").is_ok()
        assert validate(schema, "").is_err()

    def test_constrained_numbers(self) -> None:
        assert parse(["number", Range(0, 10)]) == Constrained(NUMBER, (Range(0, 10),))

    @pytest.mark.parametrize("definition", [["string", "?"], ["string", "=", "x"]])
    def test_markers_outside_properties(self, definition) -> None:
        with pytest.raises(DefinitionError):
            parse(definition)


class TestTuples:
    def test_element_kinds(self) -> None:
        schema = parse(["string", ["number", "=", 0], "boolean?", ["null", "?"]])
        assert [e.kind for e in schema.elements] == [
            ElementKind.PREFIX, ElementKind.DEFAULTABLE, ElementKind.OPTIONAL, ElementKind.OPTIONAL,
        ]

    def test_spread_requires_a_tuple(self) -> None:
        with pytest.raises(DefinitionError):
            parse(["...", "string"])
        with pytest.raises(DefinitionError):
            parse(["string", "..."])

    def test_spread_of_a_named_tuple(self, scope) -> None:
        scope.define("pair", ["string", "number"])
        schema = scope.schema(["boolean", "...", "pair"])
        assert len(schema.elements) == 3

    def test_two_spread_arrays(self) -> None:
        with pytest.raises(InvalidTupleShape):
            parse(["...", "string[]", "...", "number[]"])

    def test_optional_after_spread(self) -> None:
        with pytest.raises(InvalidTupleShape):
            parse(["...", "string[]", "number?"])
