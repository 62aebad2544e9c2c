"""Primitive schema nodes and property descriptors."""
from __future__ import annotations

import pytest

from shapeguard.core.errors import DefaultProducerError, SchemaConflict
from shapeguard.validation import (
    KEYWORDS,
    NEVER,
    UNDEFINED,
    Constrained,
    DefaultProducer,
    Keyword,
    Length,
    PropertyKind,
    Range,
    Symbol,
    constrained,
    defaultable,
    literal,
    optional,
    required,
)
from shapeguard.validation.keys import INDEX_KEY
from shapeguard.validation.nodes import domain_of
from shapeguard.validation.properties import PropertyDescriptor


@pytest.mark.parametrize(
    ("value", "domain"),
    [
        ("a", "string"),
        (1, "number"),
        (1.5, "number"),
        (True, "boolean"),
        (None, "null"),
        (UNDEFINED, "undefined"),
        (Symbol(), "symbol"),
        ({}, "object"),
        ([], "array"),
        ((), "array"),
        (object(), "other"),
    ],
)
def test_domain_of(value, domain) -> None:
    assert domain_of(value) == domain


def test_unknown_keyword_is_rejected() -> None:
    with pytest.raises(ValueError):
        Keyword("text")


def test_keyword_checks() -> None:
    assert Keyword("integer").check(3).is_valid
    assert Keyword("integer").check(3.0).is_valid
    assert not Keyword("integer").check(3.5).is_valid
    assert not Keyword("number").check(True).is_valid
    assert Keyword("object").check([]).is_valid
    assert not Keyword("object").check("x").is_valid
    assert Keyword("unknown").check(UNDEFINED).is_valid
    assert Keyword("string").check(5).error_message == "must be a string (was 5)"
    assert Keyword("integer").check("x").error_message == 'must be an integer (was "x")'


def test_literals_keep_booleans_apart_from_numbers() -> None:
    assert literal(True) != literal(1)
    assert literal(1) == literal(1.0)
    assert KEYWORDS["true"] == literal(True)
    assert KEYWORDS["never"] is NEVER


def test_constrained_flattens() -> None:
    inner = constrained(Keyword("number"), Range(0))
    outer = constrained(inner, Range(max_value=5))

    assert outer == Constrained(Keyword("number"), (Range(0), Range(max_value=5)))
    assert constrained(Keyword("string")) == Keyword("string")
    assert constrained(Keyword("string"), Length(1)).expression == "string & min_length[1]"


def test_property_helpers() -> None:
    assert required("a", Keyword("string")).kind is PropertyKind.REQUIRED
    assert optional(1, Keyword("string")).key.raw == "1"
    prop = defaultable("tags", Keyword("string"), list)
    assert prop.kind is PropertyKind.DEFAULTABLE
    assert prop.default.is_factory
    assert prop.expression == "tags: string = list()"
    assert optional("a", Keyword("number")).expression == "a?: number"


def test_descriptor_requires_default_exactly_when_defaultable() -> None:
    key = required("a", Keyword("string")).key
    with pytest.raises(SchemaConflict):
        PropertyDescriptor(key, Keyword("string"), PropertyKind.DEFAULTABLE)
    with pytest.raises(SchemaConflict):
        PropertyDescriptor(key, Keyword("string"), PropertyKind.OPTIONAL, DefaultProducer.constant(1))
    with pytest.raises(SchemaConflict):
        PropertyDescriptor(INDEX_KEY, Keyword("string"))


def test_constant_defaults_are_copied() -> None:
    producer = DefaultProducer.of({"items": []})
    first = producer.produce()
    first["items"].append(1)

    assert producer.produce() == {"items": []}


def test_failing_producer_raises_default_producer_error() -> None:
    def broken():
        raise KeyError("missing")

    with pytest.raises(DefaultProducerError) as info:
        DefaultProducer.factory(broken).produce()
    assert isinstance(info.value.__cause__, KeyError)
