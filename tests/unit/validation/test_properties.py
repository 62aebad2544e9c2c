"""Property-based checks of normalization, composition and lookup laws."""
from __future__ import annotations

from typing import Any

import pytest
from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st

from shapeguard.core.config import SchemaConfig
from shapeguard.core.errors import ErrorCode, UnsatisfiableSchema
from shapeguard.validation import (
    UNDEFINED,
    DefaultProducer,
    Keyword,
    PropertyDescriptor,
    PropertyKey,
    PropertyKind,
    get,
    intersection,
    keyof,
    literal,
    merge,
    parse,
    validate,
)
from shapeguard.validation.constraints import literal_equal

_SETTINGS = settings(
    max_examples=50,
    derandomize=True,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)

_KEYS = ("a", "b", "c", "d")
_VALUES: dict[str, st.SearchStrategy] = {
    "string": st.text(max_size=5),
    "number": st.integers() | st.floats(allow_nan=False, allow_infinity=False),
    "integer": st.integers(),
    "boolean": st.booleans(),
}
_DEFAULTS = {"string": "", "number": 0.5, "integer": 0, "boolean": False}
_ANY = st.none() | st.booleans() | st.integers() | st.text(max_size=3)


@st.composite
def _object_case(draw: st.DrawFn) -> tuple[dict[Any, Any], dict[str, tuple[str, str]]]:
    """An object definition plus the type and kind chosen for each key."""
    members = draw(st.dictionaries(
        st.sampled_from(_KEYS),
        st.tuples(st.sampled_from(sorted(_VALUES)), st.sampled_from(["required", "optional", "defaultable"])),
        max_size=len(_KEYS),
    ))
    definition: dict[Any, Any] = {"+": draw(st.sampled_from(["ignore", "delete", "reject"]))}
    for key, (type_name, kind) in members.items():
        if kind == "optional":
            definition[f"{key}?"] = type_name
        elif kind == "defaultable":
            definition[key] = [type_name, "=", _DEFAULTS[type_name]]
        else:
            definition[key] = type_name
    index = draw(st.sampled_from([None, "string", "symbol", "number"]))
    if index is not None:
        definition[f"[{index}]"] = "unknown"
    return definition, members


@st.composite
def _conforming_value(draw: st.DrawFn, members: dict[str, tuple[str, str]]) -> dict[str, Any]:
    value: dict[str, Any] = {}
    for key, (type_name, kind) in members.items():
        if kind == "required" or draw(st.booleans()):
            value[key] = draw(_VALUES[type_name])
    for extra in draw(st.lists(st.sampled_from(["x", "y", "7"]), max_size=2, unique=True)):
        value[extra] = draw(_ANY)
    return value


@given(data=st.data())
@_SETTINGS
def test_normalization_is_idempotent(data: st.DataObject) -> None:
    definition, members = data.draw(_object_case())
    schema = parse(definition)
    value = data.draw(_conforming_value(members))

    result = validate(schema, value)
    if result.is_ok():
        output = result.unwrap()
        assert validate(schema, output).unwrap() == output


@given(a=_ANY, b=_ANY)
@_SETTINGS
def test_distinct_literals_do_not_intersect(a: Any, b: Any) -> None:
    assume(not literal_equal(a, b))
    with pytest.raises(UnsatisfiableSchema):
        intersection(literal(a), literal(b))


@given(case=_object_case(), type_name=st.sampled_from(sorted(_VALUES)),
       kind=st.sampled_from(list(PropertyKind)))
@_SETTINGS
def test_merge_replaces_descriptors_outright(case, type_name: str, kind: PropertyKind) -> None:
    definition, members = case
    assume(members)
    key = sorted(members)[0]
    default = _DEFAULTS[type_name] if kind is PropertyKind.DEFAULTABLE else None
    override = PropertyDescriptor(PropertyKey.of(key), Keyword(type_name), kind,
                                  None if default is None else DefaultProducer.constant(default))

    result = merge(parse(definition), {key: override})

    assert result.lookup(key) is override
    assert result.keys == parse(definition).keys


@pytest.mark.parametrize("type_name", ["string", "number", "boolean", "unknown"])
def test_string_index_absorbs_named_keys(type_name: str) -> None:
    schema = parse({"[string]": type_name, "specific": type_name})
    assert keyof(schema) == Keyword("string")


@pytest.mark.parametrize("value, accepted", [
    (["x"], True),
    (["x", True], True),
    (["x", True, 5], True),
    (["x", True, 5, 6], False),
    ([], False),
])
def test_tuple_with_default_and_optional(value: list, accepted: bool) -> None:
    schema = parse(["string", ["boolean", "=", False], "number?"])
    assert validate(schema, value).is_ok() is accepted


def test_tuple_default_is_injected() -> None:
    schema = parse(["string", ["boolean", "=", False], "number?"])
    assert validate(schema, ["x"]).unwrap() == ["x", False]


def test_reject_names_the_extra_key() -> None:
    schema = parse({"+": "reject", "onlyAllowedKey": "string"})
    failures = validate(schema, {"onlyAllowedKey": "a", "extra": 1}).unwrap_err()

    assert len(failures) == 1
    assert failures[0].path == ("extra",)
    assert "extra" in failures[0].message
    assert failures[0].code is ErrorCode.E2006_UNDECLARED_KEY


def test_present_undefined_is_not_absent() -> None:
    schema = parse({"key?": "number"})
    config = SchemaConfig(exact_optional_property_types=True)

    assert validate(schema, {"key": UNDEFINED}, config=config).is_err()
    assert validate(schema, {}, config=config).is_ok()


@given(case=_object_case())
@_SETTINGS
def test_every_key_from_keyof_can_be_looked_up(case) -> None:
    definition, _ = case
    schema = parse(definition)
    keys = keyof(schema)
    for key in getattr(keys, "branches", (keys,)):
        get(schema, key)
