"""Constraint primitives and their static narrowing."""
from __future__ import annotations

import re

import pytest

from shapeguard.core.errors import ErrorCode
from shapeguard.validation import UNDEFINED, Equals, Length, Pattern, Predicate, Range, Symbol, TypeTag, ValidationResult
from shapeguard.validation.constraints import literal_equal


class TestRange:
    def test_inclusive_bounds(self) -> None:
        r = Range(0, 10)
        assert r.check(0).is_valid
        assert r.check(10).is_valid
        assert not r.check(11).is_valid
        assert r.check(-1).error_code is ErrorCode.E2003_OUT_OF_RANGE

    def test_exclusive_bounds(self) -> None:
        r = Range(0, 1, exclusive_min=True, exclusive_max=True)
        assert not r.check(0).is_valid
        assert r.check(0.5).is_valid
        assert r.check(1).error_message == "must be less than 1 (was 1)"

    def test_rejects_non_numbers_and_booleans(self) -> None:
        assert Range(0).check("1").error_code is ErrorCode.E2004_INVALID_TYPE
        assert not Range(0).check(True).is_valid

    def test_description(self) -> None:
        assert Range(1, 5).description == "range[>=1, <=5]"
        assert Range(exclusive_min=True, min_value=0).description == "range[>0]"

    def test_narrow(self) -> None:
        assert Range(0, 10).narrow(Range(5, 20)) == Range(5, 10)
        assert Range(0, 5).narrow(Range(6, 10)) is None
        assert Range(0, 5).narrow(Range(5, 10, exclusive_min=True)) is None
        assert Range(0, 5).narrow(Range(5, 10)) == Range(5, 5)
        assert Range(min_value=3).narrow(Range(min_value=3, exclusive_min=True)) == Range(3, exclusive_min=True)

    def test_covers(self) -> None:
        assert Range(0, 10).covers(Range(2, 3))
        assert not Range(0, 10).covers(Range(-1, 3))


class TestLength:
    def test_strings_and_sequences(self) -> None:
        length = Length(1, 3)
        assert length.check("ab").is_valid
        assert length.check([1, 2, 3]).is_valid
        assert not length.check("").is_valid
        assert length.check((1, 2, 3, 4)).error_message == "must be at most length 3 (was 4)"

    def test_rejects_values_without_length(self) -> None:
        assert Length(1).check(5).error_code is ErrorCode.E2004_INVALID_TYPE

    def test_narrow(self) -> None:
        assert Length(1, 5).narrow(Length(3)) == Length(3, 5)
        assert Length(max_length=2).narrow(Length(min_length=3)) is None


class TestPattern:
    def test_search_semantics(self) -> None:
        assert Pattern(r"\d").check("a1b").is_valid
        assert Pattern(r"^\d+$").check("12").is_valid
        assert Pattern(r"^\d+$").check("12a").error_code is ErrorCode.E2002_INVALID_FORMAT

    def test_flags_and_label(self) -> None:
        p = Pattern("^abc$", flags=re.IGNORECASE, label="abc")
        assert p.check("ABC").is_valid
        assert p.description == "abc"
        assert p.check("x").error_message == "must match abc (was 'x')"

    def test_rejects_non_strings(self) -> None:
        assert not Pattern("a").check(1).is_valid


class TestEquals:
    def test_booleans_never_equal_numbers(self) -> None:
        assert not Equals(True).check(1).is_valid
        assert not Equals(1).check(True).is_valid
        assert Equals(1).check(1.0).is_valid

    def test_symbols_compare_by_identity(self) -> None:
        s = Symbol("s")
        assert Equals(s).check(s).is_valid
        assert not Equals(s).check(Symbol("s")).is_valid

    def test_none_and_undefined_are_distinct(self) -> None:
        assert not literal_equal(None, UNDEFINED)
        assert literal_equal(UNDEFINED, UNDEFINED)


class TestTypeTagAndPredicate:
    def test_type_tag(self) -> None:
        assert TypeTag(int).check(3).is_valid
        assert TypeTag(int).check("3").error_message == "must be an instance of int (was str)"

    def test_predicate_bool(self) -> None:
        even = Predicate(lambda n: n % 2 == 0, name="even")
        assert even(4).is_valid
        assert even(3).error_message == "must be even (was 3)"
        assert even(3).error_code is ErrorCode.E2005_CONSTRAINT_VIOLATION

    def test_predicate_result_passthrough(self) -> None:
        custom = ValidationResult.invalid("nope", constraint="custom")
        assert Predicate(lambda v: custom).check(1) is custom

    def test_predicate_exceptions_become_failures(self) -> None:
        result = Predicate(lambda v: v.missing, name="attr").check(1)
        assert not result.is_valid
        assert "AttributeError" in result.error_message


@pytest.mark.parametrize("constraint", [Range(0, 1), Length(1), Pattern("x"), Equals(1), TypeTag(int)])
def test_constraints_are_hashable(constraint) -> None:
    assert hash(constraint) == hash(constraint)
