"""Property keys, symbols and the undefined sentinel."""
from __future__ import annotations

import copy

import pytest

from shapeguard.validation import UNDEFINED, KeyDomain, PropertyKey, Symbol
from shapeguard.validation.keys import INDEX_KEY


def test_numeric_keys_normalize_to_strings() -> None:
    assert PropertyKey.of(1) == PropertyKey.string("1")
    assert PropertyKey.of(2.0) == PropertyKey.string("2")
    assert PropertyKey.of("1") == PropertyKey.of(1)


def test_booleans_and_containers_are_not_keys() -> None:
    with pytest.raises(TypeError):
        PropertyKey.of(True)
    with pytest.raises(TypeError):
        PropertyKey.of(("a",))


def test_symbol_and_string_domains_never_collide() -> None:
    s = Symbol("a")
    assert PropertyKey.of(s) != PropertyKey.of("a")
    assert PropertyKey.of(s).domain is KeyDomain.SYMBOL
    assert PropertyKey.of(s) == PropertyKey.symbol(s)
    assert PropertyKey.of(Symbol("a")) != PropertyKey.of(s)


def test_key_rendering() -> None:
    assert str(PropertyKey.of("name")) == "name"
    assert str(PropertyKey.of(Symbol("tag"))) == "[Symbol(tag)]"
    assert str(INDEX_KEY) == "[index]"
    assert INDEX_KEY.is_index


def test_undefined_is_a_falsy_singleton() -> None:
    assert not UNDEFINED
    assert UNDEFINED is not None
    assert copy.deepcopy(UNDEFINED) is UNDEFINED
    assert copy.copy({"a": UNDEFINED})["a"] is UNDEFINED
    assert repr(UNDEFINED) == "undefined"
