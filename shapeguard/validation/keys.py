"""Property keys, symbols and the undefined sentinel.

Object keys live in two disjoint domains, strings and symbols. Numeric keys
have no domain of their own and are normalized to their decimal string.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True, slots=True, eq=False)
class Symbol:
    """Identity-compared key token. Two symbols are equal only if identical."""
    description: str = ""

    def __repr__(self) -> str:
        return f"Symbol({self.description})"


class _Undefined:
    """Marker for a key that is present but holds no value."""
    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Undefined:
        return self

    def __deepcopy__(self, memo: dict) -> _Undefined:
        return self

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED = _Undefined()


class KeyDomain(str, Enum):
    STRING = "string"
    SYMBOL = "symbol"
    INDEX = "index"


@dataclass(frozen=True, slots=True)
class PropertyKey:
    """Discriminated object key: a string, a symbol or the index marker."""
    domain: KeyDomain
    value: str | Symbol | None = None

    @classmethod
    def string(cls, name: str) -> PropertyKey:
        return cls(KeyDomain.STRING, name)

    @classmethod
    def symbol(cls, sym: Symbol) -> PropertyKey:
        return cls(KeyDomain.SYMBOL, sym)

    @classmethod
    def of(cls, raw: Any) -> PropertyKey:
        """Normalize a raw key. Ints and integral floats become strings."""
        if isinstance(raw, PropertyKey):
            return raw
        if isinstance(raw, Symbol):
            return cls.symbol(raw)
        if isinstance(raw, str):
            return cls.string(raw)
        if isinstance(raw, bool):
            raise TypeError(f"{raw!r} is not a valid property key")
        if isinstance(raw, int):
            return cls.string(str(raw))
        if isinstance(raw, float) and raw.is_integer():
            return cls.string(str(int(raw)))
        if isinstance(raw, float):
            return cls.string(repr(raw))
        raise TypeError(f"{raw!r} is not a valid property key")

    @property
    def raw(self) -> str | Symbol | None:
        return self.value

    @property
    def is_index(self) -> bool:
        return self.domain is KeyDomain.INDEX

    def __str__(self) -> str:
        if self.domain is KeyDomain.INDEX:
            return "[index]"
        if self.domain is KeyDomain.SYMBOL:
            return f"[{self.value!r}]"
        return str(self.value)


INDEX_KEY = PropertyKey(KeyDomain.INDEX)
