"""Named schema registry.

A scope is populated during an explicit registration phase and then frozen.
Names are stored in the scope's arena and referenced through ``Ref`` handles,
so definitions may refer to themselves or to each other. The first
validation through a scope freezes it.

Usage:
    scope = Scope()
    scope.define_all({
        "user": {"name": "string", "friends": "user[]"},
        "team": {"members": "user[]", "lead?": "user"},
    })
    scope.validate("team", payload)
"""
from __future__ import annotations

import threading
from typing import Any, Callable, Mapping

from shapeguard.core.config import SchemaConfig
from shapeguard.core.errors import (
    Result,
    invalid_definition,
    raise_error,
    registry_frozen,
    schema_conflict,
    unresolved_reference,
)
from shapeguard.core.logging import scope_logger

from .arena import Arena, resolve
from .definitions import parse
from .nodes import KEYWORDS, Ref

log = scope_logger()


class Scope:
    """Registry of named schemas with an OPEN -> FROZEN lifecycle."""

    def __init__(self, config: SchemaConfig | None = None):
        self.config = config or SchemaConfig.from_settings()
        self.arena = Arena()
        self._frozen = False
        self._lock = threading.RLock()
        self._checks: list[Callable[[], Any]] | None = None
        self._defining: int | None = None

    def _check_name(self, name: str) -> None:
        if self._frozen:
            raise_error(registry_frozen(name, origin="scope"))
        if not isinstance(name, str) or not name or name.endswith(("[]", "?")) or name.startswith("["):
            raise_error(invalid_definition(f"{name!r} is not a valid schema name", origin="scope"))
        if name in KEYWORDS:
            raise_error(schema_conflict(f"'{name}' would shadow a keyword", key=name, origin="scope"))
        if self.arena.ref(name) is not None:
            raise_error(schema_conflict(f"'{name}' is already defined", key=name, origin="scope"))

    def define(self, name: str, definition: Any) -> Ref:
        """Register one named schema. Its definition may refer to itself."""
        return self.define_all({name: definition})[name]

    def define_all(self, definitions: Mapping[str, Any]) -> dict[str, Ref]:
        """Register several schemas at once so they may refer to each other.

        Either every name is defined or, when one definition fails, none is.
        Checks that need a definition of the batch which is not filled yet
        (intersections, index overlap warnings) run once all are filled, so
        the outcome does not depend on the order of ``definitions``.
        """
        with self._lock:
            for name in definitions:
                self._check_name(name)
            refs = {name: self.arena.allocate(name) for name in definitions}
            self._checks, self._defining = [], threading.get_ident()
            try:
                for name, definition in definitions.items():
                    self.arena.fill(refs[name], parse(definition, self))
                checks, self._checks = self._checks, None
                for check in checks:
                    check()
            except Exception:
                for name in refs:
                    self.arena.discard(name)
                raise
            finally:
                self._checks, self._defining = None, None
        for name, ref in refs.items():
            log.debug("schema_defined", name=name, handle=ref.handle, schema=self.arena.get(ref).expression)
        return refs

    def defer(self, check: Callable[[], Any]) -> bool:
        """Queue ``check`` until the batch being defined is filled.

        Returns False, leaving the caller to run it now, when this thread is
        not inside ``define_all``.
        """
        if self._checks is None or self._defining != threading.get_ident():
            return False
        self._checks.append(check)
        return True

    def resolve(self, ref: Ref | str) -> Any:
        """Schema behind a reference or a defined name."""
        if isinstance(ref, str):
            found = self.arena.ref(ref)
            if found is None:
                raise_error(unresolved_reference(ref, origin="scope"))
            ref = found
        return resolve(ref, self)

    def schema(self, definition: Any) -> Any:
        return parse(definition, self)

    def validate(self, definition: Any, value: Any) -> Result:
        from .validator import validate

        return validate(self.schema(definition), value, scope=self)

    def freeze(self) -> Scope:
        with self._lock:
            if not self._frozen:
                self._frozen = True
                log.info("scope_frozen", arena=self.arena.id, names=len(self.arena))
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def names(self) -> tuple[str, ...]:
        return self.arena.names

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.arena.ref(name) is not None

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"Scope({', '.join(self.names)}; {state})"
