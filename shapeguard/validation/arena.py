"""Arena storage for named schemas.

A scope owns one arena. Named schemas are stored in slots addressed by
integer handles, and ``Ref(arena, handle, name)`` points at a slot without
owning it, so a schema can refer to itself. Arenas are registered weakly by
id so a ``Ref`` can be resolved without carrying its scope around; the scope
must outlive the schemas that reference it.
"""
from __future__ import annotations

import itertools
import threading
import weakref
from typing import TYPE_CHECKING

from shapeguard.core.errors import invalid_definition, raise_error

from .nodes import Ref

if TYPE_CHECKING:
    from .nodes import Schema
    from .scope import Scope

_ids = itertools.count(1)
_arenas: weakref.WeakValueDictionary[int, Arena] = weakref.WeakValueDictionary()


class Arena:
    def __init__(self) -> None:
        self.id = next(_ids)
        self._lock = threading.Lock()
        self._handles: dict[str, int] = {}
        self._slots: list[Schema | None] = []
        _arenas[self.id] = self

    def allocate(self, name: str) -> Ref:
        """Reserve a handle for ``name``; its slot stays empty until filled."""
        with self._lock:
            handle = len(self._slots)
            self._slots.append(None)
            self._handles[name] = handle
        return Ref(self.id, handle, name)

    def fill(self, ref: Ref, schema: Schema) -> None:
        with self._lock:
            self._slots[ref.handle] = schema

    def discard(self, name: str) -> None:
        with self._lock:
            handle = self._handles.pop(name, None)
            if handle is not None:
                self._slots[handle] = None

    def ref(self, name: str) -> Ref | None:
        handle = self._handles.get(name)
        if handle is None:
            return None
        return Ref(self.id, handle, name)

    def get(self, ref: Ref) -> Schema | None:
        """Target of ``ref``, or None while its definition is still pending."""
        return self._slots[ref.handle]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._handles)

    def __len__(self) -> int:
        return len(self._handles)


def resolve(ref: Ref, scope: Scope | None = None, *, pending_ok: bool = False) -> Schema | None:
    """Follow a reference into its arena.

    Raises DefinitionError for a reference whose scope is gone, or whose
    target is still being defined unless ``pending_ok`` is set (then None is
    returned instead).
    """
    if scope is not None and scope.arena.id == ref.arena:
        arena = scope.arena
    else:
        arena = _arenas.get(ref.arena)
    if arena is None:
        raise_error(invalid_definition(f"Reference '{ref.name}' outlived the scope that defined it",
                                       origin="arena"))
    target = arena.get(ref)
    if target is None and not pending_ok:
        raise_error(invalid_definition(f"'{ref.name}' is referenced before its definition is complete",
                                       origin="arena"))
    return target
