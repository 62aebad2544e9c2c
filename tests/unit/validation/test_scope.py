"""Scope registration lifecycle and recursive references."""
from __future__ import annotations

import gc
import warnings
from concurrent.futures import ThreadPoolExecutor

import pytest

from shapeguard.core.config import SchemaConfig
from shapeguard.core.errors import (
    DefinitionError,
    ErrorCode,
    RegistryFrozen,
    SchemaConflict,
    UnsatisfiableSchema,
)
from shapeguard.validation import (
    IndexSignatureConflictWarning,
    ObjectSchema,
    Ref,
    Scope,
    intersection,
    parse,
    validate,
)


class TestRegistration:
    def test_define_returns_a_reference(self, scope) -> None:
        ref = scope.define("user", {"name": "string"})
        assert isinstance(ref, Ref)
        assert ref.name == "user"
        assert "user" in scope
        assert isinstance(scope.resolve(ref), ObjectSchema)
        assert scope.resolve("user") == scope.resolve(ref)

    def test_unknown_name(self, scope) -> None:
        with pytest.raises(DefinitionError):
            scope.resolve("missing")
        with pytest.raises(DefinitionError):
            scope.define("a", {"b": "missing"})

    def test_mutual_recursion(self, scope) -> None:
        scope.define_all({
            "user": {"name": "string", "team?": "team"},
            "team": {"members": "user[]", "lead?": "user"},
        })
        payload = {"members": [{"name": "a", "team": {"members": []}}], "lead": {"name": "b"}}
        assert scope.validate("team", payload).is_ok()

    def test_failed_batch_defines_nothing(self, scope) -> None:
        with pytest.raises(DefinitionError):
            scope.define_all({"a": {"x": "string"}, "b": "missing"})
        assert "a" not in scope
        assert "b" not in scope
        scope.define("a", "number")
        assert scope.names == ("a",)

    @pytest.mark.parametrize("name", ["", "a[]", "a?", "[a]"])
    def test_invalid_names(self, scope, name) -> None:
        with pytest.raises(DefinitionError):
            scope.define(name, "string")

    def test_keywords_cannot_be_shadowed(self, scope) -> None:
        with pytest.raises(SchemaConflict):
            scope.define("string", "number")

    def test_names_are_defined_once(self, scope) -> None:
        scope.define("a", "string")
        with pytest.raises(SchemaConflict):
            scope.define("a", "number")

    def test_repr(self, scope) -> None:
        scope.define("a", "string")
        assert repr(scope) == "Scope(a; open)"


class TestDeferredChecks:
    @pytest.mark.parametrize("definitions", [
        {"b": "string", "a": ["b", "&", "number"]},
        {"a": ["b", "&", "number"], "b": "string"},
    ])
    def test_empty_intersection_raises_in_any_order(self, scope, definitions) -> None:
        with pytest.raises(UnsatisfiableSchema):
            scope.define_all(definitions)
        assert scope.names == ()

    def test_lazy_intersection_is_not_memoized(self, scope) -> None:
        refs = scope.define_all({"a": ["b", "&", {"y": "number"}], "b": {"x": "string"}})

        assert scope.validate("a", {"x": "s", "y": 1}).is_ok()
        assert scope.validate("a", {"x": "s"}).is_err()
        assert isinstance(intersection(refs["b"], parse({"y": "number"}), scope), ObjectSchema)

    def test_index_key_may_name_a_later_definition(self, scope) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            scope.define_all({"o": {"[k]": "string", "a": "string"}, "k": ["===", "a", "b"]})

        assert scope.validate("o", {"a": "x", "b": "y"}).is_ok()
        assert scope.validate("o", {"a": "x", "b": 1}).is_err()

    def test_overlap_warning_waits_for_the_batch(self, scope) -> None:
        with pytest.warns(IndexSignatureConflictWarning):
            scope.define_all({"o": {"[k]": "number", "a": "string"}, "k": ["===", "a", "b"]})

    def test_defer_outside_a_batch_runs_nothing(self, scope) -> None:
        assert scope.defer(lambda: None) is False


class TestLifecycle:
    def test_validation_freezes(self, scope) -> None:
        scope.define("a", "string")
        assert not scope.frozen
        assert scope.validate("a", "x").is_ok()
        assert scope.frozen
        with pytest.raises(RegistryFrozen):
            scope.define("b", "number")

    def test_explicit_freeze(self, scope) -> None:
        assert scope.freeze() is scope
        with pytest.raises(RegistryFrozen):
            scope.define("a", "string")

    def test_frozen_scope_is_shared_across_threads(self, scope) -> None:
        scope.define("point", {"x": "number", "y": "number"})
        scope.freeze()
        values = [{"x": i, "y": -i} if i % 2 else {"x": str(i)} for i in range(40)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda v: scope.validate("point", v), values))

        assert [r.is_ok() for r in results] == [bool(i % 2) for i in range(40)]

    def test_config_comes_from_the_scope(self) -> None:
        scope = Scope(SchemaConfig(undeclared_policy="reject"))
        scope.define("a", {"x": "string"})
        assert scope.validate("a", {"x": "s", "y": 1}).is_err()

    def test_reference_outliving_its_scope(self) -> None:
        def make() -> Ref:
            return Scope().define("a", "string")

        ref = make()
        gc.collect()
        with pytest.raises(DefinitionError):
            validate(ref, "x")


class TestRecursiveValues:
    def test_cyclic_value_is_accepted(self, scope) -> None:
        scope.define("node", {"name": "string", "next?": "node"})
        value = {"name": "loop"}
        value["next"] = value

        output = scope.validate("node", value).unwrap()
        assert output["name"] == "loop"

    def test_cyclic_value_still_checks_each_node(self, scope) -> None:
        scope.define("node", {"name": "string", "next?": "node"})
        inner = {"name": 1}
        outer = {"name": "a", "next": inner}
        inner["next"] = outer

        failures = scope.validate("node", outer).unwrap_err()
        assert [f.path for f in failures] == [("next", "name")]

    def test_depth_limit(self) -> None:
        scope = Scope(SchemaConfig(max_depth=3))
        scope.define("chain", {"next?": "chain"})

        assert scope.validate("chain", {"next": {"next": {}}}).is_ok()
        failures = scope.validate("chain", {"next": {"next": {"next": {}}}}).unwrap_err()
        assert len(failures) == 1
        assert failures[0].code is ErrorCode.E2009_DEPTH_EXCEEDED
        assert failures[0].path == ("next", "next", "next")
