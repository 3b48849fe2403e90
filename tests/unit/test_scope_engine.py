"""Unit tests for ScopeEngine and the applicator decision table."""

from __future__ import annotations

import logging

import pytest

from request_scopes import ScopeConfigStore, ScopeEngine, TypeRegistry
from request_scopes.domain.applicator import passes_no_value
from tests.unit.scope_fakes import FakeTree, RecordingTarget


class Context:
    action_name = "index"

    def __init__(self):
        self.audit = {}


@pytest.fixture()
def store():
    return ScopeConfigStore(TypeRegistry.with_builtins())


def _apply(store, target, params, **engine_kwargs):
    context = Context()
    result = ScopeEngine(store, **engine_kwargs).apply_scopes(target, params, context, context.audit)
    return result, context.audit


class TestDispatch:
    def test_scope_target_protocol_is_used(self, store):
        store.declare(["color"])
        result, audit = _apply(store, RecordingTarget(), {"color": "blue"})
        assert result.calls == (("color", ("blue",)),)
        assert audit == {"color": "blue"}

    def test_each_scope_gets_the_previous_result(self, store):
        store.declare(["a", "b"])
        base = RecordingTarget()
        result, _ = _apply(store, base, {"a": "1", "b": "2"})
        assert base.calls == ()
        assert result.calls == (("a", ("1",)), ("b", ("2",)))

    def test_custom_dispatch(self, store):
        store.declare(["color"])
        seen = []

        def dispatch(target, name, args):
            seen.append((name, tuple(args)))
            return target + [name]

        result, _ = _apply(store, [], {"color": "blue"}, dispatch=dispatch)
        assert result == ["color"]
        assert seen == [("color", ("blue",))]

    def test_params_none_means_empty(self, store):
        store.declare(["color"])
        result, audit = _apply(store, FakeTree(), None)
        assert result.calls == []
        assert audit == {}

    def test_registry_override(self, store):
        store.declare(["color"])
        registry = TypeRegistry.with_builtins().register("default", (str,), str.upper)
        result, audit = _apply(store, FakeTree(), {"color": "blue"}, registry=registry)
        assert result.called("color") == [("BLUE",)]
        assert audit == {"color": "BLUE"}


class TestDecisionTable:
    def test_boolean_passes_no_value(self, store):
        store.declare(["tall"], {"type": "boolean"})
        result, audit = _apply(store, FakeTree(), {"tall": "1"})
        assert result.called("tall") == [()]
        assert audit == {"tall": True}

    def test_boolean_with_allow_blank_passes_value(self, store):
        store.declare(["tall"], {"type": "boolean", "allow_blank": True})
        assert not passes_no_value(store["tall"])
        result, _ = _apply(store, FakeTree(), {"tall": "0"})
        assert result.called("tall") == [(False,)]

    def test_scope_by_value_passes_no_value(self, store):
        store.declare(["newest", "oldest"], {"scope_by_value": "sort"})
        result, audit = _apply(store, FakeTree(), {"sort": "oldest"})
        assert result.calls == [("oldest", ())]
        assert audit == {"sort": "oldest"}

    def test_using_passes_positional_args(self, store):
        store.declare(["paginate"], {"using": ["page", "per_page"]})
        result, _ = _apply(store, FakeTree(), {"paginate": {"per_page": "5", "page": "2"}})
        assert result.called("paginate") == [("2", "5")]

    def test_using_with_allow_blank_keeps_fixed_arity(self, store):
        store.declare(["paginate"], {"using": ["page", "per_page"], "allow_blank": True})
        result, audit = _apply(store, FakeTree(), {"paginate": {"page": "2"}})
        assert result.called("paginate") == [("2", None)]
        assert audit == {"paginate": {"page": "2"}}

    def test_override_receives_destructured_args(self, store):
        store.declare(
            ["paginate"],
            {"using": ["page", "per_page"]},
            override=lambda ctx, target, args: target.page(*args),
        )
        result, _ = _apply(store, FakeTree(), {"paginate": {"page": "1", "per_page": "9"}})
        assert result.calls == [("page", ("1", "9"))]

    def test_override_for_in_scope_receives_single_value(self, store):
        store.declare(
            ["title"], {"in_": "q"}, override=lambda ctx, target, value: target.search(value)
        )
        result, audit = _apply(store, FakeTree(), {"q": {"title": "oak"}})
        assert result.calls == [("search", ("oak",))]
        assert audit == {"q": {"title": "oak"}}

    def test_in_scope_default(self, store):
        store.declare(["title"], {"in_": "q", "default": "pine"})
        result, audit = _apply(store, FakeTree(), {})
        assert result.called("title") == [("pine",)]
        assert audit == {"q": {"title": "pine"}}

    def test_in_scope_default_producer_is_called(self, store):
        store.declare(["title"], {"in_": "q", "default": lambda: "fir"})
        result, audit = _apply(store, FakeTree(), {})
        assert result.called("title") == [("fir",)]
        assert audit == {"q": {"title": "fir"}}

    def test_in_scope_default_producer_receives_context(self, store):
        store.declare(["title"], {"in_": "q", "default": lambda ctx: ctx.action_name})
        result, _ = _apply(store, FakeTree(), {})
        assert result.called("title") == [("index",)]

    def test_in_scope_audit_does_not_mutate_hash_value(self, store):
        store.declare(["q"], {"type": "hash"})
        store.declare(["title"], {"in_": "q", "allow_blank": True})
        params = {"q": {"title": "", "color": "red"}}
        result, audit = _apply(store, FakeTree(), params)
        (hash_value,) = result.called("q")[0]
        assert hash_value == {"color": "red"}
        assert audit["q"] == {"color": "red", "title": None}


class TestLogging:
    def test_skips_logged_at_debug(self, store, caplog):
        store.declare(["color"], {"only": "show"})
        with caplog.at_level(logging.DEBUG, logger="request_scopes.domain.engine"):
            _apply(store, FakeTree(), {"color": "blue"})
        assert "Scope 'color': not eligible" in caplog.text

    def test_skip_reason_logged(self, store, caplog):
        store.declare(["color"])
        with caplog.at_level(logging.DEBUG, logger="request_scopes.domain.engine"):
            _apply(store, FakeTree(), {"color": ""})
        assert "skipped (blank)" in caplog.text

    def test_skip_level_configurable(self, store, caplog):
        store.declare(["color"])
        with caplog.at_level(logging.INFO, logger="request_scopes.domain.engine"):
            _apply(store, FakeTree(), {}, skip_log_level=logging.INFO)
        assert "skipped (not supplied)" in caplog.text
