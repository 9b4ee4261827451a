"""Tests for the symbol cache."""

import pytest
import z3

from chiffres_z3.core.actions import Action, ADD, DIV
from chiffres_z3.memory.symbol_cache import SymbolCache, SymbolKey, SymbolKind


class TestSymbolCache:
    def test_same_key_returns_identical_handle(self):
        cache = SymbolCache(8)
        first = cache.trigger(3, ADD)
        assert cache.trigger(3, ADD) is first
        assert cache.get(SymbolKind.TRIGGER, 3, Action(ADD.kind)) is first
        assert len(cache) == 1

    def test_distinct_keys_distinct_handles(self):
        cache = SymbolCache(8)
        handles = [
            cache.trigger(0, ADD),
            cache.trigger(1, ADD),
            cache.trigger(0, DIV),
            cache.trigger(0, Action.push(5)),
            cache.trigger(0, Action.push(-5)),
            cache.index(0),
            cache.stack(0),
        ]
        assert len(cache) == len(handles)
        assert len({h.get_id() for h in handles}) == len(handles)

    def test_lazy_declaration(self):
        cache = SymbolCache(8)
        key = SymbolKey(SymbolKind.INDEX, 4)
        assert key not in cache
        cache.index(4)
        assert key in cache

    def test_declaration_names_and_sorts(self):
        cache = SymbolCache(12)
        assert str(cache.trigger(2, Action.push(7))) == "push_7@2"
        assert str(cache.trigger(0, DIV)) == "div@0"
        assert str(cache.index(1)) == "idx@1"

        stack = cache.stack(1)
        assert str(stack) == "stack@1"
        assert stack.domain() == z3.IntSort()
        assert stack.range() == z3.BitVecSort(12)
        assert z3.is_int(cache.index(1))
        assert z3.is_bool(cache.trigger(0, ADD))

    def test_trigger_requires_action(self):
        cache = SymbolCache(8)
        with pytest.raises(ValueError):
            cache.get(SymbolKind.TRIGGER, 0)
        with pytest.raises(ValueError):
            cache.get(SymbolKind.INDEX, 0, ADD)

    def test_negative_step_rejected(self):
        with pytest.raises(ValueError, match="Negative step"):
            SymbolCache(8).index(-1)


class TestActions:
    def test_labels(self):
        assert Action.push(4).label == "push 4"
        assert ADD.label == "add"
        assert DIV.label == "div"

    def test_push_carries_value(self):
        with pytest.raises(ValueError):
            Action(Action.push(1).kind)
        with pytest.raises(ValueError):
            Action(ADD.kind, 3)

    def test_value_equality(self):
        assert Action.push(3) == Action.push(3)
        assert hash(Action.push(3)) == hash(Action.push(3))
        assert Action.push(3) != Action.push(4)
        assert not Action.push(3).is_binary
        assert ADD.is_binary

    def test_push_has_no_binary_semantics(self):
        e = z3.BitVecVal(1, 8)
        with pytest.raises(ValueError):
            Action.push(1).result(e, e)
        with pytest.raises(ValueError):
            Action.push(1).precondition(e, e)
