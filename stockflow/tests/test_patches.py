"""Tests for cache patches and their inverses."""

from dataclasses import dataclass

import pytest

from stockflow.data.patches import Batch, CacheState, Put, Remove, ReplaceAll, Swap

KIND = "inventory_items"


@dataclass(frozen=True)
class Thing:
    id: str
    name: str = ""


@pytest.fixture
def state():
    return CacheState().with_kind(KIND, [Thing("a", "A"), Thing("b", "B")])


def ids(state):
    return [e.id for e in state.items(KIND)]


class TestPut:
    def test_inserts_newest_first(self, state):
        new, inverse = Put(KIND, Thing("c")).apply(state)
        assert ids(new) == ["c", "a", "b"]
        assert inverse == Remove(KIND, "c")

    def test_replaces_in_place(self, state):
        new, inverse = Put(KIND, Thing("b", "B2")).apply(state)
        assert new.find(KIND, "b").name == "B2"
        assert ids(new) == ["a", "b"]
        restored, _ = inverse.apply(new)
        assert restored == state

    def test_original_state_untouched(self, state):
        Put(KIND, Thing("c")).apply(state)
        assert ids(state) == ["a", "b"]


class TestRemove:
    def test_inverse_restores_position(self, state):
        new, inverse = Remove(KIND, "a").apply(state)
        assert ids(new) == ["b"]
        restored, _ = inverse.apply(new)
        assert ids(restored) == ["a", "b"]

    def test_missing_entity_is_noop(self, state):
        new, inverse = Remove(KIND, "zzz").apply(state)
        assert new == state
        assert not inverse


class TestSwap:
    def test_keeps_position(self, state):
        new, inverse = Swap(KIND, "b", Thing("server-b", "B")).apply(state)
        assert ids(new) == ["a", "server-b"]
        restored, _ = inverse.apply(new)
        assert ids(restored) == ["a", "b"]

    def test_missing_old_id_falls_back_to_put(self, state):
        new, _ = Swap(KIND, "gone", Thing("x")).apply(state)
        assert ids(new) == ["x", "a", "b"]


class TestBatch:
    def test_inverse_undoes_in_reverse(self, state):
        batch = Batch(Put(KIND, Thing("c")), Remove(KIND, "a"), Put(KIND, Thing("b", "B2")))
        new, inverse = batch.apply(state)
        assert ids(new) == ["c", "b"]
        restored, _ = inverse.apply(new)
        assert restored == state

    def test_none_patches_dropped(self):
        assert Batch(None, None).patches == ()
        assert not Batch()

    def test_undo_leaves_unrelated_changes(self, state):
        new, inverse = Put(KIND, Thing("c")).apply(state)
        new, _ = Put(KIND, Thing("d")).apply(new)
        undone, _ = inverse.apply(new)
        assert ids(undone) == ["d", "a", "b"]


class TestReplaceAll:
    def test_replaces_listed_kinds_only(self, state):
        state = state.with_kind("suppliers", [Thing("s")])
        new, inverse = ReplaceAll({KIND: (Thing("z"),)}).apply(state)
        assert ids(new) == ["z"]
        assert [e.id for e in new.items("suppliers")] == ["s"]
        restored, _ = inverse.apply(new)
        assert ids(restored) == ["a", "b"]
