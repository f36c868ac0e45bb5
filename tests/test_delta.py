import pytest

from storyshelf.repository import Insert, Remove, Update, apply_delta
from storyshelf.repository.delta import replace_by_key, revert_delta

from conftest import make_character

A = make_character("a", "Ada")
B = make_character("b", "Bo")
C = make_character("c", "Cem")


class TestApplyDelta:
    def test_insert_at_front_by_default(self):
        items, effective = apply_delta([A, B], Insert(C))
        assert items == [C, A, B]
        assert effective == C

    def test_insert_append(self):
        items, _ = apply_delta([A, B], Insert(C, position=None))
        assert items == [A, B, C]

    def test_insert_duplicate_is_noop(self):
        other_a = make_character("a", "Someone else")
        items, effective = apply_delta([A, B], Insert(other_a))
        assert items == [A, B]
        assert effective == A

    def test_update_replaces_in_place(self):
        renamed = make_character("b", "Bora")
        items, effective = apply_delta([A, B, C], Update(renamed))
        assert items == [A, renamed, C]
        assert effective == renamed

    def test_update_missing_item_leaves_list(self):
        items, _ = apply_delta([A], Update(B))
        assert items == [A]

    def test_remove(self):
        items, effective = apply_delta([A, B], Remove("a"))
        assert items == [B]
        assert effective is None

    def test_input_is_not_mutated(self):
        original = [A, B]
        apply_delta(original, Remove("a"))
        apply_delta(original, Insert(C))
        assert original == [A, B]

    def test_unknown_delta(self):
        with pytest.raises(TypeError):
            apply_delta([A], "remove a")

    def test_custom_key(self):
        items, _ = apply_delta(["x", "y"], Remove("x"), key=lambda item: item)
        assert items == ["y"]


def test_replace_by_key_with_explicit_id():
    saved = make_character("server-1", "Ada")
    assert replace_by_key([A, B], saved, item_id="a") == [saved, B]


class TestRevertDelta:
    def test_insert_removes_only_inserted_item(self):
        # B arrived from elsewhere while the insert of C was pending
        assert revert_delta([C, A, B], [A], Insert(C)) == [A, B]

    def test_duplicate_insert_is_left_alone(self):
        assert revert_delta([A, B], [A, B], Insert(A)) == [A, B]

    def test_update_restores_previous_version(self):
        renamed = make_character("b", "Bora")
        assert revert_delta([C, A, renamed], [A, B], Update(renamed)) == [C, A, B]

    def test_remove_puts_item_back_at_its_old_index(self):
        assert revert_delta([A, C], [A, B, C], Remove("b")) == [A, B, C]

    def test_remove_index_is_clamped(self):
        assert revert_delta([], [A, B], Remove("b")) == [B]

    def test_remove_of_item_that_came_back_is_noop(self):
        refetched_b = make_character("b", "Bo 2")
        assert revert_delta([A, refetched_b], [A, B], Remove("b")) == [A, refetched_b]

    def test_unknown_delta(self):
        with pytest.raises(TypeError):
            revert_delta([A], [A], "remove a")
