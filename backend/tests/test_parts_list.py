"""Tests for Parts/Labour list editing."""

import pytest

from services import parts_list
from services.errors import InvalidPartQuantityError


class TestLabourDetection:

    @pytest.mark.parametrize("description", [
        "Labour", "labor", "LABOUR - after hours", "Travel & Labor",
    ])
    def test_labour_descriptions(self, description):
        assert parts_list.is_labour(description)
        assert parts_list.step_for(description) == 0.5

    @pytest.mark.parametrize("description", ["Fuse 10A", "Lab coat", "", None])
    def test_other_descriptions(self, description):
        assert not parts_list.is_labour(description)
        assert parts_list.step_for(description) == 1


class TestRounding:

    def test_labour_rounds_to_half_hours(self):
        assert parts_list.round_to_step(1.3, "Labour") == 1.5
        assert parts_list.round_to_step(1.2, "Labour") == 1.0
        assert parts_list.round_to_step(0.25, "Labour") == 0.5

    def test_parts_round_to_whole_units(self):
        assert parts_list.round_to_step(2.5, "Fuse") == 3
        assert parts_list.round_to_step(2.4, "Fuse") == 2
        assert isinstance(parts_list.round_to_step(2.0, "Fuse"), int)

    def test_negative_rejected(self):
        with pytest.raises(InvalidPartQuantityError):
            parts_list.round_to_step(-1, "Fuse")

    def test_non_numeric_rejected(self):
        with pytest.raises(InvalidPartQuantityError):
            parts_list.round_to_step("lots", "Fuse")


class TestEditing:

    def test_add_part_defaults_to_one(self):
        parts = parts_list.add_part([], "Contactor")
        assert parts == [{"description": "Contactor", "qty": 1}]

    def test_add_keeps_order(self):
        parts = parts_list.add_part([{"description": "A", "qty": 2}], "B")
        assert [p["description"] for p in parts] == ["A", "B"]

    def test_remove_by_index(self):
        parts = [{"description": "A", "qty": 1}, {"description": "B", "qty": 1}]
        assert parts_list.remove_part(parts, 0) == [{"description": "B", "qty": 1}]

    def test_remove_bad_index(self):
        with pytest.raises(IndexError):
            parts_list.remove_part([], 0)

    def test_increment_steps(self):
        parts = [{"description": "Labour", "qty": 1}, {"description": "Fuse", "qty": 1}]
        parts = parts_list.increment(parts, 0)
        parts = parts_list.increment(parts, 1)
        assert parts[0]["qty"] == 1.5
        assert parts[1]["qty"] == 2

    def test_decrement_labour_by_half(self):
        parts = parts_list.decrement([{"description": "labor", "qty": 1}], 0)
        assert parts[0]["qty"] == 0.5

    def test_decrement_floor_is_zero(self):
        parts = [{"description": "Fuse", "qty": 0}, {"description": "Labour", "qty": 0}]
        parts = parts_list.decrement(parts, 0)
        parts = parts_list.decrement(parts, 1)
        assert parts[0]["qty"] == 0
        assert parts[1]["qty"] == 0

    def test_repeated_decrement_never_negative(self):
        parts = [{"description": "Labour", "qty": 1}]
        for _ in range(5):
            parts = parts_list.decrement(parts, 0)
            assert parts[0]["qty"] >= 0
        assert parts[0]["qty"] == 0

    def test_set_quantity_rounds(self):
        parts = parts_list.set_quantity([{"description": "Labour", "qty": 1}], 0, 2.7)
        assert parts[0]["qty"] == 2.5

    def test_set_quantity_negative_rejected(self):
        with pytest.raises(InvalidPartQuantityError):
            parts_list.set_quantity([{"description": "Fuse", "qty": 1}], 0, -1)

    def test_input_not_mutated(self):
        original = [{"description": "Fuse", "qty": 1}]
        parts_list.increment(original, 0)
        parts_list.add_part(original, "Relay")
        assert original == [{"description": "Fuse", "qty": 1}]


class TestSerialization:

    def test_dump_normalizes(self):
        text = parts_list.dump_parts([{"description": "Labour", "qty": 0.7}])
        assert parts_list.load_parts(text) == [{"description": "Labour", "qty": 0.5}]

    @pytest.mark.parametrize("text", [None, "", "not json", '{"a": 1}'])
    def test_load_unreadable_is_empty(self, text):
        assert parts_list.load_parts(text) == []
