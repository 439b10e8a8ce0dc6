"""Tests for nearest-slot allocation."""

from __future__ import annotations

import pytest

from parking_engine.allocation.allocator import NearestSlotSearch, SlotAllocator, manhattan_distance
from parking_engine.errors import NoAvailableSlot, NotFound
from parking_engine.topology.layout import create_lot
from parking_engine.topology.models import Position, SlotSize, Vehicle

# 5x5 lot interior, row-major:
#   S1 (1,1) small   S2 (2,1) medium  S3 (3,1) large
#   S4 (1,2) small   S5 (2,2) medium  S6 (3,2) large
#   S7 (1,3) small   S8 (2,3) medium  S9 (3,3) large
# Gate G1 sits at (0, 2).


def _park(allocator, lot, plate, size):
    return allocator.reserve(lot.gates["G1"], Vehicle(id=plate, size=size))


class TestSizeCompatibility:

    @pytest.mark.parametrize(
        "slot_size, vehicle_size, fits",
        [
            (SlotSize.SMALL, SlotSize.SMALL, True),
            (SlotSize.MEDIUM, SlotSize.SMALL, True),
            (SlotSize.LARGE, SlotSize.SMALL, True),
            (SlotSize.SMALL, SlotSize.MEDIUM, False),
            (SlotSize.MEDIUM, SlotSize.MEDIUM, True),
            (SlotSize.LARGE, SlotSize.MEDIUM, True),
            (SlotSize.SMALL, SlotSize.LARGE, False),
            (SlotSize.MEDIUM, SlotSize.LARGE, False),
            (SlotSize.LARGE, SlotSize.LARGE, True),
        ],
    )
    def test_fits(self, slot_size, vehicle_size, fits):
        assert slot_size.fits(vehicle_size) is fits

    @pytest.mark.parametrize("size", list(SlotSize))
    def test_assigned_slot_is_never_smaller(self, lot, allocator, size):
        assigned = []
        for i in range(9):
            try:
                assigned.append(_park(allocator, lot, f"CAR-{i}", size))
            except NoAvailableSlot:
                break
        assert assigned
        assert all(slot.size.fits(size) for slot in assigned)


class TestNearestSlot:

    def test_manhattan_distance(self):
        assert manhattan_distance(Position(x=0, y=2), Position(x=3, y=3)) == 4

    def test_small_takes_adjacent_slot(self, lot, allocator):
        assert _park(allocator, lot, "A", SlotSize.SMALL).id == "S4"

    def test_tie_broken_row_major(self, lot, allocator):
        _park(allocator, lot, "A", SlotSize.SMALL)
        # (1,1), (1,3) and (2,2) are all two steps away; (1,1) comes first
        assert _park(allocator, lot, "B", SlotSize.SMALL).id == "S1"
        assert _park(allocator, lot, "C", SlotSize.SMALL).id == "S5"
        assert _park(allocator, lot, "D", SlotSize.SMALL).id == "S7"

    def test_medium_skips_small_slots(self, lot, allocator):
        assert _park(allocator, lot, "A", SlotSize.MEDIUM).id == "S5"

    def test_large_only_large_slots(self, lot, allocator):
        assert _park(allocator, lot, "A", SlotSize.LARGE).id == "S6"
        assert _park(allocator, lot, "B", SlotSize.LARGE).id == "S3"
        assert _park(allocator, lot, "C", SlotSize.LARGE).id == "S9"
        with pytest.raises(NoAvailableSlot):
            _park(allocator, lot, "D", SlotSize.LARGE)

    def test_gate_position_drives_choice(self):
        lot = create_lot(5, 5)
        lot.add_gate(Position(x=4, y=4))
        allocator = SlotAllocator(lot)
        slot = allocator.find_slot_for_entry(lot.gates["G1"], SlotSize.SMALL)
        # (3,3) is large but closest; small vehicles may use it
        assert slot.id == "S9"

    def test_find_does_not_reserve(self, lot, allocator):
        slot = allocator.find_slot_for_entry(lot.gates["G1"], SlotSize.SMALL)
        assert slot.is_free
        assert allocator.find_slot_for_entry(lot.gates["G1"], SlotSize.SMALL).id == slot.id


class TestReserveAndRelease:

    def test_reserve_marks_occupied(self, lot, allocator):
        slot = _park(allocator, lot, "A", SlotSize.SMALL)
        assert lot.slots[slot.id].vehicle.id == "A"

    def test_no_slot_reserved_twice(self, lot, allocator):
        slots = [_park(allocator, lot, f"CAR-{i}", SlotSize.SMALL) for i in range(9)]
        assert len({s.id for s in slots}) == 9
        with pytest.raises(NoAvailableSlot):
            _park(allocator, lot, "CAR-9", SlotSize.SMALL)

    def test_release_makes_slot_available_again(self, lot, allocator):
        slot = _park(allocator, lot, "A", SlotSize.SMALL)
        allocator.release(slot.id)
        assert lot.slots[slot.id].is_free
        assert _park(allocator, lot, "B", SlotSize.SMALL).id == slot.id

    def test_release_unknown_slot(self, allocator):
        with pytest.raises(NotFound) as exc_info:
            allocator.release("S99")
        assert exc_info.value.code == "not_found"
        assert exc_info.value.field == "slot_id"

    def test_custom_search_strategy(self, lot):
        class FirstFree(NearestSlotSearch):
            def nearest(self, origin, vehicle_size, slots):
                return next((s for s in slots if s.is_free and s.size.fits(vehicle_size)), None)

        allocator = SlotAllocator(lot, search=FirstFree())
        assert _park(allocator, lot, "A", SlotSize.SMALL).id == "S1"
