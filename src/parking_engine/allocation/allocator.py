"""Nearest-slot allocation for vehicles entering through a gate."""

import logging
from typing import Iterable, Optional

from ..errors import NoAvailableSlot, NotFound
from ..topology.layout import Lot
from ..topology.models import Gate, Position, Slot, SlotSize, Vehicle

logger = logging.getLogger(__name__)


def manhattan_distance(a: Position, b: Position) -> int:
    """Grid distance between two cells."""
    return abs(a.x - b.x) + abs(a.y - b.y)


class NearestSlotSearch:
    """
    Linear scan for the closest compatible free slot.

    Candidates are ranked by Manhattan distance to the gate, ties broken by
    row-major position. Replace with an indexed search for large lots; the
    allocator only depends on ``nearest``.
    """

    def nearest(
        self,
        origin: Position,
        vehicle_size: SlotSize,
        slots: Iterable[Slot],
    ) -> Optional[Slot]:
        best: Optional[Slot] = None
        best_key: Optional[tuple[int, int, int]] = None

        for slot in slots:
            if not slot.is_free or not slot.size.fits(vehicle_size):
                continue

            key = (manhattan_distance(origin, slot.position), *slot.position.row_major_key())
            if best_key is None or key < best_key:
                best, best_key = slot, key

        return best


class SlotAllocator:
    """Finds, reserves and releases slots of one lot."""

    def __init__(self, lot: Lot, search: Optional[NearestSlotSearch] = None):
        self.lot = lot
        self.search = search or NearestSlotSearch()

    def find_slot_for_entry(self, gate: Gate, vehicle_size: SlotSize) -> Slot:
        """
        Find the best free slot for a vehicle entering through ``gate``.

        Raises:
            NoAvailableSlot: If no free slot of a compatible size exists
        """
        slot = self.search.nearest(gate.position, vehicle_size, self.lot.slots.values())
        if slot is None:
            raise NoAvailableSlot(
                f"No available slot for a {vehicle_size.value} vehicle",
                field="size",
            )

        logger.debug(
            f"Gate {gate.id} at ({gate.position.x}, {gate.position.y}): "
            f"selected slot {slot.id} ({slot.size.value})"
        )
        return slot

    def reserve(self, gate: Gate, vehicle: Vehicle) -> Slot:
        """Find the best slot for ``vehicle`` and mark it occupied."""
        slot = self.find_slot_for_entry(gate, vehicle.size)
        slot.vehicle = vehicle
        return slot

    def release(self, slot_id: str) -> None:
        slot = self.lot.slots.get(slot_id)
        if slot is None:
            raise NotFound(f"Slot '{slot_id}' does not belong to this lot", field="slot_id")
        slot.vehicle = None
