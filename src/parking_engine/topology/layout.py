"""Parking lot topology: grid bounds, gate placement and slot layout."""

import logging
from itertools import cycle
from typing import Optional

from ..errors import GateNotFound, InvalidDimensions, NotOnBorder, OutOfBounds, PositionOccupied
from .models import Gate, Position, Slot, SlotSize

logger = logging.getLogger(__name__)

MIN_DIMENSION = 2
SLOT_SIZE_CYCLE = (SlotSize.SMALL, SlotSize.MEDIUM, SlotSize.LARGE)


class Lot:
    """
    A rectangular parking lot.

    Gates live on the outer border, slots in the interior. The shape of the
    lot never changes after creation; only gates can be added and slot
    occupancy toggled.
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.gates: dict[str, Gate] = {}
        self.slots: dict[str, Slot] = {}
        self._taken: set[Position] = set()

    def contains(self, position: Position) -> bool:
        """Check if a position lies inside the grid."""
        return 0 <= position.x < self.width and 0 <= position.y < self.height

    def is_border(self, position: Position) -> bool:
        """Check if a position lies on the outer edge of the grid."""
        return position.x in (0, self.width - 1) or position.y in (0, self.height - 1)

    def is_taken(self, position: Position) -> bool:
        return position in self._taken

    def add_gate(self, position: Position) -> Gate:
        """
        Place a new gate on the border.

        Raises:
            OutOfBounds: If the position is outside the grid
            NotOnBorder: If the position is not on the outer edge
            PositionOccupied: If a gate or slot already sits there
        """
        if not self.contains(position):
            raise OutOfBounds(
                f"Position ({position.x}, {position.y}) is outside the "
                f"{self.width}x{self.height} lot",
                field="position",
            )
        if not self.is_border(position):
            raise NotOnBorder(
                f"Position ({position.x}, {position.y}) is not on the border",
                field="position",
            )
        if self.is_taken(position):
            raise PositionOccupied(
                f"Position ({position.x}, {position.y}) is already occupied",
                field="position",
            )

        gate = Gate(id=f"G{len(self.gates) + 1}", position=position)
        self.gates[gate.id] = gate
        self._taken.add(position)
        return gate

    def add_slot(self, position: Position, size: SlotSize) -> Slot:
        if not self.contains(position):
            raise OutOfBounds(f"Slot position ({position.x}, {position.y}) is outside the lot")
        if self.is_taken(position):
            raise PositionOccupied(f"Position ({position.x}, {position.y}) is already occupied")

        slot = Slot(id=f"S{len(self.slots) + 1}", position=position, size=size)
        self.slots[slot.id] = slot
        self._taken.add(position)
        return slot

    def get_gate(self, gate_id: str) -> Gate:
        gate = self.gates.get(gate_id)
        if gate is None:
            raise GateNotFound(f"Gate '{gate_id}' not found", field="gate_id")
        return gate

    def clear_occupancy(self) -> None:
        """Mark every slot as free, keeping gates and slots in place."""
        for slot in self.slots.values():
            slot.vehicle = None

    def occupied_count(self) -> int:
        return sum(1 for s in self.slots.values() if not s.is_free)


def border_walk(width: int, height: int) -> list[Position]:
    """
    List border cells clockwise starting at (0, 0).

    Top row left to right, right column downwards, bottom row right to left,
    then left column upwards. Each cell appears exactly once.
    """
    cells = [(x, 0) for x in range(width)]
    cells += [(width - 1, y) for y in range(1, height)]
    cells += [(x, height - 1) for x in range(width - 2, -1, -1)]
    cells += [(0, y) for y in range(height - 2, 0, -1)]
    return [Position(x=x, y=y) for x, y in cells]


def interior_cells(width: int, height: int) -> list[Position]:
    """List interior cells in row-major order."""
    return [
        Position(x=x, y=y)
        for y in range(1, height - 1)
        for x in range(1, width - 1)
    ]


def validate_dimensions(
    width: int,
    height: int,
    max_width: int,
    max_height: int,
) -> None:
    if width < MIN_DIMENSION or width > max_width:
        raise InvalidDimensions(
            f"Width must be between {MIN_DIMENSION} and {max_width}, got {width}",
            field="width",
        )
    if height < MIN_DIMENSION or height > max_height:
        raise InvalidDimensions(
            f"Height must be between {MIN_DIMENSION} and {max_height}, got {height}",
            field="height",
        )


def create_lot(
    width: int,
    height: int,
    auto_populate: bool = False,
    gate_size: Optional[int] = None,
    max_width: int = 100,
    max_height: int = 100,
) -> Lot:
    """
    Build a new parking lot.

    Interior cells are always laid out as slots, cycling small, medium and
    large in row-major order. With ``auto_populate`` every ``gate_size``-th
    border cell (walking clockwise from the origin) also becomes a gate.

    Args:
        width: Number of columns
        height: Number of rows
        auto_populate: Whether to place gates automatically
        gate_size: Border cells per gate when auto-populating
        max_width: Largest accepted width
        max_height: Largest accepted height

    Returns:
        The populated Lot

    Raises:
        InvalidDimensions: If a dimension or the gate size is out of range
    """
    validate_dimensions(width, height, max_width, max_height)

    lot = Lot(width, height)

    if auto_populate:
        if gate_size is None or gate_size < 1:
            raise InvalidDimensions(
                f"Gate size must be a positive integer, got {gate_size}",
                field="gate_size",
            )
        for index, position in enumerate(border_walk(width, height)):
            if index % gate_size == 0 and not lot.is_taken(position):
                lot.add_gate(position)

    sizes = cycle(SLOT_SIZE_CYCLE)
    for position in interior_cells(width, height):
        lot.add_slot(position, next(sizes))

    logger.debug(
        f"Laid out {width}x{height} lot: {len(lot.gates)} gate(s), {len(lot.slots)} slot(s)"
    )
    return lot
