"""Parking lot topology module."""

from .layout import Lot, border_walk, create_lot, interior_cells
from .models import Gate, Position, Slot, SlotSize, Vehicle

__all__ = [
    "Lot",
    "Gate",
    "Position",
    "Slot",
    "SlotSize",
    "Vehicle",
    "border_walk",
    "create_lot",
    "interior_cells",
]
