"""Data models for the parking lot grid."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class SlotSize(str, Enum):
    """Size class shared by slots and vehicles."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"

    @property
    def rank(self) -> int:
        return _SIZE_ORDER.index(self)

    def fits(self, vehicle_size: "SlotSize") -> bool:
        """Whether a vehicle of ``vehicle_size`` can park in a slot of this size."""
        return self.rank >= vehicle_size.rank


_SIZE_ORDER = [SlotSize.SMALL, SlotSize.MEDIUM, SlotSize.LARGE]


class Position(BaseModel):
    """A cell on the grid."""

    model_config = ConfigDict(frozen=True)

    x: int
    y: int

    def row_major_key(self) -> tuple[int, int]:
        return (self.y, self.x)


class Vehicle(BaseModel):
    """A vehicle identified by its plate number."""

    id: str
    size: SlotSize


class Gate(BaseModel):
    """Entry point on the border of the lot."""

    model_config = ConfigDict(frozen=True)

    id: str
    position: Position


class Slot(BaseModel):
    """Parking space and the vehicle occupying it, if any."""

    id: str
    position: Position
    size: SlotSize
    vehicle: Optional[Vehicle] = None

    @property
    def is_free(self) -> bool:
        return self.vehicle is None
