"""Error kinds raised by the parking engine.

Every failure is a local validation error. Each kind carries a stable
``code`` and the HTTP status the transport layer answers with.
"""

from typing import Optional


class ParkingError(Exception):
    """Base class for all engine failures."""

    code = "parking_error"
    status_code = 400
    default_message = "Parking operation failed"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        self.message = message or self.default_message
        self.field = field
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Render the error the way the operator client expects it."""
        payload = {"code": self.code, "message": self.message}
        if self.field:
            payload["errors"] = {self.field: [self.message]}
        return payload


class InvalidDimensions(ParkingError):
    code = "invalid_dimensions"
    status_code = 422
    default_message = "Parking lot dimensions are invalid"


class LotAlreadyExists(ParkingError):
    code = "lot_already_exists"
    status_code = 409
    default_message = "A parking lot already exists; delete or reset it first"


class NotFound(ParkingError):
    code = "not_found"
    status_code = 404
    default_message = "No parking lot exists"


class OutOfBounds(ParkingError):
    code = "out_of_bounds"
    status_code = 422
    default_message = "Position is outside the parking lot"


class NotOnBorder(ParkingError):
    code = "not_on_border"
    status_code = 422
    default_message = "Gates must be placed on the border of the parking lot"


class PositionOccupied(ParkingError):
    code = "position_occupied"
    status_code = 409
    default_message = "Position is already taken by a gate or slot"


class GateNotFound(ParkingError):
    code = "gate_not_found"
    status_code = 404
    default_message = "Gate not found"


class NoAvailableSlot(ParkingError):
    code = "no_available_slot"
    status_code = 409
    default_message = "No available slot fits this vehicle"


class VehicleAlreadyParked(ParkingError):
    code = "vehicle_already_parked"
    status_code = 409
    default_message = "Vehicle is already parked"


class VehicleNotParked(ParkingError):
    code = "vehicle_not_parked"
    status_code = 404
    default_message = "Vehicle is not parked"


class InvalidTimeRange(ParkingError):
    code = "invalid_time_range"
    status_code = 422
    default_message = "Check-out time precedes check-in time"
