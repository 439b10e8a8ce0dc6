"""API request and response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..service.facility import to_wall_clock
from ..topology.models import SlotSize

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_timestamp(value: str) -> datetime:
    """
    Parse a client timestamp.

    Accepts the ``YYYY-MM-DD HH:mm:ss`` layout the operator client sends and
    falls back to ISO-8601. Aware values are converted to local wall-clock.
    """
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError:
        pass

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise ValueError("time_at must use the YYYY-MM-DD HH:mm:ss format") from None

    return to_wall_clock(parsed)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.strftime(TIMESTAMP_FORMAT) if value is not None else None


class CreateLotRequest(BaseModel):
    """Request body for creating the parking lot."""

    width: int
    height: int
    auto_populate: Optional[bool] = False
    gate_size: Optional[int] = None


class AddGateRequest(BaseModel):
    x: int
    y: int


class _TimedRequest(BaseModel):
    time_at: Optional[datetime] = None

    @field_validator("time_at", mode="before")
    @classmethod
    def parse_time_at(cls, v):
        """Parse ``YYYY-MM-DD HH:mm:ss`` strings; empty means now."""
        if v is None or v == "":
            return None
        if isinstance(v, str):
            return parse_timestamp(v)
        return v

    @field_validator("time_at", mode="after")
    @classmethod
    def local_time_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Unix timestamps and other aware values become local wall-clock
        return to_wall_clock(v) if v is not None else None


class _VehicleRequest(_TimedRequest):
    plate_number: str = Field(min_length=1)

    @field_validator("plate_number", mode="after")
    @classmethod
    def strip_plate(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("plate_number must not be blank")
        return v


class ParkRequest(_VehicleRequest):
    """Request body for parking a vehicle."""

    size: SlotSize
    gate_id: str = Field(min_length=1)


class UnparkRequest(_VehicleRequest):
    """Request body for checking a vehicle out."""


class PositionResponse(BaseModel):
    x: int
    y: int


class VehicleResponse(BaseModel):
    id: str
    size: SlotSize


class GateResponse(BaseModel):
    """Response schema for a gate."""

    id: str
    position: PositionResponse


class SlotResponse(BaseModel):
    """Response schema for a slot and its occupant."""

    id: str
    position: PositionResponse
    size: SlotSize
    vehicle: Optional[VehicleResponse] = None


class LotResponse(BaseModel):
    """Response schema for the whole parking lot."""

    total_width: int
    total_height: int
    gates: list[GateResponse]
    slots: list[SlotResponse]


class DurationResponse(BaseModel):
    days: int
    hours: int


class ParkingRecordResponse(BaseModel):
    """Response schema for a parking session."""

    id: str
    check_in_at: str
    check_out_at: Optional[str] = None
    fee: float
    duration: DurationResponse
    slot: SlotResponse
    vehicle: VehicleResponse
    gate: GateResponse
    prev_record_id: Optional[str] = None


class FlatRateResponse(BaseModel):
    hourly: float
    daily: float
    max_hours: int


class SlotSizeRatesResponse(BaseModel):
    small: float
    medium: float
    large: float


class NormalRateResponse(BaseModel):
    slot_size: SlotSizeRatesResponse


class FeeRulesResponse(BaseModel):
    """Response schema for the fee rules document."""

    currency: str
    flat_rate: FlatRateResponse
    normal_rate: NormalRateResponse


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    lot_exists: bool
    total_slots: int
    occupied_slots: int
    uptime_seconds: float
