"""Data models for parking sessions."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from ..topology.models import Gate, Slot, Vehicle


class SessionStatus(str, Enum):
    """Lifecycle state of a parking session."""

    OPEN = "open"
    CLOSED = "closed"


class ParkingSession(BaseModel):
    """One vehicle's stay, from check-in to check-out."""

    id: str
    vehicle: Vehicle
    gate: Gate
    slot: Slot
    check_in_at: datetime
    check_out_at: Optional[datetime] = None
    fee: Optional[Decimal] = None
    prior_session_id: Optional[str] = None

    @property
    def status(self) -> SessionStatus:
        return SessionStatus.OPEN if self.check_out_at is None else SessionStatus.CLOSED

    @property
    def is_open(self) -> bool:
        return self.status == SessionStatus.OPEN
