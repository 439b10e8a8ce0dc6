"""Parking session ledger."""

import logging
from datetime import datetime
from typing import Optional
from uuid import uuid4

from ..allocation.allocator import SlotAllocator
from ..billing.fee_calculator import billable_hours, fee_for_hours
from ..config import FeeRules
from ..errors import VehicleAlreadyParked, VehicleNotParked
from ..metrics import record_session_closed, record_session_opened
from ..topology.models import Gate, Slot, Vehicle
from .models import ParkingSession

logger = logging.getLogger(__name__)


class SessionLedger:
    """
    Append-only history of parking sessions for one lot.

    At most one session per plate is open at a time. Closing a session
    computes its fee and hands the slot back to the allocator.
    """

    def __init__(self, allocator: SlotAllocator, fee_rules: FeeRules):
        self.allocator = allocator
        self.fee_rules = fee_rules

        self._sessions: list[ParkingSession] = []  # In opening order
        self._open: dict[str, ParkingSession] = {}  # plate -> open session
        self._last_closed: dict[str, str] = {}  # plate -> session id

    def get_open_session(self, plate: str) -> Optional[ParkingSession]:
        return self._open.get(plate)

    def ensure_not_parked(self, plate: str) -> None:
        """
        Raises:
            VehicleAlreadyParked: If the plate has an open session
        """
        if plate in self._open:
            slot = self._open[plate].slot
            raise VehicleAlreadyParked(
                f"Vehicle '{plate}' is already parked in slot {slot.id}",
                field="plate_number",
            )

    def open_session(
        self,
        vehicle: Vehicle,
        gate: Gate,
        slot: Slot,
        check_in_at: datetime,
    ) -> ParkingSession:
        """
        Start a new session for a vehicle that was just given ``slot``.

        Raises:
            VehicleAlreadyParked: If the vehicle already has an open session
        """
        self.ensure_not_parked(vehicle.id)

        session = ParkingSession(
            id=str(uuid4()),
            vehicle=vehicle,
            gate=gate,
            slot=slot.model_copy(deep=True),
            check_in_at=check_in_at,
            prior_session_id=self._last_closed.get(vehicle.id),
        )
        self._sessions.append(session)
        self._open[vehicle.id] = session

        record_session_opened(slot_size=slot.size.value, vehicle_size=vehicle.size.value)
        return session

    def close_session(self, plate: str, check_out_at: datetime) -> ParkingSession:
        """
        Check a vehicle out, bill it and free its slot.

        Raises:
            VehicleNotParked: If the plate has no open session
            InvalidTimeRange: If check-out precedes check-in
        """
        session = self._open.get(plate)
        if session is None:
            raise VehicleNotParked(f"Vehicle '{plate}' is not parked", field="plate_number")

        # Validates the time range before anything is mutated
        hours = billable_hours(session.check_in_at, check_out_at)
        fee = fee_for_hours(hours, session.slot.size, self.fee_rules)

        self.allocator.release(session.slot.id)
        session.check_out_at = check_out_at
        session.fee = fee
        del self._open[plate]
        self._last_closed[plate] = session.id

        record_session_closed(
            slot_size=session.slot.size.value,
            currency=self.fee_rules.currency,
            fee=float(fee),
            hours=hours,
        )
        return session

    def list_sessions(self) -> list[ParkingSession]:
        """All sessions, most recent check-in first."""
        return sorted(
            reversed(self._sessions),
            key=lambda s: s.check_in_at,
            reverse=True,
        )

    def sessions_for_vehicle(self, plate: str) -> list[ParkingSession]:
        return [s for s in self.list_sessions() if s.vehicle.id == plate]

    def open_count(self) -> int:
        return len(self._open)

    def clear(self) -> None:
        """Drop every session."""
        self._sessions.clear()
        self._open.clear()
        self._last_closed.clear()
