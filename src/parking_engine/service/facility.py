"""Facility service: the single entry point to the parking engine."""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, Optional

from pydantic import BaseModel

from ..allocation.allocator import SlotAllocator
from ..config import FeeRules
from ..errors import GateNotFound, LotAlreadyExists, NoAvailableSlot, NotFound, ParkingError
from ..metrics import record_allocation_failure, record_operation_error, update_slot_counts
from ..state.ledger import SessionLedger
from ..state.models import ParkingSession
from ..topology.layout import Lot, create_lot
from ..topology.models import Gate, Position, Slot, SlotSize, Vehicle

logger = logging.getLogger(__name__)


class LotSnapshot(BaseModel):
    """Point-in-time copy of the lot as clients render it."""

    total_width: int
    total_height: int
    gates: list[Gate]
    slots: list[Slot]

    @property
    def occupied(self) -> int:
        return sum(1 for s in self.slots if not s.is_free)


def to_wall_clock(moment: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if moment.tzinfo is not None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


def _to_second(moment: datetime) -> datetime:
    return to_wall_clock(moment).replace(microsecond=0)


class FacilityService:
    """
    Orchestrates topology, allocation, sessions and billing for one lot.

    Every mutating operation runs under a single lock. After each mutation
    a fresh snapshot of the lot and of the session history is published;
    read-only queries copy the last published snapshot without locking.
    """

    def __init__(
        self,
        fee_rules: Optional[FeeRules] = None,
        max_width: int = 100,
        max_height: int = 100,
        default_gate_size: int = 3,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.fee_rules = fee_rules or FeeRules()
        self.max_width = max_width
        self.max_height = max_height
        self.default_gate_size = default_gate_size
        self._clock = clock

        self._lock = threading.Lock()
        self._lot: Optional[Lot] = None
        self._allocator: Optional[SlotAllocator] = None
        self._ledger: Optional[SessionLedger] = None

        self._lot_snapshot: Optional[LotSnapshot] = None
        self._sessions_snapshot: tuple[ParkingSession, ...] = ()

    @contextmanager
    def _mutation(self, operation: str) -> Iterator[None]:
        """Serialize a mutating operation and publish its result."""
        with self._lock:
            try:
                yield
            except ParkingError as e:
                logger.warning(f"{operation} rejected ({e.code}): {e.message}")
                record_operation_error(e.code)
                raise
            self._publish()

    def _publish(self) -> None:
        if self._lot is None:
            self._lot_snapshot = None
            self._sessions_snapshot = ()
            update_slot_counts(total=0, occupied=0)
            return

        self._lot_snapshot = self._snapshot_lot()
        self._sessions_snapshot = tuple(
            s.model_copy(deep=True) for s in self._ledger.list_sessions()
        )
        update_slot_counts(
            total=len(self._lot_snapshot.slots),
            occupied=self._lot_snapshot.occupied,
        )

    def _snapshot_lot(self) -> LotSnapshot:
        lot = self._lot
        return LotSnapshot(
            total_width=lot.width,
            total_height=lot.height,
            gates=[g.model_copy(deep=True) for g in lot.gates.values()],
            slots=[
                s.model_copy(deep=True)
                for s in sorted(lot.slots.values(), key=lambda s: s.position.row_major_key())
            ],
        )

    def _require_lot(self) -> Lot:
        if self._lot is None:
            raise NotFound()
        return self._lot

    def _timestamp(self, time_at: Optional[datetime]) -> datetime:
        return _to_second(time_at if time_at is not None else self._clock())

    def now(self) -> datetime:
        """Current time on the service clock, truncated to the second."""
        return self._timestamp(None)

    # Lot lifecycle

    def create_lot(
        self,
        width: int,
        height: int,
        auto_populate: bool = False,
        gate_size: Optional[int] = None,
    ) -> LotSnapshot:
        """
        Create the parking lot.

        Interior cells are always laid out as slots; ``auto_populate`` only
        controls whether gates are placed along the border.

        Raises:
            LotAlreadyExists: If a lot is already live
            InvalidDimensions: If the dimensions or gate size are out of range
        """
        with self._mutation("create lot"):
            if self._lot is not None:
                raise LotAlreadyExists()

            lot = create_lot(
                width,
                height,
                auto_populate=auto_populate,
                gate_size=gate_size if gate_size is not None else self.default_gate_size,
                max_width=self.max_width,
                max_height=self.max_height,
            )
            self._lot = lot
            self._allocator = SlotAllocator(lot)
            self._ledger = SessionLedger(self._allocator, self.fee_rules)
            result = self._snapshot_lot()

        logger.info(
            f"Created {width}x{height} parking lot with "
            f"{len(lot.gates)} gate(s) and {len(lot.slots)} slot(s)"
        )
        return result

    def get_lot(self) -> LotSnapshot:
        snapshot = self._lot_snapshot
        if snapshot is None:
            raise NotFound()
        return snapshot.model_copy(deep=True)

    def reset_lot(self) -> LotSnapshot:
        """Free every slot and clear session history, keeping the layout."""
        with self._mutation("reset lot"):
            lot = self._require_lot()
            lot.clear_occupancy()
            self._ledger.clear()
            result = self._snapshot_lot()

        logger.info("Parking lot reset")
        return result

    def delete_lot(self) -> None:
        with self._mutation("delete lot"):
            self._require_lot()
            self._ledger.clear()
            self._lot = None
            self._allocator = None
            self._ledger = None

        logger.info("Parking lot deleted")

    # Gates

    def add_gate(self, x: int, y: int) -> Gate:
        """
        Place a gate on the border.

        Raises:
            NotFound: If no lot exists
            OutOfBounds, NotOnBorder, PositionOccupied: If the position is invalid
        """
        with self._mutation("add gate"):
            gate = self._require_lot().add_gate(Position(x=x, y=y))

        logger.info(f"Added gate {gate.id} at ({x}, {y})")
        return gate

    def get_gate(self, gate_id: str) -> Gate:
        for gate in self.get_lot().gates:
            if gate.id == gate_id:
                return gate
        raise GateNotFound(f"Gate '{gate_id}' not found", field="gate_id")

    # Vehicles

    def park_vehicle(
        self,
        plate: str,
        size: SlotSize,
        gate_id: str,
        time_at: Optional[datetime] = None,
    ) -> ParkingSession:
        """
        Park a vehicle in the nearest free slot that fits it.

        Raises:
            NotFound: If no lot exists
            GateNotFound: If the gate does not exist
            VehicleAlreadyParked: If the plate already has an open session
            NoAvailableSlot: If no compatible slot is free
        """
        check_in_at = self._timestamp(time_at)

        with self._mutation("park"):
            lot = self._require_lot()
            gate = lot.get_gate(gate_id)
            self._ledger.ensure_not_parked(plate)

            vehicle = Vehicle(id=plate, size=size)
            try:
                slot = self._allocator.reserve(gate, vehicle)
            except NoAvailableSlot:
                record_allocation_failure(vehicle_size=size.value)
                raise

            session = self._ledger.open_session(vehicle, gate, slot, check_in_at)
            result = session.model_copy(deep=True)

        logger.info(
            f"Parked {plate} ({size.value}) via gate {gate.id} in slot {slot.id} "
            f"at {check_in_at}"
        )
        return result

    def unpark_vehicle(self, plate: str, time_at: Optional[datetime] = None) -> ParkingSession:
        """
        Check a vehicle out and bill its stay.

        Raises:
            NotFound: If no lot exists
            VehicleNotParked: If the plate has no open session
            InvalidTimeRange: If check-out precedes check-in
        """
        check_out_at = self._timestamp(time_at)

        with self._mutation("unpark"):
            self._require_lot()
            session = self._ledger.close_session(plate, check_out_at)
            result = session.model_copy(deep=True)

        logger.info(
            f"Unparked {plate} from slot {result.slot.id} at {check_out_at}, "
            f"fee {result.fee} {self.fee_rules.currency}"
        )
        return result

    # Queries

    def list_sessions(self) -> list[ParkingSession]:
        return [s.model_copy(deep=True) for s in self._sessions_snapshot]

    def vehicle_sessions(self, plate: str) -> list[ParkingSession]:
        return [
            s.model_copy(deep=True)
            for s in self._sessions_snapshot
            if s.vehicle.id == plate
        ]

    def get_fee_rules(self) -> FeeRules:
        return self.fee_rules

    def has_lot(self) -> bool:
        return self._lot_snapshot is not None

    def occupancy(self) -> tuple[int, int]:
        """Return (total slots, occupied slots); zeros when no lot exists."""
        snapshot = self._lot_snapshot
        if snapshot is None:
            return 0, 0
        return len(snapshot.slots), snapshot.occupied
