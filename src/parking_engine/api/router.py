"""FastAPI route definitions."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Response, status

from ..billing.fee_calculator import billable_duration
from ..config import FeeRules
from ..metrics import get_metrics
from ..service.facility import FacilityService, LotSnapshot
from ..state.models import ParkingSession
from ..topology.models import Gate, Slot
from .schemas import (
    AddGateRequest,
    CreateLotRequest,
    DurationResponse,
    FeeRulesResponse,
    FlatRateResponse,
    GateResponse,
    HealthResponse,
    LotResponse,
    NormalRateResponse,
    ParkRequest,
    ParkingRecordResponse,
    PositionResponse,
    SlotResponse,
    SlotSizeRatesResponse,
    UnparkRequest,
    VehicleResponse,
    format_timestamp,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Dependencies injected at startup
_facility: Optional[FacilityService] = None
_start_time: datetime = datetime.now()


def init_router(facility: FacilityService) -> None:
    """
    Initialize router with dependencies.

    Args:
        facility: FacilityService instance owning the parking lot
    """
    global _facility, _start_time

    _facility = facility
    _start_time = datetime.now()

    logger.info("API router initialized")


def _require_facility() -> FacilityService:
    if _facility is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return _facility


def _gate_response(gate: Gate) -> GateResponse:
    return GateResponse(
        id=gate.id,
        position=PositionResponse(x=gate.position.x, y=gate.position.y),
    )


def _slot_response(slot: Slot) -> SlotResponse:
    return SlotResponse(
        id=slot.id,
        position=PositionResponse(x=slot.position.x, y=slot.position.y),
        size=slot.size,
        vehicle=(
            VehicleResponse(id=slot.vehicle.id, size=slot.vehicle.size)
            if slot.vehicle
            else None
        ),
    )


def _lot_response(lot: LotSnapshot) -> LotResponse:
    return LotResponse(
        total_width=lot.total_width,
        total_height=lot.total_height,
        gates=[_gate_response(g) for g in lot.gates],
        slots=[_slot_response(s) for s in lot.slots],
    )


def _record_response(session: ParkingSession, now: datetime) -> ParkingRecordResponse:
    # Open sessions report the time parked so far
    until = session.check_out_at or max(now, session.check_in_at)
    duration = billable_duration(session.check_in_at, until)

    return ParkingRecordResponse(
        id=session.id,
        check_in_at=format_timestamp(session.check_in_at),
        check_out_at=format_timestamp(session.check_out_at),
        fee=float(session.fee) if session.fee is not None else 0.0,
        duration=DurationResponse(days=duration.days, hours=duration.hours),
        slot=_slot_response(session.slot),
        vehicle=VehicleResponse(id=session.vehicle.id, size=session.vehicle.size),
        gate=_gate_response(session.gate),
        prev_record_id=session.prior_session_id,
    )


def _fee_rules_response(rules: FeeRules) -> FeeRulesResponse:
    rates = rules.normal_rate.slot_size
    return FeeRulesResponse(
        currency=rules.currency,
        flat_rate=FlatRateResponse(
            hourly=float(rules.flat_rate.hourly),
            daily=float(rules.flat_rate.daily),
            max_hours=rules.flat_rate.max_hours,
        ),
        normal_rate=NormalRateResponse(
            slot_size=SlotSizeRatesResponse(
                small=float(rates.small),
                medium=float(rates.medium),
                large=float(rates.large),
            )
        ),
    )


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Returns basic health information about the service.
    """
    uptime = (datetime.now() - _start_time).total_seconds()

    total, occupied = (0, 0)
    lot_exists = False
    if _facility:
        total, occupied = _facility.occupancy()
        lot_exists = _facility.has_lot()

    return HealthResponse(
        status="healthy",
        lot_exists=lot_exists,
        total_slots=total,
        occupied_slots=occupied,
        uptime_seconds=uptime,
    )


@router.post("/parking_lot", response_model=LotResponse, status_code=status.HTTP_201_CREATED)
def create_parking_lot(request: CreateLotRequest) -> LotResponse:
    """
    Create the parking lot.

    Interior cells become slots; with ``auto_populate`` gates are placed
    along the border every ``gate_size`` cells.
    """
    lot = _require_facility().create_lot(
        request.width,
        request.height,
        auto_populate=bool(request.auto_populate),
        gate_size=request.gate_size,
    )
    return _lot_response(lot)


@router.get("/parking_lot", response_model=LotResponse)
def get_parking_lot() -> LotResponse:
    """Get the parking lot with gates, slots and their occupants."""
    return _lot_response(_require_facility().get_lot())


@router.patch("/parking_lot/reset", response_model=LotResponse)
def reset_parking_lot() -> LotResponse:
    """Free every slot and clear parking records, keeping the layout."""
    return _lot_response(_require_facility().reset_lot())


@router.delete("/parking_lot", status_code=status.HTTP_204_NO_CONTENT)
def delete_parking_lot() -> Response:
    """Delete the parking lot and its records."""
    _require_facility().delete_lot()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/parking_lot/gates",
    response_model=GateResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_gate(request: AddGateRequest) -> GateResponse:
    """Add a gate on the border of the parking lot."""
    return _gate_response(_require_facility().add_gate(request.x, request.y))


@router.get("/parking_lot/gates/{gate_id}", response_model=GateResponse)
def get_gate(gate_id: str) -> GateResponse:
    """
    Get a single gate.

    Args:
        gate_id: The ID of the gate to query
    """
    return _gate_response(_require_facility().get_gate(gate_id))


@router.get("/parking_lot/parking_records", response_model=list[ParkingRecordResponse])
def list_parking_records() -> list[ParkingRecordResponse]:
    """List every parking record, most recent check-in first."""
    facility = _require_facility()
    now = facility.now()
    return [_record_response(s, now) for s in facility.list_sessions()]


@router.get("/parking_lot/fee_rules", response_model=FeeRulesResponse)
def get_fee_rules() -> FeeRulesResponse:
    """Get the fee rules applied at checkout."""
    return _fee_rules_response(_require_facility().get_fee_rules())


@router.post(
    "/vehicles/park",
    response_model=ParkingRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
def park_vehicle(request: ParkRequest) -> ParkingRecordResponse:
    """
    Park a vehicle through a gate.

    The vehicle gets the nearest free slot of its size or larger.
    """
    facility = _require_facility()
    session = facility.park_vehicle(
        request.plate_number,
        request.size,
        request.gate_id,
        time_at=request.time_at,
    )
    return _record_response(session, facility.now())


@router.post("/vehicles/unpark", response_model=ParkingRecordResponse)
def unpark_vehicle(request: UnparkRequest) -> ParkingRecordResponse:
    """Check a vehicle out and return its billed record."""
    facility = _require_facility()
    session = facility.unpark_vehicle(request.plate_number, time_at=request.time_at)
    return _record_response(session, facility.now())


@router.get("/vehicles/{plate_number}/parking_records", response_model=list[ParkingRecordResponse])
def list_vehicle_parking_records(plate_number: str) -> list[ParkingRecordResponse]:
    """List parking records for one plate, most recent first."""
    facility = _require_facility()
    now = facility.now()
    return [_record_response(s, now) for s in facility.vehicle_sessions(plate_number)]


@router.get("/metrics")
async def prometheus_metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format including:
    - parking_sessions_opened_total: Vehicles parked by slot and vehicle size
    - parking_sessions_closed_total: Vehicles checked out by slot size
    - parking_fees_billed_total: Sum of fees billed by currency and slot size
    - parking_stay_hours: Histogram of billable hours per closed session
    - parking_allocation_failures_total: Park requests with no fitting slot
    - parking_operation_errors_total: Rejected operations by error code
    - parking_slots_total / _available / _occupied: Slot gauges
    """
    return Response(
        content=get_metrics(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
