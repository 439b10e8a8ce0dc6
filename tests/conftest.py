from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from parking_engine.allocation.allocator import SlotAllocator
from parking_engine.config import FeeRules, FlatRate, NormalRate, SlotSizeRates
from parking_engine.service.facility import FacilityService
from parking_engine.state.ledger import SessionLedger
from parking_engine.topology.layout import create_lot
from parking_engine.topology.models import Position

CHECK_IN = datetime(2024, 1, 1, 8, 0, 0)


@pytest.fixture
def fee_rules() -> FeeRules:
    """max_hours=3, hourly=20, daily=300 with small/medium/large at 15/20/30."""
    return FeeRules(
        currency="USD",
        flat_rate=FlatRate(hourly=Decimal("20"), daily=Decimal("300"), max_hours=3),
        normal_rate=NormalRate(
            slot_size=SlotSizeRates(
                small=Decimal("15"),
                medium=Decimal("20"),
                large=Decimal("30"),
            )
        ),
    )


@pytest.fixture
def lot():
    """5x5 lot (3x3 interior of slots) with a single gate on the left edge at (0, 2)."""
    lot = create_lot(5, 5)
    lot.add_gate(Position(x=0, y=2))
    return lot


@pytest.fixture
def allocator(lot) -> SlotAllocator:
    return SlotAllocator(lot)


@pytest.fixture
def ledger(allocator, fee_rules) -> SessionLedger:
    return SessionLedger(allocator, fee_rules)


@pytest.fixture
def facility(fee_rules) -> FacilityService:
    return FacilityService(fee_rules=fee_rules, clock=lambda: CHECK_IN)
