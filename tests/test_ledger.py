"""Tests for the parking session ledger."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from parking_engine.errors import InvalidTimeRange, VehicleAlreadyParked, VehicleNotParked
from parking_engine.state.models import SessionStatus
from parking_engine.topology.models import SlotSize, Vehicle

T0 = datetime(2024, 1, 1, 8, 0, 0)


def _open(ledger, allocator, lot, plate, at=T0, size=SlotSize.SMALL):
    vehicle = Vehicle(id=plate, size=size)
    gate = lot.gates["G1"]
    slot = allocator.reserve(gate, vehicle)
    return ledger.open_session(vehicle, gate, slot, at)


class TestOpenSession:

    def test_opens_session(self, ledger, allocator, lot):
        session = _open(ledger, allocator, lot, "ABC-1")
        assert session.status == SessionStatus.OPEN
        assert session.slot.id == "S4"
        assert session.fee is None
        assert session.prior_session_id is None
        assert ledger.get_open_session("ABC-1") is session

    def test_same_plate_twice(self, ledger, allocator, lot):
        session = _open(ledger, allocator, lot, "ABC-1")
        with pytest.raises(VehicleAlreadyParked):
            ledger.open_session(
                Vehicle(id="ABC-1", size=SlotSize.SMALL),
                lot.gates["G1"],
                lot.slots["S1"],
                T0,
            )
        assert ledger.list_sessions() == [session]


class TestCloseSession:

    def test_bills_and_releases(self, ledger, allocator, lot):
        session = _open(ledger, allocator, lot, "ABC-1")
        closed = ledger.close_session("ABC-1", T0 + timedelta(hours=5))

        assert closed.id == session.id
        assert closed.status == SessionStatus.CLOSED
        assert closed.fee == Decimal("90")
        assert lot.slots["S4"].is_free
        assert ledger.get_open_session("ABC-1") is None

    def test_unknown_plate(self, ledger):
        with pytest.raises(VehicleNotParked):
            ledger.close_session("NOPE", T0)

    def test_closed_plate_cannot_close_again(self, ledger, allocator, lot):
        _open(ledger, allocator, lot, "ABC-1")
        ledger.close_session("ABC-1", T0 + timedelta(hours=1))
        with pytest.raises(VehicleNotParked):
            ledger.close_session("ABC-1", T0 + timedelta(hours=2))

    def test_invalid_range_leaves_session_open(self, ledger, allocator, lot):
        session = _open(ledger, allocator, lot, "ABC-1")
        with pytest.raises(InvalidTimeRange):
            ledger.close_session("ABC-1", T0 - timedelta(minutes=1))

        assert session.is_open
        assert session.fee is None
        assert not lot.slots["S4"].is_free

    def test_reopen_after_close_links_prior_session(self, ledger, allocator, lot):
        first = _open(ledger, allocator, lot, "ABC-1")
        ledger.close_session("ABC-1", T0 + timedelta(hours=1))

        second = _open(ledger, allocator, lot, "ABC-1", at=T0 + timedelta(hours=2))
        assert second.slot.id == first.slot.id
        assert second.prior_session_id == first.id

        ledger.close_session("ABC-1", T0 + timedelta(hours=3))
        third = _open(ledger, allocator, lot, "ABC-1", at=T0 + timedelta(hours=4))
        assert third.prior_session_id == second.id


class TestListing:

    def test_most_recent_check_in_first(self, ledger, allocator, lot):
        a = _open(ledger, allocator, lot, "A", at=T0 + timedelta(hours=1))
        b = _open(ledger, allocator, lot, "B", at=T0 + timedelta(hours=3))
        c = _open(ledger, allocator, lot, "C", at=T0)
        assert [s.id for s in ledger.list_sessions()] == [b.id, a.id, c.id]

    def test_ties_list_latest_opened_first(self, ledger, allocator, lot):
        a = _open(ledger, allocator, lot, "A")
        b = _open(ledger, allocator, lot, "B")
        assert [s.id for s in ledger.list_sessions()] == [b.id, a.id]

    def test_sessions_for_vehicle(self, ledger, allocator, lot):
        first = _open(ledger, allocator, lot, "A")
        ledger.close_session("A", T0 + timedelta(hours=1))
        _open(ledger, allocator, lot, "B")
        second = _open(ledger, allocator, lot, "A", at=T0 + timedelta(hours=2))

        assert [s.id for s in ledger.sessions_for_vehicle("A")] == [second.id, first.id]
        assert ledger.sessions_for_vehicle("Z") == []

    def test_no_two_open_sessions_share_a_slot(self, ledger, allocator, lot):
        for i in range(9):
            _open(ledger, allocator, lot, f"CAR-{i}")
        ledger.close_session("CAR-3", T0 + timedelta(hours=1))
        _open(ledger, allocator, lot, "CAR-10")

        open_slots = [s.slot.id for s in ledger.list_sessions() if s.is_open]
        assert len(open_slots) == ledger.open_count() == 9
        assert len(set(open_slots)) == 9

    def test_clear(self, ledger, allocator, lot):
        _open(ledger, allocator, lot, "A")
        ledger.clear()
        assert ledger.list_sessions() == []
        assert ledger.get_open_session("A") is None
