"""Parking session state module."""

from .ledger import SessionLedger
from .models import ParkingSession, SessionStatus

__all__ = ["ParkingSession", "SessionLedger", "SessionStatus"]
