"""Parking lot allocation and billing engine."""

__version__ = "1.0.0"
