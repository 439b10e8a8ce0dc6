"""Parking fee module."""

from .fee_calculator import Duration, billable_duration, billable_hours, compute_fee, fee_for_hours

__all__ = ["Duration", "billable_duration", "billable_hours", "compute_fee", "fee_for_hours"]
