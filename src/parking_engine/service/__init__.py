"""Facility service module."""

from .facility import FacilityService, LotSnapshot

__all__ = ["FacilityService", "LotSnapshot"]
