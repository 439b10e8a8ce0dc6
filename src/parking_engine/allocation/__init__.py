"""Slot allocation module."""

from .allocator import NearestSlotSearch, SlotAllocator, manhattan_distance

__all__ = ["NearestSlotSearch", "SlotAllocator", "manhattan_distance"]
