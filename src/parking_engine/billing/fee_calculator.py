"""Tiered parking fee calculation."""

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from ..config import FeeRules
from ..errors import InvalidTimeRange
from ..topology.models import SlotSize

SECONDS_PER_HOUR = 3600
HOURS_PER_DAY = 24


@dataclass
class Duration:
    """Billable length of a stay, split into days and hours."""

    days: int
    hours: int

    @property
    def total_hours(self) -> int:
        return self.days * HOURS_PER_DAY + self.hours


def billable_hours(check_in_at: datetime, check_out_at: datetime) -> int:
    """
    Whole hours billed for a stay, rounding any partial hour up.

    Raises:
        InvalidTimeRange: If check-out precedes check-in
    """
    if check_out_at < check_in_at:
        raise InvalidTimeRange(
            f"Check-out {check_out_at} precedes check-in {check_in_at}",
            field="time_at",
        )
    seconds = (check_out_at - check_in_at).total_seconds()
    return math.ceil(seconds / SECONDS_PER_HOUR)


def billable_duration(check_in_at: datetime, check_out_at: datetime) -> Duration:
    days, hours = divmod(billable_hours(check_in_at, check_out_at), HOURS_PER_DAY)
    return Duration(days=days, hours=hours)


def fee_for_hours(hours: int, slot_size: SlotSize, rules: FeeRules) -> Decimal:
    """
    Fee for a number of billable hours.

    The first ``max_hours`` bill at the flat hourly rate. Past that window
    every full day bills at the lower of the daily rate and 24 normal hours,
    and the trailing partial day bills at the normal hourly rate for the
    slot size, never more than the daily rate.
    """
    flat = rules.flat_rate
    if hours <= flat.max_hours:
        return flat.hourly * hours

    fee = flat.hourly * flat.max_hours
    normal = rules.normal_rate.slot_size.for_size(slot_size)
    days, rest = divmod(hours - flat.max_hours, HOURS_PER_DAY)

    fee += days * min(flat.daily, normal * HOURS_PER_DAY)
    fee += min(flat.daily, normal * rest)
    return fee


def compute_fee(
    check_in_at: datetime,
    check_out_at: datetime,
    slot_size: SlotSize,
    rules: FeeRules,
) -> Decimal:
    """
    Compute the charge for a stay.

    Args:
        check_in_at: When the vehicle entered
        check_out_at: When the vehicle left
        slot_size: Size of the slot it occupied
        rules: Fee rules in effect

    Returns:
        Fee in ``rules.currency``

    Raises:
        InvalidTimeRange: If check-out precedes check-in
    """
    return fee_for_hours(billable_hours(check_in_at, check_out_at), slot_size, rules)
