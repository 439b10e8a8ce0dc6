"""Prometheus metrics for the parking engine."""

from prometheus_client import Counter, Gauge, Histogram, CollectorRegistry, generate_latest

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

SESSIONS_OPENED = Counter(
    "parking_sessions_opened_total",
    "Total number of vehicles parked",
    ["slot_size", "vehicle_size"],
    registry=REGISTRY,
)

SESSIONS_CLOSED = Counter(
    "parking_sessions_closed_total",
    "Total number of vehicles checked out",
    ["slot_size"],
    registry=REGISTRY,
)

FEES_BILLED = Counter(
    "parking_fees_billed_total",
    "Sum of fees billed at checkout",
    ["currency", "slot_size"],
    registry=REGISTRY,
)

# Billable stay length in hours
PARKED_HOURS = Histogram(
    "parking_stay_hours",
    "Billable hours per closed parking session",
    buckets=(1, 2, 3, 6, 12, 24, 48, 72, 168),
    registry=REGISTRY,
)

ALLOCATION_FAILURES = Counter(
    "parking_allocation_failures_total",
    "Park requests rejected because no compatible slot was free",
    ["vehicle_size"],
    registry=REGISTRY,
)

OPERATION_ERRORS = Counter(
    "parking_operation_errors_total",
    "Rejected operations by error code",
    ["code"],
    registry=REGISTRY,
)

TOTAL_SLOTS = Gauge(
    "parking_slots_total",
    "Total number of parking slots",
    registry=REGISTRY,
)

AVAILABLE_SLOTS = Gauge(
    "parking_slots_available",
    "Number of available parking slots",
    registry=REGISTRY,
)

OCCUPIED_SLOTS = Gauge(
    "parking_slots_occupied",
    "Number of occupied parking slots",
    registry=REGISTRY,
)


def record_session_opened(slot_size: str, vehicle_size: str) -> None:
    """Record a vehicle being parked."""
    SESSIONS_OPENED.labels(slot_size=slot_size, vehicle_size=vehicle_size).inc()


def record_session_closed(slot_size: str, currency: str, fee: float, hours: int) -> None:
    """Record a checkout and the fee it produced."""
    SESSIONS_CLOSED.labels(slot_size=slot_size).inc()
    FEES_BILLED.labels(currency=currency, slot_size=slot_size).inc(fee)
    PARKED_HOURS.observe(hours)


def record_allocation_failure(vehicle_size: str) -> None:
    ALLOCATION_FAILURES.labels(vehicle_size=vehicle_size).inc()


def record_operation_error(code: str) -> None:
    OPERATION_ERRORS.labels(code=code).inc()


def update_slot_counts(total: int, occupied: int) -> None:
    """Update overall slot count gauges."""
    TOTAL_SLOTS.set(total)
    AVAILABLE_SLOTS.set(total - occupied)
    OCCUPIED_SLOTS.set(occupied)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest(REGISTRY)
