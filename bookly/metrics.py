"""Prometheus metric definitions for Bookly.

Single source of truth for all custom metrics; HTTP request metrics come from
prometheus-fastapi-instrumentator.
"""

from prometheus_client import Counter, Histogram

bookings_total = Counter(
    "bookly_bookings_total",
    "Booking attempts by outcome",
    ["result"],  # created | conflict
)

slot_requests_total = Counter(
    "bookly_slot_requests_total",
    "Total slot generation requests",
)

slots_returned = Histogram(
    "bookly_slots_returned",
    "Number of slots returned per slot request",
    buckets=(0, 1, 2, 4, 8, 16, 32, 64, 128),
)

meetings_cancelled_total = Counter(
    "bookly_meetings_cancelled_total",
    "Total meetings cancelled",
)

availability_saves_total = Counter(
    "bookly_availability_saves_total",
    "Total availability bulk replacements",
)
