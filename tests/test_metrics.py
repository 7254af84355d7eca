"""Tests for Prometheus metric definitions."""

from bookly.metrics import (
    availability_saves_total,
    bookings_total,
    meetings_cancelled_total,
    slot_requests_total,
    slots_returned,
)


class TestMetricDefinitions:
    """Verify all custom metrics are defined with correct types and labels."""

    def test_bookings_total_is_counter_with_result_label(self):
        assert bookings_total._type == "counter"
        assert bookings_total._labelnames == ("result",)

    def test_slot_requests_is_counter(self):
        assert slot_requests_total._type == "counter"

    def test_slots_returned_is_histogram(self):
        assert slots_returned._type == "histogram"
        assert slots_returned._upper_bounds[0] == 0

    def test_meetings_cancelled_is_counter(self):
        assert meetings_cancelled_total._type == "counter"

    def test_availability_saves_is_counter(self):
        assert availability_saves_total._type == "counter"

    def test_metric_names_are_prefixed(self):
        for metric in (bookings_total, slot_requests_total, slots_returned, meetings_cancelled_total):
            assert metric._name.startswith("bookly_")
