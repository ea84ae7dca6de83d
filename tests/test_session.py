import pytest

from desktop_telemetry.session import SessionTracker

from conftest import FakeClock

pytestmark = pytest.mark.unit


def test_engagement_time_is_gap_since_previous_event():
    clock = FakeClock()
    tracker = SessionTracker(time_fn=clock)
    clock.advance(1.5)
    assert tracker.consume_engagement_time() == 1500
    clock.advance(0.25)
    assert tracker.consume_engagement_time() == 250
    assert tracker.consume_engagement_time() == 0


def test_engagement_time_never_negative():
    clock = FakeClock()
    tracker = SessionTracker(time_fn=clock)
    clock.advance(-5)
    assert tracker.consume_engagement_time() == 0


def test_session_id_constant_for_tracker_lifetime():
    tracker = SessionTracker(time_fn=FakeClock(), wall_time_fn=lambda: 1700000123.9)
    assert tracker.session_id == "1700000123"
    tracker.consume_engagement_time()
    assert tracker.session_id == "1700000123"
    assert tracker.session_started_at == 1700000123.9
