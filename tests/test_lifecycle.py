import pytest
import requests

from desktop_telemetry.lifecycle import ApplicationLifecycle

from conftest import FakeSession

pytestmark = pytest.mark.unit


def test_application_events(make_tracker):
    session = FakeSession()
    lifecycle = ApplicationLifecycle(make_tracker(http_session=session))
    lifecycle.on_launch()
    lifecycle.on_activate()
    lifecycle.on_second_instance()
    lifecycle.on_all_windows_closed()
    lifecycle.on_quit()
    lifecycle.on_splash_shown()

    names = [call["json"]["events"][0]["name"] for call in session.calls]
    assert names == [
        "application_launch",
        "application_activate",
        "application_secondinstance",
        "application_allwindowsclosed",
        "application_quit",
        "screen_view",
    ]
    assert session.calls[0]["json"]["events"][0]["params"]["event_label"] == "v1.4.2"


def test_errors_are_tracked_as_exceptions(make_tracker):
    session = FakeSession()
    lifecycle = ApplicationLifecycle(make_tracker(http_session=session))
    lifecycle.on_startup_error(RuntimeError("db locked"))
    lifecycle.on_update_error("Python", ValueError("bad wheel"))

    startup, update = (call["json"]["events"][0]["params"] for call in session.calls)
    assert startup["description"] == "App startup error: db locked"
    assert startup["fatal"] is True
    assert update["description"] == "Python update error: bad wheel"
    assert update["fatal"] is False


def test_hooks_swallow_delivery_failures(make_tracker, caplog):
    tracker = make_tracker(http_session=FakeSession(error=requests.ConnectionError("offline")))
    lifecycle = ApplicationLifecycle(tracker, app_version="9.9.9")
    with caplog.at_level("WARNING", logger="desktop_telemetry.lifecycle"):
        lifecycle.on_launch()
        lifecycle.on_quit()
    assert "Launch" in caplog.text
    assert tracker.get_last_event().action == "Quit"
