import pytest

from desktop_telemetry.mirror import MirrorChannel
from desktop_telemetry.models import EventKind, Occurrence

pytestmark = pytest.mark.unit


class FakeSurface:
    def __init__(self, destroyed=False, error=None):
        self.destroyed = destroyed
        self.error = error
        self.scripts = []

    def is_destroyed(self):
        return self.destroyed

    def execute_javascript(self, script):
        if self.error:
            raise self.error
        self.scripts.append(script)


def test_event_script_encodes_arguments():
    surface = FakeSurface()
    channel = MirrorChannel(lambda: surface)
    channel.mirror(
        Occurrence(kind=EventKind.EVENT, name="ui_click", category="UI", action='Say "hi"', label=None, value=3)
    )
    assert surface.scripts == ['window.analytics.trackEvent("UI", "Say \\"hi\\"", undefined, 3)']


def test_exception_and_screen_scripts():
    surface = FakeSurface()
    channel = MirrorChannel(lambda: surface, target="window.tracking")
    channel.mirror(Occurrence(kind=EventKind.EXCEPTION, name="exception", description="boom", fatal=True))
    channel.mirror(
        Occurrence(
            kind=EventKind.SCREEN_VIEW,
            name="screen_view",
            page_path="/screens/settings",
            page_title="Settings",
        )
    )
    assert surface.scripts == [
        'window.tracking.trackException("boom", true)',
        'window.tracking.trackPageView("/screens/settings", "Settings")',
    ]


@pytest.mark.parametrize(
    "locator",
    [
        lambda: None,
        lambda: FakeSurface(destroyed=True),
        lambda: FakeSurface(error=RuntimeError("render process gone")),
    ],
)
def test_mirror_never_raises(locator):
    MirrorChannel(locator).mirror(Occurrence(kind=EventKind.PAGE_VIEW, name="page_view"))


def test_locator_failure_is_swallowed():
    def locator():
        raise RuntimeError("no windows")

    MirrorChannel(locator).mirror(Occurrence(kind=EventKind.EXCEPTION, name="exception", description="x"))


def test_destroyed_surface_not_called():
    surface = FakeSurface(destroyed=True)
    MirrorChannel(lambda: surface).mirror(Occurrence(kind=EventKind.PAGE_VIEW, name="page_view"))
    assert surface.scripts == []
