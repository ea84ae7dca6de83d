from __future__ import annotations

import logging
from typing import Optional

from .errors import DeliveryError
from .tracker import TelemetryTracker

logger = logging.getLogger(__name__)


class ApplicationLifecycle:
    """Telemetry hooks for the host application's lifecycle; delivery failures stay inside."""

    def __init__(self, tracker: TelemetryTracker, *, app_version: Optional[str] = None) -> None:
        self.tracker = tracker
        self.app_version = app_version or tracker.settings.app_version

    def on_launch(self) -> None:
        self._application_event("Launch", label=f"v{self.app_version}")

    def on_activate(self) -> None:
        self._application_event("Activate")

    def on_second_instance(self) -> None:
        self._application_event("SecondInstance")

    def on_all_windows_closed(self) -> None:
        self._application_event("AllWindowsClosed")

    def on_quit(self) -> None:
        self._application_event("Quit")

    def on_splash_shown(self) -> None:
        self.tracker.track_screen("SplashScreen")

    def on_startup_error(self, exc: BaseException) -> None:
        self.tracker.track_exception(f"App startup error: {exc}", fatal=True)

    def on_update_error(self, component: str, exc: BaseException) -> None:
        self.tracker.track_exception(f"{component} update error: {exc}")

    def _application_event(self, action: str, *, label: Optional[str] = None) -> None:
        try:
            self.tracker.track_event("Application", action, label=label)
        except DeliveryError as exc:
            logger.warning("Application %s event not delivered: %s", action, exc)
