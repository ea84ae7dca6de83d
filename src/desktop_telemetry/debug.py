from __future__ import annotations

from typing import Any, Dict, Optional

from .errors import DeliveryError
from .models import LastEventSnapshot
from .tracker import TelemetryTracker


class DebugSurface:
    """Read-only telemetry state plus manual triggers for a debug panel."""

    def __init__(self, tracker: TelemetryTracker) -> None:
        self.tracker = tracker

    def last_event(self) -> Optional[LastEventSnapshot]:
        return self.tracker.get_last_event()

    def run_debug_event(self, category: str, action: str, label: Optional[str] = None) -> Dict[str, Any]:
        try:
            self.tracker.track_event(category, action, label=label or None)
        except DeliveryError as exc:
            return {
                "success": False,
                "message": exc.message,
                "status": exc.status,
                "statusText": exc.status_text,
                "clientId": self.tracker.client_id,
                "sessionId": self.tracker.session_id,
            }
        snapshot = self.last_event()
        response = snapshot.response if snapshot else None
        return {
            "success": True,
            "message": f"Event {category}/{action} tracked",
            "status": response.status if response else None,
            "statusText": response.status_text if response else None,
            "clientId": self.tracker.client_id,
            "sessionId": self.tracker.session_id,
        }

    def get_status(self) -> Dict[str, Any]:
        snapshot = self.last_event()
        return {"success": True, "lastEvent": snapshot.to_dict() if snapshot else None}

    def track_app_update(self) -> Dict[str, Any]:
        try:
            self.tracker.track_app_update()
        except DeliveryError as exc:
            return {"success": False, "message": exc.message}
        snapshot = self.last_event()
        return {
            "success": True,
            "message": "App update tracking completed",
            "lastEvent": snapshot.to_dict() if snapshot else None,
        }
