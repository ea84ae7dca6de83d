"""FastAPI bridge exposing the tracking entry points and debug surface."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI
from pydantic import BaseModel, Field

from .debug import DebugSurface
from .errors import DeliveryError
from .tracker import TelemetryTracker


class TrackEventPayload(BaseModel):
    category: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)
    label: Optional[str] = None
    value: Optional[float] = None


class DebugEventPayload(BaseModel):
    category: str = Field("Test", min_length=1)
    action: str = Field("Debug", min_length=1)
    label: Optional[str] = None


class ExceptionPayload(BaseModel):
    description: str
    fatal: bool = False


class ScreenPayload(BaseModel):
    screen_name: str = Field(..., min_length=1)


class PageViewPayload(BaseModel):
    hostname: str
    url: str
    title: str = ""


class BridgeResponse(BaseModel):
    success: bool
    message: Optional[str] = None


class DebugEventResponse(BridgeResponse):
    status: Optional[int] = None
    statusText: Optional[str] = None
    clientId: Optional[str] = None
    sessionId: Optional[str] = None


class StatusResponse(BaseModel):
    success: bool
    lastEvent: Optional[Dict[str, Any]] = None
    message: Optional[str] = None


def create_app(tracker: TelemetryTracker) -> FastAPI:
    app = FastAPI(
        title="Desktop Telemetry Bridge",
        version="1.0.0",
        description="Tracking entry points and debug surface for the telemetry pipeline.",
    )
    debug = DebugSurface(tracker)

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/analytics/status", response_model=StatusResponse)
    def get_status() -> Dict[str, Any]:
        return debug.get_status()

    @app.post("/analytics/test-event", response_model=DebugEventResponse)
    def test_event(payload: DebugEventPayload) -> Dict[str, Any]:
        return debug.run_debug_event(payload.category, payload.action, payload.label)

    @app.post("/analytics/app-update", response_model=StatusResponse)
    def track_app_update() -> Dict[str, Any]:
        return debug.track_app_update()

    @app.post("/analytics/event", response_model=BridgeResponse)
    def track_event(payload: TrackEventPayload) -> BridgeResponse:
        try:
            tracker.track_event(
                payload.category,
                payload.action,
                label=payload.label,
                value=payload.value,
            )
        except DeliveryError as exc:
            return BridgeResponse(success=False, message=exc.message)
        return BridgeResponse(success=True)

    @app.post("/analytics/exception", response_model=BridgeResponse)
    def track_exception(payload: ExceptionPayload) -> BridgeResponse:
        tracker.track_exception(payload.description, payload.fatal)
        return BridgeResponse(success=True)

    @app.post("/analytics/screen", response_model=BridgeResponse)
    def track_screen(payload: ScreenPayload) -> BridgeResponse:
        tracker.track_screen(payload.screen_name)
        return BridgeResponse(success=True)

    @app.post("/analytics/pageview", response_model=BridgeResponse)
    def track_page_view(payload: PageViewPayload) -> BridgeResponse:
        tracker.track_page_view(payload.hostname, payload.url, payload.title)
        return BridgeResponse(success=True)

    return app
