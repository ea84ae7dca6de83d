from __future__ import annotations

from typing import Any, Optional


class TelemetryError(RuntimeError):
    """Base class for failures raised by the telemetry pipeline."""


class DeliveryError(TelemetryError):
    """Raised when the collector could not be reached or rejected an event."""

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status: Optional[int] = None,
        status_text: Optional[str] = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.status_text = status_text
        self.body = body
