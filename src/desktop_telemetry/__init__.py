"""Client-side telemetry pipeline delivering desktop application events to a measurement-protocol collector."""

from .config import CollectorSettings, configure_logging
from .debug import DebugSurface
from .errors import DeliveryError, TelemetryError
from .identity import IdentityStore
from .lifecycle import ApplicationLifecycle
from .mirror import MirrorChannel
from .models import (
    ErrorPolicy,
    EventKind,
    EventPayload,
    LastEventSnapshot,
    normalize_event_name,
)
from .properties import HostEnvironment, PropertyRegistry
from .session import SessionTracker
from .tracker import TelemetryTracker, build_tracker, get_tracker

__all__ = [
    "ApplicationLifecycle",
    "CollectorSettings",
    "DebugSurface",
    "DeliveryError",
    "ErrorPolicy",
    "EventKind",
    "EventPayload",
    "HostEnvironment",
    "IdentityStore",
    "LastEventSnapshot",
    "MirrorChannel",
    "PropertyRegistry",
    "SessionTracker",
    "TelemetryError",
    "TelemetryTracker",
    "build_tracker",
    "configure_logging",
    "get_tracker",
    "normalize_event_name",
]
