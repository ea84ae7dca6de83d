"""Measurement-protocol request bodies."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Mapping, Optional

from .identity import IdentityStore
from .models import EventPayload, WireEvent
from .properties import PropertyRegistry
from .session import SessionTracker

# Copied from the property registry into every event's params.
DEVICE_PARAM_FIELDS = (
    "app_name",
    "app_version",
    "os_platform",
    "os_version",
    "language",
    "screen_resolution",
    "device_model",
)


class PayloadBuilder:
    def __init__(
        self,
        *,
        identity: IdentityStore,
        session: SessionTracker,
        properties: PropertyRegistry,
        time_fn: Optional[Callable[[], float]] = None,
    ) -> None:
        self.identity = identity
        self.session = session
        self.properties = properties
        self._time = time_fn or time.time
        self._default_params: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def set_params(self, params: Mapping[str, Any]) -> None:
        """Merge params sent with every later event; event params win on conflict."""
        with self._lock:
            self._default_params.update(params)

    @property
    def default_params(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._default_params)

    def build_event(self, name: str, params: Optional[Mapping[str, Any]] = None) -> EventPayload:
        client_id = self.identity.resolve_client_id()
        user_properties = self.properties.snapshot()
        event_params: Dict[str, Any] = {
            field_name: user_properties[field_name]["value"]
            for field_name in DEVICE_PARAM_FIELDS
            if field_name in user_properties
        }
        event_params.update(self.default_params)
        event_params.update(params or {})
        event_params["session_id"] = self.session.session_id
        event_params["engagement_time_msec"] = self.session.consume_engagement_time()
        return EventPayload(
            client_id=client_id,
            user_id=client_id,
            timestamp_micros=int(self._time() * 1_000_000),
            user_properties=user_properties,
            events=[WireEvent(name=name, params=event_params)],
        )
