"""Tracking entry points used by the host application."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

import requests

from .config import CollectorSettings, configure_logging
from .delivery import CollectorClient, LastEventStore
from .errors import DeliveryError
from .identity import IdentityStore
from .mirror import MirrorChannel, SurfaceLocator, screen_path
from .models import (
    ErrorPolicy,
    EventKind,
    LastEventSnapshot,
    Occurrence,
    normalize_event_name,
)
from .payload import PayloadBuilder
from .properties import HostEnvironment, PropertyRegistry
from .session import SessionTracker

logger = logging.getLogger(__name__)

ERROR_POLICIES: Dict[EventKind, ErrorPolicy] = {
    EventKind.EVENT: ErrorPolicy.PROPAGATE,
    EventKind.EXCEPTION: ErrorPolicy.SUPPRESS,
    EventKind.SCREEN_VIEW: ErrorPolicy.SUPPRESS,
    EventKind.PAGE_VIEW: ErrorPolicy.SUPPRESS,
}


class DeliveryStrategy(Protocol):
    name: str

    def deliver(self, occurrence: Occurrence) -> None: ...


class NetworkStrategy:
    name = "network"

    def __init__(self, *, builder: PayloadBuilder, client: CollectorClient) -> None:
        self.builder = builder
        self.client = client
        # Engagement time must be consumed in the order payloads are sent.
        self._send_lock = threading.Lock()

    def deliver(self, occurrence: Occurrence) -> None:
        if not self.client.is_configured:
            return
        with self._send_lock:
            try:
                payload = self.builder.build_event(occurrence.name, occurrence.params)
            except Exception as exc:
                error = DeliveryError(f"Could not build event payload: {exc}", code="payload_error")
                self.client.record_failure(occurrence, error)
                raise error from exc
            self.client.send(payload, occurrence=occurrence)


class MirrorStrategy:
    name = "mirror"

    def __init__(self, mirror: MirrorChannel) -> None:
        self.mirror = mirror

    def deliver(self, occurrence: Occurrence) -> None:
        self.mirror.mirror(occurrence)


class TelemetryTracker:
    """Turns application occurrences into collector events.

    Every strategy runs for every occurrence, so a failing network delivery
    never stops the UI mirror (and vice versa). Afterwards the first failure is
    handled according to the kind's ErrorPolicy: generic events re-raise it,
    lifecycle and navigation signals only log it.
    """

    def __init__(
        self,
        *,
        settings: CollectorSettings,
        identity: IdentityStore,
        session: SessionTracker,
        properties: PropertyRegistry,
        builder: PayloadBuilder,
        client: CollectorClient,
        strategies: Sequence[DeliveryStrategy],
        policies: Optional[Mapping[EventKind, ErrorPolicy]] = None,
    ) -> None:
        self.settings = settings
        self.identity = identity
        self.session = session
        self.properties = properties
        self.builder = builder
        self.client = client
        self.strategies: List[DeliveryStrategy] = list(strategies)
        self.policies = dict(ERROR_POLICIES)
        self.policies.update(policies or {})

    @property
    def client_id(self) -> str:
        return self.identity.resolve_client_id()

    @property
    def session_id(self) -> str:
        return self.session.session_id

    def track_event(
        self,
        category: str,
        action: str,
        *,
        label: Optional[str] = None,
        value: Optional[float] = None,
    ) -> None:
        params: Dict[str, Any] = {"event_category": category, "event_action": action}
        if label:
            params["event_label"] = label
        if value is not None:
            params["event_value"] = value
        self._dispatch(
            Occurrence(
                kind=EventKind.EVENT,
                name=normalize_event_name(category, action),
                params=params,
                category=category,
                action=action,
                label=label,
                value=value,
            )
        )

    def track_exception(self, description: str, fatal: bool = False) -> None:
        self._dispatch(
            Occurrence(
                kind=EventKind.EXCEPTION,
                name="exception",
                params={"description": description, "fatal": bool(fatal)},
                description=description,
                fatal=bool(fatal),
            )
        )

    def track_screen(self, screen_name: str) -> None:
        path = screen_path(screen_name)
        app_slug = self.settings.app_name.lower().replace(" ", "-")
        self._dispatch(
            Occurrence(
                kind=EventKind.SCREEN_VIEW,
                name="screen_view",
                params={
                    "screen_name": screen_name,
                    "page_title": screen_name,
                    "page_location": f"app://{app_slug}{path}",
                    "entrances": 1,
                },
                page_path=path,
                page_title=screen_name,
            )
        )

    def track_page_view(self, hostname: str, url: str, title: str) -> None:
        self._dispatch(
            Occurrence(
                kind=EventKind.PAGE_VIEW,
                name="page_view",
                params={"page_location": url, "page_title": title, "hostname": hostname},
                page_path=url,
                page_title=title,
            )
        )

    def track_app_update(self, version: Optional[str] = None) -> None:
        self.track_event("Application", "Update", label=f"v{version or self.settings.app_version}")

    def set_params(self, params: Mapping[str, Any]) -> None:
        self.builder.set_params(params)

    def set_user_properties(self, properties: Mapping[str, Any]) -> None:
        for name, value in properties.items():
            self.properties.set_property(name, value)

    def get_last_event(self) -> Optional[LastEventSnapshot]:
        """Most recent delivery attempt, successful or failed.

        When the collector is not configured no attempt is made, so the cell
        keeps whatever an earlier attempt left there (None if there was none).
        """
        return self.client.last_event.get()

    def _dispatch(self, occurrence: Occurrence) -> None:
        first_error: Optional[Exception] = None
        for strategy in self.strategies:
            try:
                strategy.deliver(occurrence)
            except Exception as exc:
                if first_error is None:
                    first_error = exc
                logger.debug("%s delivery of %s failed: %s", strategy.name, occurrence.name, exc)
        if first_error is None:
            return
        if self.policies.get(occurrence.kind, ErrorPolicy.SUPPRESS) is ErrorPolicy.PROPAGATE:
            raise first_error
        logger.warning("Telemetry %s not delivered: %s", occurrence.name, first_error)


def build_tracker(
    settings: Optional[CollectorSettings] = None,
    *,
    identity: Optional[IdentityStore] = None,
    session: Optional[SessionTracker] = None,
    properties: Optional[PropertyRegistry] = None,
    host: Optional[HostEnvironment] = None,
    surface_locator: Optional[SurfaceLocator] = None,
    http_session: Optional[requests.Session] = None,
) -> TelemetryTracker:
    settings = settings or CollectorSettings.from_env()
    configure_logging(settings.debug_mode)
    identity = identity or IdentityStore.for_app(settings.app_name)
    session = session or SessionTracker()
    properties = properties or PropertyRegistry(
        app_name=settings.app_name,
        app_version=settings.app_version,
        host=host,
    )
    builder = PayloadBuilder(identity=identity, session=session, properties=properties)
    client = CollectorClient(settings=settings, last_event=LastEventStore(), session=http_session)
    strategies: List[DeliveryStrategy] = [
        NetworkStrategy(builder=builder, client=client),
        MirrorStrategy(MirrorChannel(surface_locator)),
    ]
    return TelemetryTracker(
        settings=settings,
        identity=identity,
        session=session,
        properties=properties,
        builder=builder,
        client=client,
        strategies=strategies,
    )


# Process-wide instance; created on first use and kept until exit.
_tracker: Optional[TelemetryTracker] = None
_tracker_lock = threading.Lock()


def get_tracker(**kwargs: Any) -> TelemetryTracker:
    """Get or build the process-wide tracker. Arguments only apply on first call."""
    global _tracker

    with _tracker_lock:
        if _tracker is None:
            _tracker = build_tracker(**kwargs)
        return _tracker
