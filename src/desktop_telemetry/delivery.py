"""Single-shot HTTP delivery to the collector and the last-event cell."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Dict, Optional

import requests

from .config import CollectorSettings
from .errors import DeliveryError
from .models import (
    ErrorRecord,
    EventPayload,
    LastEventSnapshot,
    Occurrence,
    ResponseRecord,
)

logger = logging.getLogger(__name__)


class LastEventStore:
    """Thread-safe holder of the most recent delivery attempt (last write wins)."""

    def __init__(self) -> None:
        self._snapshot: Optional[LastEventSnapshot] = None
        self._lock = threading.Lock()

    def record(self, snapshot: LastEventSnapshot) -> None:
        with self._lock:
            self._snapshot = snapshot

    def get(self) -> Optional[LastEventSnapshot]:
        with self._lock:
            return self._snapshot

    def clear(self) -> None:
        with self._lock:
            self._snapshot = None


def _decode_body(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class CollectorClient:
    """POST /mp/collect with a JSON body; no retries, no batching."""

    def __init__(
        self,
        *,
        settings: CollectorSettings,
        last_event: Optional[LastEventStore] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.settings = settings
        self.last_event = last_event or LastEventStore()
        self.session = session or requests.Session()
        self._warned_unconfigured = False

    @property
    def is_configured(self) -> bool:
        if self.settings.is_delivery_configured:
            return True
        if not self._warned_unconfigured:
            self._warned_unconfigured = True
            logger.warning(
                "Collector measurement id or API secret missing; telemetry delivery is disabled"
            )
        return False

    def send(self, payload: EventPayload, *, occurrence: Occurrence) -> Optional[ResponseRecord]:
        """Deliver one payload and record the outcome.

        Returns None without touching the network when the collector is not
        configured. Raises DeliveryError on bodies that cannot be JSON encoded,
        timeouts, connection problems and non-2xx answers, after recording the
        failure.
        """
        if not self.is_configured:
            logger.debug("Skipping delivery of %s: collector not configured", occurrence.name)
            return None

        body = payload.to_dict()
        if self.settings.debug_mode:
            logger.debug("Collector request %s: %s", occurrence.name, json.dumps(body, default=str))

        try:
            record = self._post(body, payload)
        except DeliveryError as exc:
            self.record_failure(occurrence, exc)
            raise
        self.last_event.record(self._snapshot(occurrence, response=record))
        if self.settings.debug_mode:
            logger.debug(
                "Collector response %s: %s %s %s",
                occurrence.name,
                record.status,
                record.status_text,
                record.server_response,
            )
        return record

    def record_failure(self, occurrence: Occurrence, exc: DeliveryError) -> None:
        self.last_event.record(
            self._snapshot(
                occurrence,
                error=ErrorRecord(
                    message=exc.message,
                    code=exc.code,
                    status=exc.status,
                    status_text=exc.status_text,
                    response=exc.body,
                ),
            )
        )

    def _post(self, body: Dict[str, Any], payload: EventPayload) -> ResponseRecord:
        try:
            json.dumps(body, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise DeliveryError(
                f"Event body is not JSON serializable: {exc}", code="serialization_error"
            ) from exc
        try:
            response = self.session.post(
                self.settings.endpoint_url(),
                params=self.settings.query_params(),
                json=body,
                headers={"Content-Type": "application/json"},
                timeout=self.settings.timeout,
            )
        except requests.Timeout as exc:
            raise DeliveryError(
                f"Collector request timed out after {self.settings.timeout}s", code="timeout"
            ) from exc
        except requests.ConnectionError as exc:
            raise DeliveryError(str(exc) or "Connection error", code="connection_error") from exc
        except requests.RequestException as exc:
            raise DeliveryError(str(exc) or "Request failed", code="request_error") from exc

        server_response = _decode_body(response)
        if not 200 <= response.status_code < 300:
            raise DeliveryError(
                f"Collector responded with {response.status_code} {response.reason or ''}".strip(),
                code="http_error",
                status=response.status_code,
                status_text=response.reason,
                body=server_response,
            )
        return ResponseRecord(
            status=response.status_code,
            status_text=response.reason or "",
            client_id=payload.client_id,
            session_id=str(payload.events[0].params.get("session_id", "")),
            server_response=server_response,
            response_headers=dict(response.headers),
        )

    @staticmethod
    def _snapshot(
        occurrence: Occurrence,
        *,
        response: Optional[ResponseRecord] = None,
        error: Optional[ErrorRecord] = None,
    ) -> LastEventSnapshot:
        return LastEventSnapshot(
            event_name=occurrence.name,
            category=occurrence.category,
            action=occurrence.action,
            label=occurrence.label,
            response=response,
            error=error,
        )
