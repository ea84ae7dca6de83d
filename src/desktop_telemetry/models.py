from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

_WHITESPACE_RE = re.compile(r"\s+")


class EventKind(str, Enum):
    EVENT = "event"
    EXCEPTION = "exception"
    SCREEN_VIEW = "screen_view"
    PAGE_VIEW = "page_view"


class ErrorPolicy(str, Enum):
    PROPAGATE = "propagate"
    SUPPRESS = "suppress"


def normalize_event_name(category: str, action: str) -> str:
    """Collector event name for a category/action pair.

    ``("Application", "Second Instance")`` becomes ``application_second_instance``.
    """
    return _WHITESPACE_RE.sub("_", f"{category}_{action}".strip()).lower()


@dataclass
class Occurrence:
    """One thing the application asked to track, before any delivery."""

    kind: EventKind
    name: str
    params: Dict[str, Any] = field(default_factory=dict)
    category: Optional[str] = None
    action: Optional[str] = None
    label: Optional[str] = None
    value: Optional[float] = None
    description: Optional[str] = None
    fatal: bool = False
    page_path: Optional[str] = None
    page_title: Optional[str] = None


@dataclass
class WireEvent:
    name: str
    params: Dict[str, Any]


@dataclass
class EventPayload:
    client_id: str
    user_id: str
    timestamp_micros: int
    user_properties: Dict[str, Dict[str, Any]]
    events: List[WireEvent]
    non_personalized_ads: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "client_id": self.client_id,
            "user_id": self.user_id,
            "timestamp_micros": self.timestamp_micros,
            "non_personalized_ads": self.non_personalized_ads,
            "user_properties": self.user_properties,
            "events": [{"name": event.name, "params": event.params} for event in self.events],
        }


@dataclass(frozen=True)
class ResponseRecord:
    status: int
    status_text: str
    client_id: str
    session_id: str
    server_response: Any = None
    response_headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ErrorRecord:
    message: str
    code: Optional[str] = None
    status: Optional[int] = None
    status_text: Optional[str] = None
    response: Any = None


@dataclass(frozen=True)
class LastEventSnapshot:
    """Most recent delivery attempt. Holds a response or an error, never both."""

    event_name: str
    category: Optional[str]
    action: Optional[str]
    label: Optional[str]
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))
    response: Optional[ResponseRecord] = None
    error: Optional[ErrorRecord] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data
