from __future__ import annotations

import threading
import time
from typing import Callable, Optional


class SessionTracker:
    """Process-lifetime session id plus a moving engagement baseline.

    Each call to ``consume_engagement_time`` reports the gap since the previous
    call and moves the baseline to now, so consecutive events carry the time
    spent between them rather than the total session age.
    """

    def __init__(
        self,
        *,
        time_fn: Optional[Callable[[], float]] = None,
        wall_time_fn: Optional[Callable[[], float]] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self._time = time_fn or time.monotonic
        wall_time = wall_time_fn or time.time
        self.session_started_at = wall_time()
        self._session_id = session_id or str(int(self.session_started_at))
        self._last_event_at = self._time()
        self._lock = threading.Lock()

    @property
    def session_id(self) -> str:
        return self._session_id

    def consume_engagement_time(self) -> int:
        """Milliseconds since the last call (or creation); resets the baseline."""
        with self._lock:
            now = self._time()
            elapsed = now - self._last_event_at
            self._last_event_at = now
        return max(0, int(round(elapsed * 1000)))
