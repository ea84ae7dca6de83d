"""Best-effort forwarding of tracked events to a UI-hosted tracking snippet."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional, Protocol

from .models import EventKind, Occurrence

logger = logging.getLogger(__name__)


class UISurface(Protocol):
    def is_destroyed(self) -> bool: ...

    def execute_javascript(self, script: str) -> Any: ...


SurfaceLocator = Callable[[], Optional[UISurface]]


def screen_path(screen_name: str) -> str:
    return f"/screens/{screen_name.lower()}"


class MirrorChannel:
    """Calls ``<target>.trackEvent/trackException/trackPageView`` in the focused surface."""

    def __init__(self, surface_locator: Optional[SurfaceLocator] = None, *, target: str = "window.analytics") -> None:
        self.surface_locator = surface_locator
        self.target = target

    def build_script(self, occurrence: Occurrence) -> str:
        if occurrence.kind is EventKind.EVENT:
            function = "trackEvent"
            args = [occurrence.category, occurrence.action, occurrence.label, occurrence.value]
        elif occurrence.kind is EventKind.EXCEPTION:
            function = "trackException"
            args = [occurrence.description, occurrence.fatal]
        else:
            function = "trackPageView"
            args = [occurrence.page_path, occurrence.page_title]
        encoded = ", ".join("undefined" if arg is None else json.dumps(arg) for arg in args)
        return f"{self.target}.{function}({encoded})"

    def mirror(self, occurrence: Occurrence) -> None:
        """Never raises."""
        if self.surface_locator is None:
            return
        try:
            surface = self.surface_locator()
            if surface is None or surface.is_destroyed():
                return
            surface.execute_javascript(self.build_script(occurrence))
        except Exception as exc:
            logger.debug("Mirroring %s to UI surface failed: %s", occurrence.name, exc)
