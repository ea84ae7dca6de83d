"""User and device properties attached to every outgoing event."""

from __future__ import annotations

import copy
import locale
import logging
import os
import platform
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_SCREEN_RESOLUTION = "1920x1080"
DEFAULT_LANGUAGE = "en-US"
DEFAULT_DEVICE_MODEL = "unknown"

_DMI_PRODUCT_NAME = Path("/sys/devices/virtual/dmi/id/product_name")


@dataclass
class HostEnvironment:
    """Facts only the embedding application can answer.

    Every provider is optional; a missing or failing provider falls back to the
    registry default for that property.
    """

    screen_resolution: Optional[Callable[[], str]] = None
    language: Optional[Callable[[], str]] = None
    device_model: Optional[Callable[[], str]] = None
    executable: Optional[str] = None


def detect_language() -> str:
    code = locale.getlocale()[0]
    if not code or code in ("C", "POSIX"):
        return DEFAULT_LANGUAGE
    return code.replace("_", "-")


def detect_device_model() -> str:
    if sys.platform.startswith("linux"):
        try:
            model = _DMI_PRODUCT_NAME.read_text().strip()
        except OSError:
            model = ""
        if model:
            return model
    return platform.machine() or DEFAULT_DEVICE_MODEL


def classify_install_source(
    executable: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    frozen: Optional[bool] = None,
) -> str:
    """Guess how the application was installed from its launch context."""
    env = os.environ if environ is None else environ
    executable = executable or sys.executable
    frozen = getattr(sys, "frozen", False) if frozen is None else frozen
    normalized = executable.replace("\\", "/")
    if "/WindowsApps/" in normalized:
        return "microsoft_store"
    if env.get("SNAP"):
        return "snap"
    if env.get("FLATPAK_ID"):
        return "flatpak"
    if env.get("APPIMAGE"):
        return "appimage"
    # App Store bundles ship Contents/_MASReceipt next to Contents/MacOS.
    if "/Applications/" in normalized and (Path(executable).parent.parent / "_MASReceipt").exists():
        return "mac_app_store"
    if frozen:
        return "installer"
    return "development"


class PropertyRegistry:
    def __init__(
        self,
        *,
        app_name: str,
        app_version: str,
        host: Optional[HostEnvironment] = None,
    ) -> None:
        self.app_name = app_name
        self.app_version = app_version
        self.host = host or HostEnvironment()
        self._properties: Dict[str, Dict[str, Any]] = {}
        self._initialized = False
        self._lock = threading.Lock()

    def initialize(self) -> None:
        with self._lock:
            if self._initialized:
                return
            facts = {
                "app_name": self.app_name,
                "app_version": self.app_version,
                "os_platform": sys.platform,
                "os_version": self._collect("os_version", platform.release, "unknown"),
                "language": self._collect(
                    "language", self.host.language or detect_language, DEFAULT_LANGUAGE
                ),
                "screen_resolution": self._collect(
                    "screen_resolution", self.host.screen_resolution, DEFAULT_SCREEN_RESOLUTION
                ),
                "runtime_name": platform.python_implementation(),
                "runtime_version": platform.python_version(),
                "http_client_version": requests.__version__,
                "device_model": self._collect(
                    "device_model",
                    self.host.device_model or detect_device_model,
                    DEFAULT_DEVICE_MODEL,
                ),
                "install_source": self._collect(
                    "install_source",
                    lambda: classify_install_source(self.host.executable),
                    "development",
                ),
            }
            # Overrides set before initialization win over detected facts.
            for name, value in facts.items():
                self._properties.setdefault(name, {"value": value})
            self._initialized = True

    def set_property(self, name: str, value: Any) -> None:
        with self._lock:
            self._properties[name] = {"value": value}

    def get(self, name: str, default: Any = None) -> Any:
        self.initialize()
        entry = self._properties.get(name)
        return entry["value"] if entry else default

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        self.initialize()
        with self._lock:
            return copy.deepcopy(self._properties)

    @staticmethod
    def _collect(name: str, provider: Optional[Callable[[], Any]], default: Any) -> Any:
        if provider is None:
            return default
        try:
            value = provider()
        except Exception as exc:
            logger.debug("Could not determine %s, using default: %s", name, exc)
            return default
        return value if value else default
