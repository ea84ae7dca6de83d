"""Collector settings and logger configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

DEFAULT_COLLECTOR_HOST = "www.google-analytics.com"
DEFAULT_TIMEOUT = 10.0
DEFAULT_APP_NAME = "DesktopApp"
DEFAULT_APP_VERSION = "0.0.0"

_TRUTHY = ("1", "true", "yes", "on")
_LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass
class CollectorSettings:
    """Where and how events are delivered."""

    measurement_id: Optional[str] = None
    api_secret: Optional[str] = None
    collector_host: str = DEFAULT_COLLECTOR_HOST
    timeout: float = DEFAULT_TIMEOUT
    debug_mode: bool = False
    app_name: str = DEFAULT_APP_NAME
    app_version: str = DEFAULT_APP_VERSION

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> CollectorSettings:
        """Load settings from environment variables."""
        env = os.environ if environ is None else environ
        timeout = DEFAULT_TIMEOUT
        raw_timeout = _clean(env.get("COLLECTOR_TIMEOUT"))
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                timeout = DEFAULT_TIMEOUT
        return cls(
            measurement_id=_clean(env.get("COLLECTOR_MEASUREMENT_ID")),
            api_secret=_clean(env.get("COLLECTOR_API_SECRET")),
            collector_host=_clean(env.get("COLLECTOR_HOST")) or DEFAULT_COLLECTOR_HOST,
            timeout=timeout,
            debug_mode=(env.get("DEBUG_MODE", "").strip().lower() in _TRUTHY),
            app_name=_clean(env.get("APP_NAME")) or DEFAULT_APP_NAME,
            app_version=_clean(env.get("APP_VERSION")) or DEFAULT_APP_VERSION,
        )

    @property
    def is_delivery_configured(self) -> bool:
        return bool(self.measurement_id and self.api_secret)

    def endpoint_url(self) -> str:
        host = self.collector_host.rstrip("/")
        if "://" not in host:
            host = f"https://{host}"
        return f"{host}/mp/collect"

    def query_params(self) -> Dict[str, str]:
        return {
            "measurement_id": self.measurement_id or "",
            "api_secret": self.api_secret or "",
        }

    def to_dict(self) -> Dict[str, Any]:
        """Settings without the secret, safe to log."""
        return {
            "measurement_id": self.measurement_id,
            "collector_host": self.collector_host,
            "timeout": self.timeout,
            "debug_mode": self.debug_mode,
            "app_name": self.app_name,
            "app_version": self.app_version,
        }


def configure_logging(debug_mode: bool = False) -> None:
    """Set the package logger level.

    Debug mode always wins. Otherwise TELEMETRY_LOG_LEVEL picks the level,
    defaulting to WARNING so routine telemetry stays quiet.
    """
    if debug_mode:
        level = logging.DEBUG
    else:
        env_level = os.environ.get("TELEMETRY_LOG_LEVEL", "WARNING").upper()
        level = _LOG_LEVELS.get(env_level, logging.WARNING)
    logging.getLogger("desktop_telemetry").setLevel(level)
