"""Stable client identifier persisted under the per-platform app-data directory."""

from __future__ import annotations

import hashlib
import logging
import os
import re
import subprocess
import sys
import threading
import uuid
from pathlib import Path
from typing import Callable, Mapping, Optional

logger = logging.getLogger(__name__)

CLIENT_ID_FILENAME = "client_id"

_LINUX_MACHINE_ID_PATHS = ("/etc/machine-id", "/var/lib/dbus/machine-id")
_IOREG_UUID_RE = re.compile(r'"IOPlatformUUID"\s*=\s*"([^"]+)"')


def app_data_dir(
    app_name: str,
    *,
    platform: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    platform = platform or sys.platform
    env = os.environ if environ is None else environ
    home = home or Path.home()
    if platform.startswith("win"):
        base = env.get("APPDATA")
        root = Path(base) if base else home / "AppData" / "Roaming"
    elif platform == "darwin":
        root = home / "Library" / "Application Support"
    else:
        base = env.get("XDG_CONFIG_HOME")
        root = Path(base) if base else home / ".config"
    return root / app_name


def _read_linux_machine_id() -> Optional[str]:
    for candidate in _LINUX_MACHINE_ID_PATHS:
        try:
            value = Path(candidate).read_text().strip()
        except OSError:
            continue
        if value:
            return value
    return None


def _read_darwin_machine_id() -> Optional[str]:
    output = subprocess.run(
        ["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"],
        capture_output=True,
        text=True,
        timeout=5,
        check=True,
    ).stdout
    match = _IOREG_UUID_RE.search(output)
    return match.group(1) if match else None


def _read_windows_machine_id() -> Optional[str]:
    import winreg

    with winreg.OpenKey(
        winreg.HKEY_LOCAL_MACHINE,
        r"SOFTWARE\Microsoft\Cryptography",
        0,
        winreg.KEY_READ | winreg.KEY_WOW64_64KEY,
    ) as key:
        value, _ = winreg.QueryValueEx(key, "MachineGuid")
    return str(value) if value else None


def read_machine_id() -> Optional[str]:
    """Return a SHA-256 digest of the host machine id, or None when unavailable."""
    if sys.platform.startswith("win"):
        reader = _read_windows_machine_id
    elif sys.platform == "darwin":
        reader = _read_darwin_machine_id
    else:
        reader = _read_linux_machine_id
    try:
        raw = reader()
    except (OSError, ImportError, subprocess.SubprocessError) as exc:
        logger.warning("Machine id lookup failed: %s", exc)
        return None
    if not raw:
        return None
    return hashlib.sha256(raw.strip().encode("utf-8")).hexdigest()


class IdentityStore:
    """Resolves the client id once per process and persists it for later runs."""

    def __init__(
        self,
        *,
        storage_dir: Path,
        machine_id_fn: Optional[Callable[[], Optional[str]]] = read_machine_id,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.storage_dir = Path(storage_dir)
        self.machine_id_fn = machine_id_fn
        self.id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._client_id: Optional[str] = None
        self._lock = threading.Lock()

    @classmethod
    def for_app(cls, app_name: str, **kwargs) -> IdentityStore:
        return cls(storage_dir=app_data_dir(app_name), **kwargs)

    @property
    def id_file(self) -> Path:
        return self.storage_dir / CLIENT_ID_FILENAME

    def resolve_client_id(self) -> str:
        if self._client_id is not None:
            return self._client_id
        with self._lock:
            if self._client_id is None:
                self._client_id = self._load_or_create()
            return self._client_id

    def reset(self) -> None:
        with self._lock:
            self._client_id = None
            try:
                self.id_file.unlink()
            except FileNotFoundError:
                pass

    def _load_or_create(self) -> str:
        try:
            stored = self.id_file.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            stored = ""
        except UnicodeDecodeError:
            logger.warning("Client id file %s is corrupt, replacing it", self.id_file)
            stored = ""
        except OSError as exc:
            logger.warning("Could not read client id file %s: %s", self.id_file, exc)
            return self._ephemeral_id()
        if stored:
            logger.debug("Using stored client id from %s", self.id_file)
            return stored

        client_id = self._derive_id()
        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
            self.id_file.write_text(client_id, encoding="utf-8")
        except OSError as exc:
            logger.warning(
                "Could not persist client id to %s, it will not survive a restart: %s",
                self.id_file,
                exc,
            )
            return client_id
        logger.debug("Created client id file %s", self.id_file)
        return client_id

    def _derive_id(self) -> str:
        if self.machine_id_fn is not None:
            try:
                machine_id = self.machine_id_fn()
            except Exception as exc:
                logger.warning("Machine id lookup failed: %s", exc)
                machine_id = None
            if machine_id:
                return machine_id
        return self.id_factory()

    def _ephemeral_id(self) -> str:
        logger.warning("Using a random client id (will not persist across runs)")
        return self.id_factory()
