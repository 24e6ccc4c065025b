#!/usr/bin/env python3
"""Persisted configuration: only the listening port survives a restart."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .protocol import DEFAULT_PORT
from .util import LOG

APP_DIR = "relaychat"
SETTINGS_FILE = "settings.json"


def default_settings_path() -> Path:
    """``$XDG_CONFIG_HOME/relaychat/settings.json`` (``~/.config`` if unset)."""
    base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(Path.home(), ".config")
    return Path(base) / APP_DIR / SETTINGS_FILE


def valid_port(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 < value < 65536


@dataclass
class Settings:
    """Loaded once at startup, saved once at shutdown."""

    port: int = DEFAULT_PORT

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Settings":
        path = Path(path) if path else default_settings_path()
        if not path.exists():
            return cls()

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOG.warning("Ignoring unreadable settings %s: %s", path, exc)
            return cls()

        if not isinstance(data, dict):
            LOG.warning("Ignoring malformed settings %s", path)
            return cls()

        port = data.get("server_port", DEFAULT_PORT)
        if not valid_port(port):
            LOG.warning("Invalid server_port %r in %s, using %d", port, path, DEFAULT_PORT)
            port = DEFAULT_PORT
        return cls(port=port)

    def save(self, path: Optional[Path] = None) -> Path:
        path = Path(path) if path else default_settings_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"server_port": self.port}
        path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        return path
