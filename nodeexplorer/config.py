"""Persistent JSON config for per-host settings.

Stores the ssh user and file-explorer root directory for each peer.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "nodeexplorer"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME


@dataclass(frozen=True)
class HostConfig:
    """Settings for one peer, keyed by host name in the config file."""

    user: str | None = None
    root_dir: str | None = None


def _coerce_optional_str(value: object) -> str | None:
    """Accept only non-empty strings; everything else becomes ``None``."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


class ConfigManager:
    """Read/write access to the on-disk JSON config object."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path if path is not None else DEFAULT_CONFIG_PATH

    def load(self) -> dict[str, object]:
        """Load the persisted JSON config object.

        Returns an empty dict when the file is missing, unreadable, malformed, or
        does not decode to a top-level JSON object.
        """
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except Exception:
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, data: dict[str, object]) -> None:
        """Persist config data as pretty-printed JSON.

        Any filesystem/serialization error is ignored to keep runtime behavior
        non-fatal when config cannot be written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        except Exception:
            pass

    def hosts(self) -> dict[str, HostConfig]:
        """Return every valid ``hosts`` entry; malformed entries are dropped."""
        raw_hosts = self.load().get("hosts")
        if not isinstance(raw_hosts, dict):
            return {}

        hosts: dict[str, HostConfig] = {}
        for host_name, raw_host in raw_hosts.items():
            if not isinstance(host_name, str) or not isinstance(raw_host, dict):
                continue
            hosts[host_name] = HostConfig(
                user=_coerce_optional_str(raw_host.get("user")),
                root_dir=_coerce_optional_str(raw_host.get("rootDir")),
            )
        return hosts

    def host(self, host_name: str) -> HostConfig:
        return self.hosts().get(host_name, HostConfig())

    def set_host(self, host_name: str, host_config: HostConfig) -> None:
        """Store ``host_config`` for ``host_name``, keeping unrelated keys intact."""
        data = self.load()
        raw_hosts = data.get("hosts")
        hosts = dict(raw_hosts) if isinstance(raw_hosts, dict) else {}
        entry: dict[str, str] = {}
        if host_config.user:
            entry["user"] = host_config.user
        if host_config.root_dir:
            entry["rootDir"] = host_config.root_dir
        hosts[host_name] = entry
        data["hosts"] = hosts
        self.save(data)
