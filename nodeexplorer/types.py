"""Peer and status records decoded from ``tailscale status --json``."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Peer:
    """One tailnet peer as reported by the local tailscale daemon."""

    id: str
    host_name: str
    tailscale_ips: tuple[str, ...] = ()
    tailnet_name: str = ""
    dns_name: str = ""
    online: bool = False
    os: str = ""

    @property
    def ipv4(self) -> str | None:
        return self.tailscale_ips[0] if len(self.tailscale_ips) > 0 else None

    @property
    def ipv6(self) -> str | None:
        return self.tailscale_ips[1] if len(self.tailscale_ips) > 1 else None

    @property
    def display_dns_name(self) -> str:
        """DNS name without the single trailing root dot."""
        if self.dns_name.endswith("."):
            return self.dns_name[:-1]
        return self.dns_name


@dataclass(frozen=True)
class PeerStatus:
    tailnet_name: str
    peers: tuple[Peer, ...] = ()
    errors: tuple[str, ...] = field(default_factory=tuple)


def _str(value: object) -> str:
    return value if isinstance(value, str) else ""


def _tailnet_name(payload: dict[str, object]) -> str:
    current = payload.get("CurrentTailnet")
    if isinstance(current, dict) and isinstance(current.get("Name"), str):
        return current["Name"]
    return _str(payload.get("MagicDNSSuffix"))


def peer_from_json(raw: dict[str, object], tailnet_name: str) -> Peer:
    """Build a ``Peer`` from one value of the status ``Peer`` object."""
    raw_ips = raw.get("TailscaleIPs")
    ips = tuple(ip for ip in raw_ips if isinstance(ip, str)) if isinstance(raw_ips, list) else ()
    return Peer(
        id=_str(raw.get("ID")),
        host_name=_str(raw.get("HostName")),
        tailscale_ips=ips,
        tailnet_name=tailnet_name,
        dns_name=_str(raw.get("DNSName")),
        online=raw.get("Online") is True,
        os=_str(raw.get("OS")),
    )


def status_from_json(payload: dict[str, object]) -> PeerStatus:
    """Decode a full status document.

    A backend that is not ``Running`` is reported through ``errors`` so callers
    never render a half-valid peer list.
    """
    tailnet_name = _tailnet_name(payload)
    errors: list[str] = []
    backend_state = payload.get("BackendState")
    if isinstance(backend_state, str) and backend_state != "Running":
        errors.append(f"tailscale is not running (state: {backend_state})")

    peers: list[Peer] = []
    raw_peers = payload.get("Peer")
    if isinstance(raw_peers, dict):
        for raw_peer in raw_peers.values():
            if not isinstance(raw_peer, dict):
                continue
            peer = peer_from_json(raw_peer, tailnet_name)
            if peer.host_name:
                peers.append(peer)
    peers.sort(key=lambda peer: peer.host_name.lower())

    return PeerStatus(tailnet_name=tailnet_name, peers=tuple(peers), errors=tuple(errors))


class FileType(enum.IntFlag):
    """Kind of a remote directory entry.

    A symbolic link carries ``SYMLINK`` combined with the kind of its target,
    so a link to a directory is both ``SYMLINK`` and ``DIRECTORY``.
    """

    UNKNOWN = 0
    FILE = 1
    DIRECTORY = 2
    SYMLINK = 64
