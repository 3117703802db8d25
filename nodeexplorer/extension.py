"""Wires collaborators, the tree provider, drag/drop and commands together."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .commands import CommandBindings
from .config import ConfigManager
from .dragdrop import DragDropController
from .host import CommandRegistry, Host
from .provider import NodeExplorerProvider, StatusService
from .remotefs import FileSystem, RemoteFileSystemProvider
from .ssh import SSH
from .tailscale import TailscaleStatusService


@dataclass
class Extension:
    config_manager: ConfigManager
    ssh: SSH
    fs_provider: FileSystem
    provider: NodeExplorerProvider
    drag_drop: DragDropController
    commands: CommandBindings
    registry: CommandRegistry


def activate(
    host: Host,
    config_manager: ConfigManager | None = None,
    status_service: StatusService | None = None,
    ssh: SSH | None = None,
    fs_provider: FileSystem | None = None,
    update_tailnet_name: Callable[[str], None] | None = None,
) -> Extension:
    """Build the node explorer against ``host``; omitted collaborators get defaults."""
    config_manager = config_manager if config_manager is not None else ConfigManager()
    ssh = ssh if ssh is not None else SSH(config_manager)
    fs_provider = fs_provider if fs_provider is not None else RemoteFileSystemProvider(ssh)
    status_service = status_service if status_service is not None else TailscaleStatusService()

    provider = NodeExplorerProvider(
        status_service,
        config_manager,
        ssh,
        fs_provider,
        host,
        update_tailnet_name=update_tailnet_name,
    )
    drag_drop = DragDropController(provider, fs_provider, host)
    commands = CommandBindings(provider, fs_provider, ssh, host)
    registry = CommandRegistry()
    commands.register(registry)

    return Extension(
        config_manager=config_manager,
        ssh=ssh,
        fs_provider=fs_provider,
        provider=provider,
        drag_drop=drag_drop,
        commands=commands,
        registry=registry,
    )
