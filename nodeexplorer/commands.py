"""User-invocable node explorer commands.

Every command takes the tree node it was invoked on (or nothing) and turns
its own failures into host notifications.
"""

from __future__ import annotations

import logging
import shlex

from .host import CommandRegistry, Host
from .nodes import OPEN_FILE_COMMAND, FileExplorerNode, PeerRootNode, parent_directory_node
from .paths import HOME
from .provider import NodeExplorerProvider
from .remotefs import FileSystem
from .ssh import SSH
from .uri import RemoteUri, parse_ts_uri

logger = logging.getLogger(__name__)

DELETE_COMMAND = "nodeexplorer.node.fs.delete"
COPY_IPV4_COMMAND = "nodeexplorer.node.copyIPv4"
COPY_IPV6_COMMAND = "nodeexplorer.node.copyIPv6"
COPY_HOSTNAME_COMMAND = "nodeexplorer.node.copyHostname"
OPEN_TERMINAL_COMMAND = "nodeexplorer.node.openTerminal"
OPEN_REMOTE_CODE_COMMAND = "nodeexplorer.node.openRemoteCode"
OPEN_REMOTE_CODE_AT_LOCATION_COMMAND = "nodeexplorer.node.openRemoteCodeAtLocation"
OPEN_DETAILS_LINK_COMMAND = "nodeexplorer.node.openDetailsLink"
REFRESH_COMMAND = "nodeexplorer.nodeExplorer.refresh"

ADMIN_MACHINES_URL = "https://login.tailscale.com/admin/machines/"
REMOTE_AUTHORITY_PREFIX = "ssh-remote+"


def remote_authority(host_name: str) -> str:
    return f"{REMOTE_AUTHORITY_PREFIX}{host_name}"


class CommandBindings:
    def __init__(
        self,
        provider: NodeExplorerProvider,
        fs_provider: FileSystem,
        ssh: SSH,
        host: Host,
    ) -> None:
        self.provider = provider
        self.fs_provider = fs_provider
        self.ssh = ssh
        self.host = host

    def register(self, registry: CommandRegistry) -> None:
        registry.register(DELETE_COMMAND, self.delete)
        registry.register(COPY_IPV4_COMMAND, self.copy_ipv4)
        registry.register(COPY_IPV6_COMMAND, self.copy_ipv6)
        registry.register(COPY_HOSTNAME_COMMAND, self.copy_hostname)
        registry.register(OPEN_TERMINAL_COMMAND, self.open_terminal)
        registry.register(OPEN_REMOTE_CODE_COMMAND, self.open_remote_code)
        registry.register(OPEN_REMOTE_CODE_AT_LOCATION_COMMAND, self.open_remote_code_at_location)
        registry.register(OPEN_DETAILS_LINK_COMMAND, self.open_details_link)
        registry.register(REFRESH_COMMAND, self.refresh)
        registry.register(OPEN_FILE_COMMAND, self.open_file)

    async def delete(self, node: FileExplorerNode) -> bool:
        """Delete ``node`` remotely and refresh its parent directory on success."""
        try:
            await self.fs_provider.delete(node.uri)
        except Exception as exc:
            logger.error("error deleting %s: %s", node.uri, exc)
            self.host.show_error(f"Could not delete {node.label}: {exc}")
            return False

        self.host.show_info(f"{node.label} deleted successfully.")
        self.provider.refresh_nodes(parent_directory_node(node))
        return True

    async def _copy_to_clipboard(self, value: str) -> None:
        try:
            await self.host.write_clipboard(value)
        except Exception as exc:
            logger.error("error writing clipboard: %s", exc)
            self.host.show_error(f"Could not copy {value} to clipboard: {exc}")
            return
        self.host.show_info(f"Copied {value} to clipboard.")

    async def copy_ipv4(self, node: PeerRootNode) -> None:
        ip = node.peer.ipv4
        if not ip:
            self.host.show_error(f"No IPv4 address found for {node.host_name}.")
            return
        await self._copy_to_clipboard(ip)

    async def copy_ipv6(self, node: PeerRootNode) -> None:
        ip = node.peer.ipv6
        if not ip:
            self.host.show_error(f"No IPv6 address found for {node.host_name}.")
            return
        await self._copy_to_clipboard(ip)

    async def copy_hostname(self, node: PeerRootNode) -> None:
        await self._copy_to_clipboard(node.host_name)

    def open_terminal(self, node: PeerRootNode) -> None:
        try:
            target = self.ssh.ssh_hostname_with_user(node.host_name)
            self.host.open_terminal(node.host_name, shlex.join(["ssh", "--", target]))
        except Exception as exc:
            logger.error("error opening terminal for %s: %s", node.host_name, exc)
            self.host.show_error(f"Could not open a terminal for {node.host_name}: {exc}")

    def open_remote_code(self, node: PeerRootNode) -> None:
        self.open_remote_code_window(node.host_name, reuse_window=False)

    async def open_remote_code_at_location(self, node: FileExplorerNode) -> None:
        hostname, resource_path = parse_ts_uri(node.uri)
        if not hostname or not resource_path:
            return
        if resource_path == HOME or resource_path.startswith(HOME + "/"):
            try:
                home_dir = await self.provider.path_resolver.home_directory(hostname)
            except Exception as exc:
                logger.error("error expanding %s on %s: %s", resource_path, hostname, exc)
                self.host.show_error(f"Could not resolve {resource_path} on {hostname}: {exc}")
                return
            if not home_dir.startswith("/"):
                self.host.show_error(f"Could not resolve {resource_path} on {hostname}.")
                return
            resource_path = home_dir.rstrip("/") + resource_path[len(HOME):]
        self.open_remote_code_location_window(hostname, resource_path, reuse_window=False)

    def open_remote_code_window(self, host_name: str, reuse_window: bool) -> None:
        try:
            self.host.open_remote_window(remote_authority(host_name), reuse_window)
        except Exception as exc:
            logger.error("error opening remote window for %s: %s", host_name, exc)
            self.host.show_error(f"Could not open a remote window for {host_name}: {exc}")

    def open_remote_code_location_window(self, host_name: str, path: str, reuse_window: bool) -> None:
        folder = RemoteUri("vscode-remote", remote_authority(host_name), "/" + path.lstrip("/"))
        try:
            self.host.open_remote_folder(str(folder), force_new_window=not reuse_window)
        except Exception as exc:
            logger.error("error opening %s: %s", folder, exc)
            self.host.show_error(f"Could not open {path} on {host_name}: {exc}")

    def open_details_link(self, node: PeerRootNode) -> None:
        ip = node.peer.ipv4
        if not ip:
            self.host.show_error(f"No IPv4 address found for {node.host_name}.")
            return
        url = f"{ADMIN_MACHINES_URL}{ip}"
        if not self.host.open_external(url):
            self.host.show_error(f"Could not open {url}")

    def refresh(self) -> None:
        self.provider.refresh_all()

    async def open_file(self, uri: RemoteUri) -> bool:
        try:
            text = await self.fs_provider.read_file(uri)
        except Exception as exc:
            logger.error("error reading %s: %s", uri, exc)
            self.host.show_error(f"Could not open {uri.name}: {exc}")
            return False
        self.host.show_document(uri.path, text)
        return True
