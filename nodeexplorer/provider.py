"""Tree data provider for the node explorer view.

Root level lists tailnet peers; expanding a peer mounts its configured root
directory; expanding a directory lists it through the remote filesystem.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from .config import ConfigManager
from .events import EventEmitter, RefreshAll, RefreshNodes, TreeChange
from .host import Host
from .nodes import FileExplorerNode, NodeKind, PeerRootNode, TreeItem, TreeNode
from .paths import CommandExecutor, PathResolver
from .remotefs import FileSystem
from .types import FileType, Peer, PeerStatus
from .uri import RemoteUri

logger = logging.getLogger(__name__)

FILE_EXPLORER_LABEL = "File explorer"


class StatusService(Protocol):
    async def get_status(self, force_refresh: bool = False) -> PeerStatus: ...


class PeerState:
    """Host-name to peer mapping from the most recent root refresh.

    Each refresh takes a generation number when it starts. Only the newest
    refresh may commit, so a slow refresh that finishes after a newer one
    never overwrites it.
    """

    def __init__(self) -> None:
        self._peers: dict[str, Peer] = {}
        self._started = 0
        self._committed = 0

    def begin_refresh(self) -> int:
        self._started += 1
        return self._started

    def commit(self, generation: int, peers: tuple[Peer, ...]) -> bool:
        """Replace the mapping wholesale if ``generation`` is still the newest."""
        if generation != self._started:
            logger.debug("discarding stale peer refresh %d (latest %d)", generation, self._started)
            return False
        self._peers = {peer.host_name: peer for peer in peers}
        self._committed = generation
        return True

    @property
    def generation(self) -> int:
        return self._committed

    def peer_for(self, host_name: str) -> Peer | None:
        return self._peers.get(host_name)

    def host_names(self) -> list[str]:
        return list(self._peers)


class NodeExplorerProvider:
    def __init__(
        self,
        status_service: StatusService,
        config_manager: ConfigManager,
        executor: CommandExecutor,
        fs_provider: FileSystem,
        host: Host,
        update_tailnet_name: Callable[[str], None] | None = None,
    ) -> None:
        self.status_service = status_service
        self.config_manager = config_manager
        self.fs_provider = fs_provider
        self.host = host
        self.path_resolver = PathResolver(executor)
        self.peers = PeerState()
        self.on_did_change_tree_data: EventEmitter[TreeChange] = EventEmitter()
        self._update_tailnet_name = update_tailnet_name

    def refresh_all(self) -> None:
        self.on_did_change_tree_data.fire(RefreshAll())

    def refresh_nodes(self, *nodes: TreeNode) -> None:
        self.on_did_change_tree_data.fire(RefreshNodes(tuple(nodes)))

    def get_tree_item(self, node: TreeNode) -> TreeItem:
        return node.to_tree_item()

    async def get_children(self, node: TreeNode | None = None) -> list[TreeNode]:
        if node is None:
            return list(await self._peer_nodes())
        if node.kind is NodeKind.PEER_ROOT:
            return [await self._file_explorer_root(node)]
        if node.kind is NodeKind.FILE_EXPLORER:
            if not node.is_directory:
                return []
            return list(await self._directory_children(node))
        if node.kind is NodeKind.DETAIL:
            return []
        raise TypeError(f"unknown tree node kind: {node.kind!r}")

    async def _peer_nodes(self) -> list[PeerRootNode]:
        generation = self.peers.begin_refresh()
        try:
            status = await self.status_service.get_status(force_refresh=True)
        except Exception as exc:
            logger.error("error fetching status: %s", exc)
            self.host.show_error(f"unable to fetch status {exc}")
            self.peers.commit(generation, ())
            return []

        if status.errors:
            logger.error("status reported errors: %s", "; ".join(status.errors))
            self.host.show_error(f"unable to fetch status: {'; '.join(status.errors)}")
            self.peers.commit(generation, ())
            return []

        if self.peers.commit(generation, status.peers) and self._update_tailnet_name is not None:
            self._update_tailnet_name(status.tailnet_name)
        return [PeerRootNode(peer) for peer in status.peers]

    async def _file_explorer_root(self, node: PeerRootNode) -> FileExplorerNode:
        # Re-read the peer from the latest refresh; the node may predate it.
        peer = self.peers.peer_for(node.host_name) or node.peer
        declared_root = self.config_manager.host(peer.host_name).root_dir
        resolved = await self.path_resolver.resolve_root(peer.host_name, declared_root)
        uri = RemoteUri.for_host(peer.tailnet_name, peer.host_name, *resolved.absolute_path.split("/"))
        return FileExplorerNode(
            label=FILE_EXPLORER_LABEL,
            uri=uri,
            file_type=FileType.DIRECTORY,
            context="root",
            description=resolved.display_path,
        )

    async def _directory_children(self, node: FileExplorerNode) -> list[FileExplorerNode]:
        try:
            entries = await self.fs_provider.read_directory(node.uri)
        except Exception as exc:
            logger.error("error listing %s: %s", node.uri, exc)
            self.host.show_error(f"unable to list {node.uri}: {exc}")
            return []
        return [
            FileExplorerNode(
                label=name,
                uri=node.uri.join_path(name),
                file_type=file_type,
                context="child",
            )
            for name, file_type in entries
        ]
