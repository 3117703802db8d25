"""Tree node datatypes for the node explorer.

Three node kinds share the ``kind`` tag: peer roots, file-explorer entries
and static detail rows. Nodes are rebuilt on every expansion and carry no
state beyond what they display.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from .types import FileType, Peer
from .uri import RemoteUri

PEER_CONTEXT_VALUE = "tailscale-peer-item"
FILE_EXPLORER_CONTEXT_PREFIX = "file-explorer-item"
OPEN_FILE_COMMAND = "nodeexplorer.open"


class NodeKind(enum.Enum):
    PEER_ROOT = "peer-root"
    FILE_EXPLORER = "file-explorer"
    DETAIL = "detail"


class CollapsibleState(enum.Enum):
    NONE = "none"
    COLLAPSED = "collapsed"
    EXPANDED = "expanded"


@dataclass(frozen=True)
class ItemCommand:
    """Command the host runs when a tree item is activated."""

    command: str
    title: str
    arguments: tuple[object, ...] = ()


@dataclass(frozen=True)
class TreeItem:
    """Host-facing rendering of one node."""

    label: str
    collapsible_state: CollapsibleState = CollapsibleState.NONE
    description: str = ""
    tooltip: str | None = None
    context_value: str | None = None
    icon: str | None = None
    resource_uri: RemoteUri | None = None
    command: ItemCommand | None = None


@dataclass(frozen=True)
class PeerRootNode:
    peer: Peer
    kind: NodeKind = field(default=NodeKind.PEER_ROOT, init=False)

    @property
    def host_name(self) -> str:
        return self.peer.host_name

    @property
    def tailnet_name(self) -> str:
        return self.peer.tailnet_name

    @property
    def label(self) -> str:
        return self.peer.host_name

    @property
    def tooltip(self) -> str:
        if self.peer.online:
            return self.peer.display_dns_name
        return f"{self.peer.display_dns_name} is offline"

    @property
    def collapsible_state(self) -> CollapsibleState:
        # Offline peers cannot be browsed.
        return CollapsibleState.COLLAPSED if self.peer.online else CollapsibleState.NONE

    def to_tree_item(self) -> TreeItem:
        return TreeItem(
            label=self.label,
            collapsible_state=self.collapsible_state,
            tooltip=self.tooltip,
            context_value=PEER_CONTEXT_VALUE,
            icon="online" if self.peer.online else "offline",
        )


def _default_collapsible_state(file_type: FileType) -> CollapsibleState:
    if FileType.DIRECTORY in file_type:
        return CollapsibleState.COLLAPSED
    return CollapsibleState.NONE


@dataclass(frozen=True)
class FileExplorerNode:
    """One remote filesystem entry; ``context`` is ``root``, ``child`` or ``None``."""

    label: str
    uri: RemoteUri
    file_type: FileType
    context: str | None = None
    collapsible_state: CollapsibleState | None = None
    description: str = ""
    kind: NodeKind = field(default=NodeKind.FILE_EXPLORER, init=False)

    def __post_init__(self) -> None:
        if self.collapsible_state is None:
            object.__setattr__(self, "collapsible_state", _default_collapsible_state(self.file_type))

    @property
    def is_directory(self) -> bool:
        return FileType.DIRECTORY in self.file_type

    @property
    def context_value(self) -> str:
        if self.context:
            return f"{FILE_EXPLORER_CONTEXT_PREFIX}-{self.context}"
        return FILE_EXPLORER_CONTEXT_PREFIX

    def to_tree_item(self) -> TreeItem:
        command = None
        if FileType.FILE in self.file_type:
            command = ItemCommand(command=OPEN_FILE_COMMAND, title="Open File", arguments=(self.uri,))
        return TreeItem(
            label=self.label,
            collapsible_state=self.collapsible_state or CollapsibleState.NONE,
            description=self.description,
            context_value=self.context_value,
            resource_uri=self.uri,
            command=command,
        )


@dataclass(frozen=True)
class DetailNode:
    label: str
    description: str = ""
    context: str | None = None
    kind: NodeKind = field(default=NodeKind.DETAIL, init=False)

    def to_tree_item(self) -> TreeItem:
        return TreeItem(label=self.label, description=self.description, context_value=self.context)


TreeNode = PeerRootNode | FileExplorerNode | DetailNode


def parent_directory_node(node: FileExplorerNode) -> FileExplorerNode:
    """Synthesize the directory node that contains ``node``."""
    parent_uri = node.uri.parent()
    return FileExplorerNode(label=parent_uri.name, uri=parent_uri, file_type=FileType.DIRECTORY)
