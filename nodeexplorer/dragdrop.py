"""Drag-and-drop onto file-explorer nodes.

Dropped ``text/uri-list`` payloads are copied into the target directory with
scp. Each URI is its own task: it reports its own progress, its own error and
triggers its own refresh of the target subtree.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from dataclasses import dataclass

from .host import Host, Progress
from .nodes import FileExplorerNode, NodeKind, TreeNode, parent_directory_node
from .provider import NodeExplorerProvider
from .remotefs import FileSystem
from .uri import RemoteUri

logger = logging.getLogger(__name__)

URI_LIST_MIME = "text/uri-list"
TREE_MIME = "application/vnd.code.tree.nodeexplorer"
PROGRESS_TITLE = "Tailscale"


@dataclass(frozen=True)
class DataTransferItem:
    value: object


class DataTransfer:
    """MIME type to payload mapping exchanged with the host during drag and drop."""

    def __init__(self, items: dict[str, DataTransferItem] | None = None) -> None:
        self._items: dict[str, DataTransferItem] = dict(items or {})

    def get(self, mime_type: str) -> DataTransferItem | None:
        return self._items.get(mime_type.lower())

    def set(self, mime_type: str, item: DataTransferItem) -> None:
        self._items[mime_type.lower()] = item

    def __iter__(self) -> Iterator[tuple[str, DataTransferItem]]:
        return iter(list(self._items.items()))

    def __len__(self) -> int:
        return len(self._items)


def parse_uri_list(value: object) -> list[str]:
    """Split a ``text/uri-list`` payload (RFC 2483) into URI strings.

    Lists and tuples are flattened so a host may hand over one URI per item.
    """
    if isinstance(value, (list, tuple)):
        out: list[str] = []
        for element in value:
            out.extend(parse_uri_list(element))
        return out
    if isinstance(value, RemoteUri):
        return [str(value)]
    if not isinstance(value, str):
        return []
    uris: list[str] = []
    for line in value.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        uris.append(line)
    return uris


@dataclass(frozen=True)
class DropOutcome:
    source: str
    destination: RemoteUri
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DragDropController:
    drop_mime_types: tuple[str, ...] = (URI_LIST_MIME,)
    # Dragging out of the tree is not offered until file entries can be dragged.
    drag_mime_types: tuple[str, ...] = ()

    def __init__(self, provider: NodeExplorerProvider, fs_provider: FileSystem, host: Host) -> None:
        self.provider = provider
        self.fs_provider = fs_provider
        self.host = host

    async def handle_drop(self, target: TreeNode | None, transfer: DataTransfer) -> list[DropOutcome]:
        """Copy every dropped URI into ``target`` and return one outcome per URI."""
        if target is None or target.kind is not NodeKind.FILE_EXPLORER:
            self.host.show_error("Files can only be dropped onto a folder in the file explorer.")
            return []

        refresh_node = target if target.is_directory else parent_directory_node(target)
        item = transfer.get(URI_LIST_MIME)
        sources = parse_uri_list(item.value) if item is not None else []
        if not sources:
            return []

        increment = 100.0 / len(sources)

        async def copy_all(progress: Progress) -> list[DropOutcome]:
            tasks = [self._copy_one(source, refresh_node, progress, increment) for source in sources]
            return list(await asyncio.gather(*tasks))

        return await self.host.with_progress(PROGRESS_TITLE, copy_all, cancellable=False)

    async def _copy_one(
        self,
        source: str,
        target: FileExplorerNode,
        progress: Progress,
        increment: float,
    ) -> DropOutcome:
        error: str | None = None
        try:
            await self.fs_provider.copy(RemoteUri.parse(source), target.uri)
        except Exception as exc:
            error = str(exc)
            logger.error("error copying %s to %s: %s", source, target.uri, exc)
            self.host.show_error(f"unable to copy {source} to {target.uri}")

        progress.report(increment=increment)
        self.provider.refresh_nodes(target)
        return DropOutcome(source=source, destination=target.uri, error=error)

    async def handle_drag(self, sources: list[TreeNode], transfer: DataTransfer) -> None:
        transfer.set(TREE_MIME, DataTransferItem(tuple(sources)))
