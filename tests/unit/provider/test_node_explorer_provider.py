"""Tests for tree expansion: peer list, file-explorer root and directory listing."""

from __future__ import annotations

import asyncio
import unittest

from nodeexplorer.config import HostConfig
from nodeexplorer.events import RefreshAll, RefreshNodes
from nodeexplorer.nodes import CollapsibleState, DetailNode, FileExplorerNode, NodeKind, PeerRootNode
from nodeexplorer.provider import NodeExplorerProvider, PeerState
from nodeexplorer.types import FileType, PeerStatus
from nodeexplorer.uri import RemoteUri
from nodeexplorer_fakes import (
    TAILNET,
    FakeConfigManager,
    FakeExecutor,
    FakeFileSystem,
    FakeHost,
    FakeStatusService,
    make_peer,
)


def _provider(
    status_service: FakeStatusService | None = None,
    hosts: dict[str, HostConfig] | None = None,
    executor: FakeExecutor | None = None,
    fs: FakeFileSystem | None = None,
    host: FakeHost | None = None,
    titles: list[str] | None = None,
) -> NodeExplorerProvider:
    return NodeExplorerProvider(
        status_service if status_service is not None else FakeStatusService(),
        FakeConfigManager(hosts),
        executor if executor is not None else FakeExecutor(),
        fs if fs is not None else FakeFileSystem(),
        host if host is not None else FakeHost(),
        update_tailnet_name=titles.append if titles is not None else None,
    )


class RootChildrenTests(unittest.IsolatedAsyncioTestCase):
    async def test_root_lists_one_node_per_peer_and_updates_title(self) -> None:
        peers = (make_peer("box1"), make_peer("box2", online=False))
        status = FakeStatusService(PeerStatus(tailnet_name=TAILNET, peers=peers))
        titles: list[str] = []
        provider = _provider(status_service=status, titles=titles)

        children = await provider.get_children()

        self.assertEqual([node.host_name for node in children], ["box1", "box2"])
        self.assertTrue(all(node.kind is NodeKind.PEER_ROOT for node in children))
        self.assertEqual(titles, [TAILNET])
        self.assertEqual(status.calls, [True])
        self.assertEqual(provider.peers.peer_for("box2"), peers[1])

    async def test_status_errors_yield_empty_tree_and_notification(self) -> None:
        status = FakeStatusService(
            PeerStatus(tailnet_name=TAILNET, peers=(make_peer("box1"),), errors=("backend stopped",))
        )
        host = FakeHost()
        titles: list[str] = []
        provider = _provider(status_service=status, host=host, titles=titles)

        with self.assertLogs("nodeexplorer.provider", level="ERROR"):
            children = await provider.get_children()

        self.assertEqual(children, [])
        self.assertEqual(len(host.errors), 1)
        self.assertEqual(titles, [])
        self.assertIsNone(provider.peers.peer_for("box1"))

    async def test_status_exception_yields_empty_tree_and_notification(self) -> None:
        host = FakeHost()
        provider = _provider(status_service=FakeStatusService(exc=RuntimeError("daemon gone")), host=host)

        with self.assertLogs("nodeexplorer.provider", level="ERROR"):
            children = await provider.get_children()

        self.assertEqual(children, [])
        self.assertEqual(host.errors, ["unable to fetch status daemon gone"])

    async def test_refresh_replaces_peer_mapping_wholesale(self) -> None:
        status = FakeStatusService(PeerStatus(tailnet_name=TAILNET, peers=(make_peer("old"),)))
        provider = _provider(status_service=status)
        await provider.get_children()

        status.status = PeerStatus(tailnet_name=TAILNET, peers=(make_peer("new"),))
        await provider.get_children()

        self.assertIsNone(provider.peers.peer_for("old"))
        self.assertIsNotNone(provider.peers.peer_for("new"))
        self.assertEqual(provider.peers.host_names(), ["new"])


class PeerStateTests(unittest.TestCase):
    def test_stale_refresh_does_not_overwrite_newer_one(self) -> None:
        state = PeerState()
        slow = state.begin_refresh()
        fast = state.begin_refresh()

        self.assertTrue(state.commit(fast, (make_peer("fresh"),)))
        self.assertFalse(state.commit(slow, (make_peer("stale"),)))

        self.assertEqual(state.host_names(), ["fresh"])
        self.assertEqual(state.generation, fast)


class OverlappingRefreshTests(unittest.IsolatedAsyncioTestCase):
    async def test_slow_refresh_finishing_last_does_not_win(self) -> None:
        release_slow = asyncio.Event()

        class SequencedStatus:
            def __init__(self) -> None:
                self.calls = 0

            async def get_status(self, force_refresh: bool = False) -> PeerStatus:
                self.calls += 1
                if self.calls == 1:
                    await release_slow.wait()
                    return PeerStatus(tailnet_name="stale.ts.net", peers=(make_peer("stale"),))
                return PeerStatus(tailnet_name=TAILNET, peers=(make_peer("fresh"),))

        titles: list[str] = []
        provider = _provider(status_service=SequencedStatus(), titles=titles)  # type: ignore[arg-type]

        slow = asyncio.create_task(provider.get_children())
        await asyncio.sleep(0)
        fresh_children = await provider.get_children()
        release_slow.set()
        stale_children = await slow

        self.assertEqual([node.host_name for node in fresh_children], ["fresh"])
        self.assertEqual([node.host_name for node in stale_children], ["stale"])
        self.assertEqual(provider.peers.host_names(), ["fresh"])
        self.assertEqual(titles, [TAILNET])


class PeerExpansionTests(unittest.IsolatedAsyncioTestCase):
    async def test_default_root_mounts_home_directory(self) -> None:
        provider = _provider(executor=FakeExecutor(homes={"box1": "/home/alice"}))

        children = await provider.get_children(PeerRootNode(make_peer("box1")))

        self.assertEqual(len(children), 1)
        root = children[0]
        self.assertIsInstance(root, FileExplorerNode)
        self.assertEqual(root.context, "root")
        self.assertEqual(root.label, "File explorer")
        self.assertEqual(root.uri, RemoteUri("ts", TAILNET, "/box1/home/alice"))
        self.assertEqual(root.description, "~")
        self.assertEqual(root.collapsible_state, CollapsibleState.COLLAPSED)

    async def test_configured_root_is_abbreviated(self) -> None:
        provider = _provider(
            hosts={"box1": HostConfig(root_dir="/home/alice/projects")},
            executor=FakeExecutor(homes={"box1": "/home/alice"}),
        )

        (root,) = await provider.get_children(PeerRootNode(make_peer("box1")))

        self.assertEqual(root.uri.path, "/box1/home/alice/projects")
        self.assertEqual(root.description, "~/projects")

    async def test_unreachable_peer_falls_back_to_tilde(self) -> None:
        provider = _provider(executor=FakeExecutor(failing={"box1"}))

        with self.assertLogs("nodeexplorer.paths", level="ERROR"):
            (root,) = await provider.get_children(PeerRootNode(make_peer("box1")))

        self.assertEqual(root.uri.path, "/box1/~")
        self.assertEqual(root.description, "~")


class DirectoryExpansionTests(unittest.IsolatedAsyncioTestCase):
    def _directory(self, path: str) -> FileExplorerNode:
        return FileExplorerNode("dir", RemoteUri("ts", TAILNET, path), FileType.DIRECTORY, "root")

    async def test_directory_children_extend_parent_path(self) -> None:
        fs = FakeFileSystem()
        fs.directories["/box1/home/alice"] = [("src", FileType.DIRECTORY), ("notes.txt", FileType.FILE)]
        provider = _provider(fs=fs)

        children = await provider.get_children(self._directory("/box1/home/alice"))

        self.assertEqual([child.label for child in children], ["src", "notes.txt"])
        self.assertEqual(
            [child.uri.path for child in children],
            ["/box1/home/alice/src", "/box1/home/alice/notes.txt"],
        )
        self.assertTrue(all(child.context == "child" for child in children))
        self.assertEqual(children[0].collapsible_state, CollapsibleState.COLLAPSED)
        self.assertEqual(children[1].collapsible_state, CollapsibleState.NONE)
        self.assertEqual(children[0].uri.authority, TAILNET)

    async def test_symlinked_directory_expands(self) -> None:
        fs = FakeFileSystem()
        fs.directories["/box1/home/alice"] = [("projects", FileType.SYMLINK | FileType.DIRECTORY)]
        fs.directories["/box1/home/alice/projects"] = [("app", FileType.DIRECTORY)]
        provider = _provider(fs=fs)

        (link,) = await provider.get_children(self._directory("/box1/home/alice"))
        children = await provider.get_children(link)

        self.assertEqual(link.collapsible_state, CollapsibleState.COLLAPSED)
        self.assertEqual([child.uri.path for child in children], ["/box1/home/alice/projects/app"])

    async def test_directory_listing_is_repeatable(self) -> None:
        fs = FakeFileSystem()
        fs.directories["/box1/srv"] = [("a", FileType.FILE), ("b", FileType.DIRECTORY)]
        provider = _provider(fs=fs)
        node = self._directory("/box1/srv")

        first = await provider.get_children(node)
        second = await provider.get_children(node)

        self.assertEqual({child.uri for child in first}, {child.uri for child in second})

    async def test_listing_failure_is_reported(self) -> None:
        host = FakeHost()
        provider = _provider(host=host)

        with self.assertLogs("nodeexplorer.provider", level="ERROR"):
            children = await provider.get_children(self._directory("/box1/missing"))

        self.assertEqual(children, [])
        self.assertEqual(len(host.errors), 1)

    async def test_files_and_details_have_no_children(self) -> None:
        fs = FakeFileSystem()
        provider = _provider(fs=fs)
        file_node = FileExplorerNode("a.txt", RemoteUri("ts", TAILNET, "/box1/a.txt"), FileType.FILE)

        self.assertEqual(await provider.get_children(file_node), [])
        self.assertEqual(await provider.get_children(DetailNode("OS", "linux")), [])


class ChangeSignalTests(unittest.TestCase):
    def test_refresh_all_and_refresh_nodes_are_distinct_signals(self) -> None:
        provider = _provider()
        seen: list[object] = []
        provider.on_did_change_tree_data.subscribe(seen.append)
        node = DetailNode("x")

        provider.refresh_all()
        provider.refresh_nodes(node)

        self.assertEqual(seen, [RefreshAll(), RefreshNodes((node,))])


if __name__ == "__main__":
    unittest.main()
