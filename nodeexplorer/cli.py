"""Command-line front door for nodeexplorer.

Parses CLI options, activates the explorer against a terminal host, and
dispatches each subcommand into the tree provider, drag/drop controller or
command registry.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path

from . import commands
from .config import ConfigManager, HostConfig
from .console import ConsoleHost
from .dragdrop import URI_LIST_MIME, DataTransfer, DataTransferItem
from .extension import Extension, activate
from .log import configure_logging
from .nodes import CollapsibleState, FileExplorerNode, NodeKind, PeerRootNode, TreeNode
from .types import FileType
from .uri import RemoteUri


def _non_negative_int(value: str) -> int:
    """argparse type for non-negative integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nodeexplorer",
        description="Browse tailnet peers and their file systems over ssh.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to the JSON config file.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Log more (repeat for debug).")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file.")
    parser.add_argument("--style", default="monokai", help="Pygments style name for `cat`.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("peers", help="List peers in the tailnet.")

    tree = sub.add_parser("tree", help="Print a peer's file tree.")
    tree.add_argument("host")
    tree.add_argument("--depth", type=_non_negative_int, default=1, help="Directory levels to expand.")

    ls = sub.add_parser("ls", help="List a remote directory (URI or HOST:PATH).")
    ls.add_argument("target")

    cat = sub.add_parser("cat", help="Print a remote file with syntax highlighting.")
    cat.add_argument("target")

    cp = sub.add_parser("cp", help="Copy local or remote files into a remote directory.")
    cp.add_argument("sources", nargs="+")
    cp.add_argument("destination")

    rm = sub.add_parser("rm", help="Delete a remote file or directory.")
    rm.add_argument("target")

    copy_ip = sub.add_parser("copy-ip", help="Copy a peer's IP address to the clipboard.")
    copy_ip.add_argument("host")
    copy_ip.add_argument("--v6", action="store_true", help="Copy the IPv6 address instead.")

    copy_hostname = sub.add_parser("copy-hostname", help="Copy a peer's host name to the clipboard.")
    copy_hostname.add_argument("host")

    ssh = sub.add_parser("ssh", help="Open an ssh session to a peer.")
    ssh.add_argument("host")

    details = sub.add_parser("details", help="Open a peer's admin console page.")
    details.add_argument("host")

    code = sub.add_parser("code", help="Open a remote editor window on a peer.")
    code.add_argument("host")
    code.add_argument("path", nargs="?", default=None)

    config = sub.add_parser("config", help="Show or set a peer's ssh user and root directory.")
    config.add_argument("host")
    config.add_argument("--user", default=None, help="ssh login user (empty string clears it).")
    config.add_argument("--root-dir", default=None, help="File explorer root (empty string clears it).")
    return parser


class CliSession:
    """Runs one subcommand against an activated ``Extension``."""

    def __init__(self, extension: Extension, host: ConsoleHost) -> None:
        self.extension = extension
        self.host = host
        self._peer_nodes: dict[str, PeerRootNode] | None = None

    async def peer_nodes(self) -> dict[str, PeerRootNode]:
        if self._peer_nodes is None:
            roots = await self.extension.provider.get_children()
            self._peer_nodes = {node.host_name: node for node in roots if node.kind is NodeKind.PEER_ROOT}
        return self._peer_nodes

    async def peer_node(self, host_name: str) -> PeerRootNode:
        node = (await self.peer_nodes()).get(host_name)
        if node is None:
            raise SystemExit(f"Peer not found: {host_name}")
        return node

    async def resolve_uri(self, target: str) -> RemoteUri:
        """Accept ``ts://`` URIs, ``HOST:PATH`` shorthand, or a local path."""
        if "://" in target:
            return RemoteUri.parse(target)
        host_name, sep, path = target.partition(":")
        if sep and host_name:
            peer = (await self.peer_node(host_name)).peer
            return RemoteUri.for_host(peer.tailnet_name, peer.host_name, path or "~")
        return RemoteUri.from_local_path(os.path.abspath(target))

    def print_line(self, text: str) -> None:
        self.host.out.write(text + "\n")

    async def cmd_peers(self, _args: argparse.Namespace) -> int:
        for node in (await self.peer_nodes()).values():
            item = self.extension.provider.get_tree_item(node)
            ips = ", ".join(node.peer.tailscale_ips)
            self.print_line(f"{item.label}\t{item.icon}\t{ips}\t{item.tooltip}")
        return 0

    async def _print_subtree(self, node: TreeNode, depth: int, indent: int) -> None:
        item = self.extension.provider.get_tree_item(node)
        description = f"  ({item.description})" if item.description else ""
        self.print_line(f"{'  ' * indent}{item.label}{description}")
        if depth <= 0 or item.collapsible_state is CollapsibleState.NONE:
            return
        for child in await self.extension.provider.get_children(node):
            await self._print_subtree(child, depth - 1, indent + 1)

    async def cmd_tree(self, args: argparse.Namespace) -> int:
        # The peer and its file-explorer root add two levels above the listing.
        await self._print_subtree(await self.peer_node(args.host), args.depth + 1, 0)
        return 0

    async def cmd_ls(self, args: argparse.Namespace) -> int:
        uri = await self.resolve_uri(args.target)
        node = FileExplorerNode(label=uri.name, uri=uri, file_type=FileType.DIRECTORY)
        for child in await self.extension.provider.get_children(node):
            suffix = "/" if child.is_directory else ""
            self.print_line(f"{child.label}{suffix}")
        return 0

    async def cmd_cat(self, args: argparse.Namespace) -> int:
        uri = await self.resolve_uri(args.target)
        opened = await self.extension.registry.execute(commands.OPEN_FILE_COMMAND, uri)
        return 0 if opened else 1

    async def cmd_cp(self, args: argparse.Namespace) -> int:
        destination = await self.resolve_uri(args.destination)
        target = FileExplorerNode(label=destination.name, uri=destination, file_type=FileType.DIRECTORY)
        sources = [str(await self.resolve_uri(source)) for source in args.sources]
        transfer = DataTransfer({URI_LIST_MIME: DataTransferItem("\r\n".join(sources))})
        outcomes = await self.extension.drag_drop.handle_drop(target, transfer)
        return 0 if outcomes and all(outcome.ok for outcome in outcomes) else 1

    async def cmd_rm(self, args: argparse.Namespace) -> int:
        uri = await self.resolve_uri(args.target)
        node = FileExplorerNode(label=uri.name, uri=uri, file_type=FileType.FILE)
        deleted = await self.extension.registry.execute(commands.DELETE_COMMAND, node)
        return 0 if deleted else 1

    async def cmd_copy_ip(self, args: argparse.Namespace) -> int:
        name = commands.COPY_IPV6_COMMAND if args.v6 else commands.COPY_IPV4_COMMAND
        await self.extension.registry.execute(name, await self.peer_node(args.host))
        return 0

    async def cmd_copy_hostname(self, args: argparse.Namespace) -> int:
        await self.extension.registry.execute(commands.COPY_HOSTNAME_COMMAND, await self.peer_node(args.host))
        return 0

    async def cmd_ssh(self, args: argparse.Namespace) -> int:
        await self.extension.registry.execute(commands.OPEN_TERMINAL_COMMAND, await self.peer_node(args.host))
        return 0

    async def cmd_details(self, args: argparse.Namespace) -> int:
        await self.extension.registry.execute(commands.OPEN_DETAILS_LINK_COMMAND, await self.peer_node(args.host))
        return 0

    async def cmd_code(self, args: argparse.Namespace) -> int:
        peer_node = await self.peer_node(args.host)
        if args.path is None:
            await self.extension.registry.execute(commands.OPEN_REMOTE_CODE_COMMAND, peer_node)
            return 0
        uri = RemoteUri.for_host(peer_node.tailnet_name, peer_node.host_name, args.path)
        node = FileExplorerNode(label=uri.name, uri=uri, file_type=FileType.DIRECTORY)
        await self.extension.registry.execute(commands.OPEN_REMOTE_CODE_AT_LOCATION_COMMAND, node)
        return 0

    async def cmd_config(self, args: argparse.Namespace) -> int:
        manager = self.extension.config_manager
        host_config = manager.host(args.host)
        if args.user is not None or args.root_dir is not None:
            host_config = HostConfig(
                user=args.user if args.user is not None else host_config.user,
                root_dir=args.root_dir if args.root_dir is not None else host_config.root_dir,
            )
            manager.set_host(args.host, host_config)
            host_config = manager.host(args.host)
        self.print_line(f"{args.host}\tuser={host_config.user or ''}\trootDir={host_config.root_dir or ''}")
        return 0

    async def run(self, args: argparse.Namespace) -> int:
        handler = getattr(self, f"cmd_{args.command.replace('-', '_')}")
        return await handler(args)


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments and run one nodeexplorer subcommand."""
    args = build_parser().parse_args(argv)
    level = "WARNING" if args.verbose == 0 else ("INFO" if args.verbose == 1 else "DEBUG")
    configure_logging(level, log_file=args.log_file)

    host = ConsoleHost(style=args.style, no_color=args.no_color or not sys.stdout.isatty())
    extension = activate(host, config_manager=ConfigManager(args.config))
    status = asyncio.run(CliSession(extension, host).run(args))
    if status:
        raise SystemExit(status)
    return status


if __name__ == "__main__":
    main()
