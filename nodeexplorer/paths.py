"""Root-directory resolution for a peer's file explorer.

Turns the configured root (absolute, ``~``-relative or empty) into the
absolute path to mount plus the short form shown next to the tree node.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

HOME = "~"


class CommandExecutor(Protocol):
    async def execute(self, host_name: str, command: str, args: list[str] | None = None) -> str: ...


@dataclass(frozen=True)
class ResolvedRoot:
    absolute_path: str
    display_path: str


def trim_path_prefix(path: str, prefix: str) -> str:
    """Replace a leading ``prefix`` of ``path`` with ``~``; otherwise return ``path``."""
    if path.startswith(prefix):
        return HOME + path[len(prefix):]
    return path


class PathResolver:
    def __init__(self, executor: CommandExecutor) -> None:
        self.executor = executor

    async def home_directory(self, host_name: str) -> str:
        output = await self.executor.execute(host_name, "echo", [HOME])
        return output.strip()

    async def resolve_root(self, host_name: str, declared_root_dir: str | None) -> ResolvedRoot:
        """Resolve ``declared_root_dir`` on ``host_name``.

        The home directory is fetched on every call. Any failure falls back to
        ``~`` for both forms so the tree keeps rendering.
        """
        try:
            home_dir = await self.home_directory(host_name)
        except Exception as exc:
            logger.error("error expanding root directory for %s: %s", host_name, exc)
            return ResolvedRoot(absolute_path=HOME, display_path=HOME)
        if not home_dir:
            logger.error("empty home directory reported by %s", host_name)
            return ResolvedRoot(absolute_path=HOME, display_path=HOME)

        if not declared_root_dir or declared_root_dir == HOME:
            return ResolvedRoot(absolute_path=home_dir, display_path=HOME)
        return ResolvedRoot(
            absolute_path=declared_root_dir,
            display_path=trim_path_prefix(declared_root_dir, home_dir),
        )
