"""Filesystem operations on ``ts`` URIs, carried out over ssh and scp."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from .errors import FileSystemError, SSHError
from .process import ProcessResult, run_process
from .ssh import SSH
from .types import FileType
from .uri import TS_SCHEME, RemoteUri, parse_ts_uri

logger = logging.getLogger(__name__)

SCP_TIMEOUT_SECONDS: float | None = None

ProcessRunner = Callable[..., Awaitable[ProcessResult]]


def _split(uri: RemoteUri) -> tuple[str, str]:
    """Return ``(hostname, remote path)`` for a ``ts`` URI, defaulting to ``/``."""
    if uri.scheme != TS_SCHEME:
        raise FileSystemError(f"unsupported URI scheme: {uri}")
    hostname, resource_path = parse_ts_uri(uri)
    if not hostname:
        raise FileSystemError(f"URI has no host: {uri}")
    return hostname, resource_path or "/"


LIST_FORMAT = "%y\\t%Y\\t%f\\0"

_FIND_TYPES = {"f": FileType.FILE, "d": FileType.DIRECTORY}


def list_directory_args(path: str) -> list[str]:
    """``find`` arguments printing one ``type<TAB>target type<TAB>name<NUL>`` record per entry."""
    return ["-H", path, "-mindepth", "1", "-maxdepth", "1", "-printf", LIST_FORMAT]


def parse_find_output(output: str) -> list[tuple[str, FileType]]:
    """Decode NUL-separated ``find -printf`` records, sorted by name.

    ``%y`` is the entry's own type and ``%Y`` the type after following a
    symlink; a dangling link keeps only ``SYMLINK``.
    """
    entries: list[tuple[str, FileType]] = []
    for record in output.split("\0"):
        if not record:
            continue
        own, sep, rest = record.partition("\t")
        target, sep2, name = rest.partition("\t")
        if not sep or not sep2 or not name:
            logger.debug("skipping malformed listing record %r", record)
            continue
        if own == "l":
            file_type = FileType.SYMLINK | _FIND_TYPES.get(target, FileType.UNKNOWN)
        else:
            file_type = _FIND_TYPES.get(own, FileType.UNKNOWN)
        entries.append((name, file_type))
    entries.sort(key=lambda entry: entry[0])
    return entries


class FileSystem(Protocol):
    async def read_directory(self, uri: RemoteUri) -> list[tuple[str, FileType]]: ...

    async def read_file(self, uri: RemoteUri) -> str: ...

    async def delete(self, uri: RemoteUri) -> None: ...

    async def copy(self, source: RemoteUri, dest_dir: RemoteUri) -> None: ...


class RemoteFileSystemProvider:
    def __init__(self, ssh: SSH, scp_binary: str = "scp", runner: ProcessRunner = run_process) -> None:
        self.ssh = ssh
        self.scp_binary = scp_binary
        self._runner = runner

    async def read_directory(self, uri: RemoteUri) -> list[tuple[str, FileType]]:
        hostname, path = _split(uri)
        try:
            output = await self.ssh.execute(hostname, "find", list_directory_args(path))
        except SSHError as exc:
            raise FileSystemError(f"unable to list {uri}: {exc}") from exc
        return parse_find_output(output)

    async def read_file(self, uri: RemoteUri) -> str:
        hostname, path = _split(uri)
        try:
            return await self.ssh.execute(hostname, "cat", [path])
        except SSHError as exc:
            raise FileSystemError(f"unable to read {uri}: {exc}") from exc

    async def delete(self, uri: RemoteUri) -> None:
        hostname, path = _split(uri)
        if path in ("/", "~"):
            raise FileSystemError(f"refusing to delete {path} on {hostname}")
        try:
            await self.ssh.execute(hostname, "rm", ["-rf", path])
        except SSHError as exc:
            raise FileSystemError(f"unable to delete {uri}: {exc}") from exc
        logger.info("deleted %s", uri)

    def _scp_operand(self, uri: RemoteUri) -> str:
        if uri.is_local:
            return uri.path
        hostname, path = _split(uri)
        # scp resolves relative paths against the remote home directory.
        if path == "~":
            path = ""
        elif path.startswith("~/"):
            path = path[2:]
        return f"{self.ssh.ssh_hostname_with_user(hostname)}:{path}"

    def build_scp_argv(self, source: RemoteUri, dest_dir: RemoteUri) -> list[str]:
        argv = [self.scp_binary, "-r", "-o", "BatchMode=yes"]
        if not source.is_local and not dest_dir.is_local:
            argv.append("-3")
        argv.append("--")
        argv.append(self._scp_operand(source))
        destination = self._scp_operand(dest_dir)
        if not destination.endswith((":", "/")):
            destination += "/"
        argv.append(destination)
        return argv

    async def copy(self, source: RemoteUri, dest_dir: RemoteUri) -> None:
        """Copy ``source`` (local or remote) into the directory ``dest_dir``."""
        argv = self.build_scp_argv(source, dest_dir)
        try:
            result = await self._runner(argv, timeout_seconds=SCP_TIMEOUT_SECONDS)
        except (OSError, TimeoutError) as exc:
            raise FileSystemError(f"unable to run {self.scp_binary}: {exc}") from exc
        if not result.ok:
            detail = result.stderr.strip() or f"exit status {result.returncode}"
            raise FileSystemError(f"unable to copy {source} to {dest_dir}: {detail}")
        logger.info("copied %s to %s", source, dest_dir)
