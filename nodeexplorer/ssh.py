"""Remote command execution through the system ``ssh`` client."""

from __future__ import annotations

import logging
import shlex
from collections.abc import Awaitable, Callable

from .config import ConfigManager
from .errors import SSHError
from .process import ProcessResult, run_process

logger = logging.getLogger(__name__)

SSH_TIMEOUT_SECONDS = 30.0

ProcessRunner = Callable[..., Awaitable[ProcessResult]]


def quote_remote_arg(arg: str) -> str:
    """Shell-quote ``arg`` for the remote shell, leaving a leading ``~`` expandable."""
    if arg == "~":
        return arg
    if arg.startswith("~/"):
        return "~/" + shlex.quote(arg[2:])
    return shlex.quote(arg)


class SSH:
    """Runs one command per call on a peer, addressed by host name.

    ``BatchMode`` keeps ssh from prompting; a host that needs a password fails
    fast instead of hanging the tree.
    """

    def __init__(
        self,
        config_manager: ConfigManager | None = None,
        binary: str = "ssh",
        runner: ProcessRunner = run_process,
    ) -> None:
        self.config_manager = config_manager
        self.binary = binary
        self._runner = runner

    def ssh_hostname_with_user(self, host_name: str) -> str:
        user = self.config_manager.host(host_name).user if self.config_manager is not None else None
        return f"{user}@{host_name}" if user else host_name

    def build_argv(self, host_name: str, command: str, args: list[str]) -> list[str]:
        remote = " ".join([command, *(quote_remote_arg(arg) for arg in args)])
        # The destination follows ``--`` so it is never parsed as an option.
        return [
            self.binary,
            "-o",
            "BatchMode=yes",
            "--",
            self.ssh_hostname_with_user(host_name),
            remote,
        ]

    async def execute(self, host_name: str, command: str, args: list[str] | None = None) -> str:
        """Run ``command args...`` on ``host_name`` and return its stdout."""
        argv = self.build_argv(host_name, command, list(args or []))
        try:
            result = await self._runner(argv, timeout_seconds=SSH_TIMEOUT_SECONDS)
        except (OSError, TimeoutError) as exc:
            raise SSHError(f"ssh to {host_name} failed: {exc}") from exc

        if not result.ok:
            detail = result.stderr.strip() or f"exit status {result.returncode}"
            raise SSHError(
                f"{command} on {host_name} failed: {detail}",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return result.stdout
