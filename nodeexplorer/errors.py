"""Exception hierarchy shared by nodeexplorer collaborators."""

from __future__ import annotations


class NodeExplorerError(Exception):
    """Base class for failures raised by nodeexplorer collaborators."""


class TailscaleError(NodeExplorerError):
    """Raised when the tailscale status query fails or returns garbage."""


class SSHError(NodeExplorerError):
    """Raised when a remote command exits non-zero or ssh cannot run."""

    def __init__(self, message: str, *, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class FileSystemError(NodeExplorerError):
    """Raised by the remote filesystem provider."""
