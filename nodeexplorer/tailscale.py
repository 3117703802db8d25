"""Peer discovery through the local ``tailscale`` CLI."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable

from .errors import TailscaleError
from .process import ProcessResult, run_process
from .types import PeerStatus, status_from_json

logger = logging.getLogger(__name__)

STATUS_TIMEOUT_SECONDS = 10.0

ProcessRunner = Callable[..., Awaitable[ProcessResult]]


class TailscaleStatusService:
    """Runs ``tailscale status --json`` and keeps the most recent result."""

    def __init__(self, binary: str = "tailscale", runner: ProcessRunner = run_process) -> None:
        self.binary = binary
        self._runner = runner
        self._last_status: PeerStatus | None = None

    async def get_status(self, force_refresh: bool = False) -> PeerStatus:
        if self._last_status is not None and not force_refresh:
            return self._last_status

        argv = [self.binary, "status", "--json"]
        try:
            result = await self._runner(argv, timeout_seconds=STATUS_TIMEOUT_SECONDS)
        except (OSError, TimeoutError) as exc:
            raise TailscaleError(f"unable to run {self.binary}: {exc}") from exc

        if not result.ok:
            detail = result.stderr.strip() or f"exit status {result.returncode}"
            raise TailscaleError(f"{self.binary} status failed: {detail}")

        try:
            payload = json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise TailscaleError(f"malformed status output: {exc}") from exc
        if not isinstance(payload, dict):
            raise TailscaleError("malformed status output: expected a JSON object")

        status = status_from_json(payload)
        logger.debug("status: tailnet=%s peers=%d errors=%d", status.tailnet_name, len(status.peers), len(status.errors))
        self._last_status = status
        return status
