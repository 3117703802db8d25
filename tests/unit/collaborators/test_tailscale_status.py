"""Tests for decoding ``tailscale status --json`` and the status service."""

from __future__ import annotations

import json
import unittest

from nodeexplorer.errors import TailscaleError
from nodeexplorer.tailscale import TailscaleStatusService
from nodeexplorer.types import status_from_json
from nodeexplorer_fakes import RecordingRunner, process_result

STATUS_DOCUMENT = {
    "BackendState": "Running",
    "MagicDNSSuffix": "example.ts.net",
    "CurrentTailnet": {"Name": "alice@example.com", "MagicDNSSuffix": "example.ts.net"},
    "Self": {"HostName": "laptop", "DNSName": "laptop.example.ts.net."},
    "Peer": {
        "nodekey:bbb": {
            "ID": "n2",
            "HostName": "zeta",
            "DNSName": "zeta.example.ts.net.",
            "TailscaleIPs": ["100.64.0.2"],
            "Online": False,
            "OS": "linux",
        },
        "nodekey:aaa": {
            "ID": "n1",
            "HostName": "Alpha",
            "DNSName": "alpha.example.ts.net.",
            "TailscaleIPs": ["100.64.0.1", "fd7a:115c:a1e0::1"],
            "Online": True,
            "OS": "macOS",
        },
    },
}


class StatusFromJsonTests(unittest.TestCase):
    def test_peers_are_decoded_and_sorted_by_host_name(self) -> None:
        status = status_from_json(STATUS_DOCUMENT)

        self.assertEqual(status.tailnet_name, "alice@example.com")
        self.assertEqual(status.errors, ())
        self.assertEqual([peer.host_name for peer in status.peers], ["Alpha", "zeta"])
        alpha = status.peers[0]
        self.assertEqual(alpha.tailscale_ips, ("100.64.0.1", "fd7a:115c:a1e0::1"))
        self.assertTrue(alpha.online)
        self.assertEqual(alpha.tailnet_name, "alice@example.com")
        self.assertEqual(alpha.display_dns_name, "alpha.example.ts.net")
        self.assertIsNone(status.peers[1].ipv6)

    def test_stopped_backend_is_an_error(self) -> None:
        status = status_from_json({"BackendState": "Stopped", "MagicDNSSuffix": "example.ts.net"})

        self.assertEqual(status.tailnet_name, "example.ts.net")
        self.assertEqual(len(status.errors), 1)
        self.assertIn("Stopped", status.errors[0])

    def test_malformed_peers_are_skipped(self) -> None:
        status = status_from_json({"Peer": {"a": "bad", "b": {"HostName": ""}, "c": {"HostName": "ok"}}})

        self.assertEqual([peer.host_name for peer in status.peers], ["ok"])
        self.assertFalse(status.peers[0].online)


class TailscaleStatusServiceTests(unittest.IsolatedAsyncioTestCase):
    async def test_runs_cli_and_caches_until_forced(self) -> None:
        runner = RecordingRunner(
            process_result(json.dumps(STATUS_DOCUMENT)),
            process_result(json.dumps(STATUS_DOCUMENT)),
        )
        service = TailscaleStatusService(runner=runner)

        first = await service.get_status(force_refresh=True)
        cached = await service.get_status()
        await service.get_status(force_refresh=True)

        self.assertIs(first, cached)
        self.assertEqual(len(runner.calls), 2)
        self.assertEqual(runner.calls[0][0], ["tailscale", "status", "--json"])

    async def test_non_zero_exit_raises(self) -> None:
        service = TailscaleStatusService(runner=RecordingRunner(process_result("", 1, "not logged in")))

        with self.assertRaisesRegex(TailscaleError, "not logged in"):
            await service.get_status(force_refresh=True)

    async def test_missing_binary_raises(self) -> None:
        service = TailscaleStatusService(runner=RecordingRunner(FileNotFoundError("tailscale")))

        with self.assertRaises(TailscaleError):
            await service.get_status(force_refresh=True)

    async def test_garbage_output_raises(self) -> None:
        for output in ("not json", "[]"):
            with self.subTest(output=output):
                service = TailscaleStatusService(runner=RecordingRunner(process_result(output)))
                with self.assertRaises(TailscaleError):
                    await service.get_status(force_refresh=True)


if __name__ == "__main__":
    unittest.main()
