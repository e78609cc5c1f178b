import functools
import json
import tempfile
import threading
import unittest
from pathlib import Path
from unittest import mock

from hudlink import app
from hudlink.config import AppConfig
from hudlink.link import LinkManager
from hudlink.sink import LoggingSink, SensorBoard
from hudlink.transport import NoPeerAvailable, Peer, open_rfcomm_stream, open_serial_stream


class CreateLinkManagerTests(unittest.TestCase):
    def test_uses_first_discovered_peer(self) -> None:
        peers = [Peer("/dev/rfcomm0", "Pixel"), Peer("/dev/rfcomm1", "Tablet")]
        cfg = AppConfig(reconnect_initial=1.0, reconnect_max=8.0)
        manager = app.create_link_manager(cfg, SensorBoard(), peers=peers)
        self.assertIsInstance(manager, LinkManager)
        self.assertEqual(manager.peer, peers[0])
        self.assertEqual(manager.backoff.delay, 1.0)
        self.assertEqual(manager.backoff.maximum, 8.0)

    def test_configured_address_wins_over_discovery(self) -> None:
        cfg = AppConfig(peer_address="AA:BB:CC:DD:EE:FF", peer_name="Pixel")
        with mock.patch("hudlink.app.discover_peers") as discover:
            manager = app.create_link_manager(cfg, SensorBoard())
        discover.assert_not_called()
        self.assertEqual(manager.peer, Peer("AA:BB:CC:DD:EE:FF", "Pixel"))

    def test_discovers_peers_when_not_given(self) -> None:
        with mock.patch(
            "hudlink.app.discover_peers", return_value=[Peer("COM7", "Phone")]
        ) as discover:
            manager = app.create_link_manager(AppConfig(), SensorBoard())
        discover.assert_called_once_with()
        self.assertEqual(manager.peer.address, "COM7")

    def test_no_peers_raises(self) -> None:
        with self.assertRaises(NoPeerAvailable):
            app.create_link_manager(AppConfig(), SensorBoard(), peers=[])

    def test_rfcomm_without_address_skips_discovery(self) -> None:
        cfg = AppConfig(transport="rfcomm")
        with mock.patch(
            "hudlink.app.discover_peers", return_value=[Peer("/dev/rfcomm0", "Pixel")]
        ) as discover:
            with self.assertRaises(NoPeerAvailable):
                app.create_link_manager(cfg, SensorBoard())
        discover.assert_not_called()

    def test_rfcomm_uses_configured_address(self) -> None:
        cfg = AppConfig(transport="rfcomm", peer_address="AA:BB:CC:DD:EE:FF")
        with mock.patch("hudlink.app.discover_peers") as discover:
            manager = app.create_link_manager(cfg, SensorBoard())
        discover.assert_not_called()
        self.assertEqual(manager.peer.address, "AA:BB:CC:DD:EE:FF")

    def test_build_connector_follows_transport(self) -> None:
        serial_connector = app.build_connector(AppConfig(baudrate=9600))
        self.assertIsInstance(serial_connector, functools.partial)
        self.assertIs(serial_connector.func, open_serial_stream)
        self.assertEqual(serial_connector.keywords, {"baudrate": 9600})

        rfcomm_connector = app.build_connector(
            AppConfig(transport="rfcomm", rfcomm_channel=5)
        )
        self.assertIs(rfcomm_connector.func, open_rfcomm_stream)
        self.assertEqual(rfcomm_connector.keywords, {"channel": 5})


class MainTests(unittest.TestCase):
    def test_rfcomm_without_address_exits_nonzero(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "hudlink.json"
            path.write_text(json.dumps({"transport": "rfcomm"}), encoding="utf-8")
            with mock.patch(
                "hudlink.app.discover_peers", return_value=[Peer("/dev/rfcomm0")]
            ):
                with mock.patch("hudlink.app.LinkManager") as manager_cls:
                    status = app.main(["--config", str(path)])
        self.assertEqual(status, 1)
        manager_cls.assert_not_called()

    def test_returns_nonzero_without_peers(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "hudlink.json"
            with mock.patch("hudlink.app.discover_peers", return_value=[]):
                with mock.patch("hudlink.app.LinkManager") as manager_cls:
                    status = app.main(["--config", str(path)])
        self.assertEqual(status, 1)
        manager_cls.assert_not_called()

    def test_runs_manager_until_stopped(self) -> None:
        stop_event = threading.Event()
        stop_event.set()
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "hudlink.json"
            path.write_text(json.dumps({"peer_address": "/dev/rfcomm0"}), encoding="utf-8")
            with mock.patch("hudlink.app.LinkManager", autospec=True) as manager_cls:
                status = app.main(["-c", str(path), "-v"], stop_event=stop_event)
        self.assertEqual(status, 0)
        manager = manager_cls.return_value
        args, kwargs = manager_cls.call_args
        self.assertEqual(args[0], Peer("/dev/rfcomm0", ""))
        self.assertIsInstance(args[1], LoggingSink)
        self.assertIsInstance(args[1].inner, SensorBoard)
        manager.start.assert_called_once_with()
        manager.stop.assert_called_once_with()
        manager.wait.assert_called_once_with(timeout=5.0)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
