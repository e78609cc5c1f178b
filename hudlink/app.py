"""Command line host for the hudlink link manager."""

from __future__ import annotations

import argparse
import functools
import logging
import threading
from typing import Iterable, List, Optional

from .config import AppConfig
from .config import load_config as load_app_config
from .link import Connector, LinkManager, ReconnectBackoff
from .settings import CONFIG_FILE, configure_logging
from .sink import LoggingSink, SensorBoard, SensorSink, StateListener
from .transport import (
    NoPeerAvailable,
    Peer,
    discover_peers,
    open_rfcomm_stream,
    open_serial_stream,
    resolve_peer,
)

logger = logging.getLogger(__name__)


def build_connector(config: AppConfig) -> Connector:
    """Return the stream connector selected by *config*."""
    if config.transport == "rfcomm":
        return functools.partial(open_rfcomm_stream, channel=config.rfcomm_channel)
    return functools.partial(open_serial_stream, baudrate=config.baudrate)


def create_link_manager(
    config: AppConfig,
    sink: SensorSink,
    *,
    peers: Optional[Iterable[Peer]] = None,
    listener: Optional[StateListener] = None,
) -> LinkManager:
    """Resolve the peer and build a manager without starting it.

    An address in *config* takes precedence over discovered *peers*.
    Discovery only finds serial ports, so the RFCOMM transport needs an
    address. Raises :class:`NoPeerAvailable` when there is no peer at all.
    """

    if config.peer_address:
        candidates: List[Peer] = [Peer(config.peer_address, config.peer_name)]
    elif peers is not None:
        candidates = list(peers)
    elif config.transport == "rfcomm":
        raise NoPeerAvailable("The rfcomm transport needs peer_address in the config")
    else:
        candidates = discover_peers()
    peer = resolve_peer(candidates)
    backoff = ReconnectBackoff(config.reconnect_initial, config.reconnect_max)
    return LinkManager(
        peer,
        sink,
        connector=build_connector(config),
        listener=listener,
        backoff=backoff,
    )


def _log_state(connected: bool) -> None:
    logger.info("Peer link %s", "up" if connected else "down")


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="hudlink",
        description="Maintain a sensor link to the paired phone.",
    )
    parser.add_argument(
        "-c", "--config", default=CONFIG_FILE, help="path to the JSON config file"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="enable debug logging"
    )
    return parser.parse_args(argv)


def main(
    argv: Optional[List[str]] = None,
    *,
    stop_event: Optional[threading.Event] = None,
) -> int:
    """Run the link until interrupted; return the process exit status."""

    args = _parse_args(argv)
    config = load_app_config(args.config)
    level = logging.DEBUG if args.verbose else logging.getLevelName(config.log_level)
    if not isinstance(level, int):
        level = logging.INFO
    configure_logging(level=level)

    board = SensorBoard()
    try:
        manager = create_link_manager(
            config, LoggingSink(board), listener=_log_state
        )
    except NoPeerAvailable as exc:
        logger.error("%s, quitting.", exc)
        return 1

    stop_event = stop_event or threading.Event()
    manager.start()
    try:
        stop_event.wait()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        manager.stop()
        manager.wait(timeout=5.0)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
