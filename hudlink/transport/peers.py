"""Peer identities and discovery of paired Bluetooth serial links."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List

import serial.tools.list_ports

_LOGGER = logging.getLogger(__name__)

_BLUETOOTH_MARKERS = ("rfcomm", "bthenum", "bluetooth")


class NoPeerAvailable(LookupError):
    """Raised when no paired peer device can be found."""


@dataclass(frozen=True)
class Peer:
    """Address/name pair of the remote device the link talks to."""

    address: str
    name: str = ""

    def __str__(self) -> str:
        return f"{self.name or '?'}{{{self.address}}}"


def _is_bluetooth_port(info) -> bool:
    fields = (
        getattr(info, "device", "") or "",
        getattr(info, "hwid", "") or "",
        getattr(info, "description", "") or "",
    )
    text = " ".join(fields).lower()
    return any(marker in text for marker in _BLUETOOTH_MARKERS)


def discover_peers() -> List[Peer]:
    """Return paired devices exposed as Bluetooth serial ports."""
    peers: List[Peer] = []
    for info in serial.tools.list_ports.comports():
        port = getattr(info, "device", None)
        if not port or not _is_bluetooth_port(info):
            continue
        description = getattr(info, "description", "") or ""
        if description == "n/a":
            description = ""
        peers.append(Peer(address=port, name=description))
    _LOGGER.debug("Discovered %d Bluetooth peer(s)", len(peers))
    return peers


def resolve_peer(peers: Iterable[Peer]) -> Peer:
    """Pick the peer to connect to from the enumerated *peers*.

    The first enumerated peer wins. Raises :class:`NoPeerAvailable` when
    there is nothing to connect to.
    """
    candidates = list(peers)
    if not candidates:
        raise NoPeerAvailable("No devices are paired; nothing to connect to")
    if len(candidates) > 1:
        _LOGGER.info(
            "%d paired devices found; using the first one (%s)",
            len(candidates),
            candidates[0],
        )
    peer = candidates[0]
    _LOGGER.info("Using connection to %s", peer)
    return peer
