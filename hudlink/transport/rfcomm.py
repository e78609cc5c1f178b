"""Raw RFCOMM socket connector (Linux BlueZ)."""

from __future__ import annotations

import logging
import socket
from typing import BinaryIO, Optional

from ..settings import DEFAULT_RFCOMM_CHANNEL
from .peers import Peer

_LOGGER = logging.getLogger(__name__)


class RfcommStream:
    """Line reader over a connected RFCOMM socket."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock: Optional[socket.socket] = sock
        self._reader: Optional[BinaryIO] = sock.makefile("rb")

    def readline(self) -> bytes:
        reader = self._reader
        if reader is None:
            return b""
        return reader.readline()

    def close(self) -> None:
        sock, reader = self._sock, self._reader
        self._sock = None
        self._reader = None
        if sock is None:
            return
        try:
            # Unblocks a reader stuck in recv() on another thread.
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            _LOGGER.debug("RFCOMM shutdown failed", exc_info=True)
        if reader is not None:
            try:
                reader.close()
            except Exception:
                _LOGGER.debug("Failed to close RFCOMM reader", exc_info=True)
        sock.close()


def open_rfcomm_stream(peer: Peer, *, channel: int = DEFAULT_RFCOMM_CHANNEL) -> RfcommStream:
    """Connect to *peer* over RFCOMM on *channel*."""
    family = getattr(socket, "AF_BLUETOOTH", None)
    proto = getattr(socket, "BTPROTO_RFCOMM", None)
    if family is None or proto is None:
        raise OSError("RFCOMM sockets are not supported on this platform")
    sock = socket.socket(family, socket.SOCK_STREAM, proto)
    try:
        sock.connect((peer.address, channel))
        return RfcommStream(sock)
    except Exception:
        try:
            sock.close()
        except Exception:
            pass
        raise
