"""Serial stream connector for Bluetooth SPP ports."""

from __future__ import annotations

import logging
from typing import Optional

import serial

from ..settings import DEFAULT_BAUDRATE
from .peers import Peer

_LOGGER = logging.getLogger(__name__)


class SerialStream:
    """Blocking line reader over an open serial port.

    ``close()`` may be called from another thread to unblock ``readline()``.
    """

    def __init__(self, ser: serial.Serial) -> None:
        self._serial: Optional[serial.Serial] = ser

    def readline(self) -> bytes:
        ser = self._serial
        if ser is None:
            return b""
        return ser.readline()

    def close(self) -> None:
        ser = self._serial
        if ser is None:
            return
        self._serial = None
        cancel = getattr(ser, "cancel_read", None)
        if cancel is not None:
            try:
                cancel()
            except Exception:
                _LOGGER.debug("Failed to cancel pending read", exc_info=True)
        ser.close()


def open_serial_stream(peer: Peer, *, baudrate: int = DEFAULT_BAUDRATE) -> SerialStream:
    """Open the serial port named by *peer* and return a stream over it."""
    ser = serial.Serial(peer.address, baudrate, timeout=None)
    return SerialStream(ser)
