"""Transport layer abstractions for hudlink."""

from .peers import NoPeerAvailable, Peer, discover_peers, resolve_peer
from .rfcomm import RfcommStream, open_rfcomm_stream
from .serial_link import SerialStream, open_serial_stream

__all__ = [
    "NoPeerAvailable",
    "Peer",
    "RfcommStream",
    "SerialStream",
    "discover_peers",
    "open_rfcomm_stream",
    "open_serial_stream",
    "resolve_peer",
]
