"""Persistent link to the paired peer device."""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Optional, Protocol

from .protocol import decode_bytes, decode_line, dispatch
from .settings import DEFAULT_RECONNECT_PERIOD, MAX_RECONNECT_PERIOD
from .sink import SensorSink, StateListener
from .transport import Peer

_LOGGER = logging.getLogger(__name__)


class LinkStream(Protocol):
    def readline(self) -> bytes:
        ...

    def close(self) -> None:
        ...


Connector = Callable[[Peer], LinkStream]


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ReconnectBackoff:
    """Delay between consecutive failed connection attempts.

    Starts at *initial* seconds, doubles on every ``escalate()`` and never
    exceeds *maximum*.
    """

    def __init__(
        self,
        initial: float = DEFAULT_RECONNECT_PERIOD,
        maximum: float = MAX_RECONNECT_PERIOD,
    ) -> None:
        if initial <= 0:
            raise ValueError("Initial reconnect delay must be greater than zero")
        if maximum < initial:
            raise ValueError("Maximum reconnect delay must not be below the initial delay")
        self.initial = initial
        self.maximum = maximum
        self._delay = initial

    @property
    def delay(self) -> float:
        return self._delay

    def reset(self) -> None:
        self._delay = self.initial

    def escalate(self) -> float:
        self._delay = min(self._delay * 2, self.maximum)
        return self._delay


class LinkManager:
    """Keeps a line stream to *peer* open and feeds it into *sink*.

    The connect/read/backoff loop runs on a background thread between
    ``start()`` and ``stop()``. Failed connection attempts back off
    exponentially; a session that was established resets the backoff when
    it drops. *listener* is told ``True`` on every connect and ``False``
    when that session ends.
    """

    def __init__(
        self,
        peer: Peer,
        sink: SensorSink,
        *,
        connector: Connector,
        listener: Optional[StateListener] = None,
        backoff: Optional[ReconnectBackoff] = None,
    ) -> None:
        self.peer = peer
        self._sink = sink
        self._connector = connector
        self._listener = listener
        self._backoff = backoff or ReconnectBackoff()
        self._state = ConnectionState.DISCONNECTED
        self._stop_event = threading.Event()
        self._stream: Optional[LinkStream] = None
        self._stream_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._lifecycle_lock = threading.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return bool(thread and thread.is_alive() and not self._stop_event.is_set())

    @property
    def backoff(self) -> ReconnectBackoff:
        return self._backoff

    def set_state_listener(self, listener: Optional[StateListener]) -> None:
        self._listener = listener

    def start(self) -> None:
        """Start maintaining the link on a background thread."""
        with self._lifecycle_lock:
            thread = self._thread
            if thread and thread.is_alive():
                if not self._stop_event.is_set():
                    raise RuntimeError("Link manager is already running")
                thread.join()
            _LOGGER.info("Starting up link to %s", self.peer)
            self._backoff.reset()
            self._stop_event.clear()
            thread = threading.Thread(
                target=self._run,
                name=f"LinkManager[{self.peer.address}]",
                daemon=True,
            )
            self._thread = thread
            thread.start()

    def stop(self) -> None:
        """Stop the loop and drop any live connection. Safe to call repeatedly."""
        if not self._stop_event.is_set():
            _LOGGER.info("Shutting down link to %s", self.peer)
        self._stop_event.set()
        with self._stream_lock:
            stream = self._stream
            self._stream = None
        if stream is not None:
            self._close_stream(stream)

    def wait(self, timeout: Optional[float] = None) -> None:
        thread = self._thread
        if thread:
            thread.join(timeout)

    def _run(self) -> None:
        try:
            while not self._stop_event.is_set():
                self._set_state(ConnectionState.CONNECTING)
                was_connected = self._run_session()
                if self._stop_event.is_set():
                    break
                if was_connected:
                    # Any established session clears the penalty.
                    self._set_state(ConnectionState.CONNECTING)
                    self._backoff.reset()
                    continue
                delay = self._backoff.delay
                _LOGGER.info("Will attempt a reconnect in %g seconds", delay)
                if self._stop_event.wait(delay):
                    break
                self._backoff.escalate()
        finally:
            self._set_state(ConnectionState.DISCONNECTED)

    def _run_session(self) -> bool:
        """Connect once and pump lines until the stream ends.

        Returns ``True`` if the connection was established.
        """
        _LOGGER.debug("Attempting connection to %s", self.peer)
        try:
            stream = self._connector(self.peer)
        except Exception as exc:
            _LOGGER.info("Connection to %s failed: %s", self.peer, exc)
            return False

        with self._stream_lock:
            stopping = self._stop_event.is_set()
            if not stopping:
                self._stream = stream
        if stopping:
            self._close_stream(stream)
            return False

        _LOGGER.info("Connected to %s", self.peer)
        self._set_state(ConnectionState.CONNECTED)
        self._backoff.reset()
        try:
            self._pump(stream)
        except Exception as exc:
            _LOGGER.info("Connection to %s terminated: %s", self.peer, exc)
        finally:
            with self._stream_lock:
                owned = self._stream is stream
                if owned:
                    self._stream = None
            if owned:
                self._close_stream(stream)
        return True

    def _pump(self, stream: LinkStream) -> None:
        while not self._stop_event.is_set():
            raw = stream.readline()
            if not raw:
                _LOGGER.info("Stream from %s closed", self.peer)
                return
            if self._stop_event.is_set():
                return
            self._handle_line(decode_bytes(raw))

    def _handle_line(self, line: str) -> None:
        message = decode_line(line)
        if message is None:
            return
        try:
            dispatch(message, self._sink)
        except Exception:
            _LOGGER.exception("Sensor sink failed to handle %r", line)

    def _set_state(self, state: ConnectionState) -> None:
        was_connected = self._state is ConnectionState.CONNECTED
        self._state = state
        connected = state is ConnectionState.CONNECTED
        if connected != was_connected:
            self._notify(connected)

    def _notify(self, connected: bool) -> None:
        listener = self._listener
        if listener is None:
            return
        try:
            listener(connected)
        except Exception:
            _LOGGER.debug("Connection state listener failed", exc_info=True)

    @staticmethod
    def _close_stream(stream: LinkStream) -> None:
        try:
            stream.close()
        except Exception:
            _LOGGER.debug("Error while closing stream", exc_info=True)
