"""Consumers of decoded sensor traffic."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Sequence

StateListener = Callable[[bool], None]

_LOGGER = logging.getLogger(__name__)


class SensorSink(Protocol):
    """Receives filter directives and sensor readings from the link."""

    def apply_filter(self, names: Sequence[str]) -> None:
        ...

    def sensor_reading(self, name: str, value1: str, value2: str) -> None:
        ...


@dataclass(frozen=True)
class SensorRow:
    """Latest values reported for one sensor."""

    name: str
    value1: str
    value2: str


class SensorBoard:
    """Thread-safe sink keeping the latest reading per sensor.

    The link thread writes while a display thread reads ``rows()``. Without
    a filter every sensor is listed in first-seen order; once a filter
    arrives only the named sensors are listed, in the filter's order.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._readings: Dict[str, SensorRow] = {}
        self._filter: Optional[List[str]] = None

    def apply_filter(self, names: Sequence[str]) -> None:
        with self._lock:
            self._filter = list(names)

    def sensor_reading(self, name: str, value1: str, value2: str) -> None:
        with self._lock:
            self._readings[name] = SensorRow(name, value1, value2)

    @property
    def active_filter(self) -> Optional[List[str]]:
        with self._lock:
            return None if self._filter is None else list(self._filter)

    def rows(self) -> List[SensorRow]:
        with self._lock:
            if self._filter is None:
                return list(self._readings.values())
            return [
                self._readings[name] for name in self._filter if name in self._readings
            ]

    def clear(self) -> None:
        with self._lock:
            self._readings.clear()
            self._filter = None


class LoggingSink:
    """Logs decoded traffic at debug level before forwarding it to *inner*."""

    def __init__(self, inner: SensorSink) -> None:
        self.inner = inner

    def apply_filter(self, names: Sequence[str]) -> None:
        _LOGGER.debug("Display filter: %s", list(names))
        self.inner.apply_filter(names)

    def sensor_reading(self, name: str, value1: str, value2: str) -> None:
        _LOGGER.debug("Sensor %s: %s / %s", name, value1, value2)
        self.inner.sensor_reading(name, value1, value2)
