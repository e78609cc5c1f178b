"""Line protocol spoken by the phone-side HUD server.

Each newline-terminated UTF-8 line carries one of two messages::

    display::{name}::{name}::{name}    ordering/filtering directive
    {name}><{value1}><{value2}          sensor reading

Decoding never raises; lines that match neither form decode to ``None``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .sink import SensorSink

FILTER_PREFIX = "display::"
FILTER_SEPARATOR = "::"
READING_SEPARATOR = "><"

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterCommand:
    """Ordered list of sensor names the display should show."""

    names: Tuple[str, ...]


@dataclass(frozen=True)
class SensorReading:
    """A single sensor sample, values kept as the raw strings sent."""

    name: str
    value1: str
    value2: str


Message = Union[FilterCommand, SensorReading]


def decode_line(line: str) -> Optional[Message]:
    """Decode one line (terminator already stripped) into a message."""
    if line.startswith(FILTER_PREFIX):
        remainder = line[len(FILTER_PREFIX):]
        if not remainder:
            return FilterCommand(())
        return FilterCommand(tuple(remainder.split(FILTER_SEPARATOR)))

    parts = line.split(READING_SEPARATOR)
    if len(parts) != 3:
        _LOGGER.debug("Invalid sensor data in: %r", line)
        return None
    name, value1, value2 = parts
    return SensorReading(name, value1, value2)


def decode_bytes(raw: bytes) -> str:
    """Turn a raw line read from the stream into text without its terminator."""
    line = raw.decode("utf-8", errors="replace")
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def dispatch(message: Message, sink: SensorSink) -> None:
    """Hand a decoded message to the matching sink method."""
    if isinstance(message, FilterCommand):
        sink.apply_filter(list(message.names))
    else:
        sink.sensor_reading(message.name, message.value1, message.value2)
