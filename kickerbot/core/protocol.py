"""
Wire codec for the controller link.

Discovery (UDP broadcast):
    probe  = 4 bytes, byte 3 set to 1
    reply  = bytes 2..3 hold the session port, big-endian u16

Session (UDP unicast), every datagram is [version:u8][type:u8][payload...].
Only version 1 is defined. Multi-byte numbers are big-endian.

    inbound                         outbound
    0  Pong                         1  version string
    10 SetTrack  f32 left, f32 right 2  name string
    12 SetTrim   f32                3  color label string
    20 Kick                         4  ';'-joined available color labels
    30 SetPid    u8 (nonzero = on)  5  r, g, b bytes
    31 SetForeground                6  power fraction f32
    32 SetBackground
    40 SetName      UTF-8 remainder
    41 SetLedColor  UTF-8 remainder

Unknown types, other versions and truncated payloads decode to None.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple, Union
import struct

PROTOCOL_VERSION = 1

DISCOVERY_PROBE = bytes([0, 0, 0, 1])
KEEPALIVE_PROBE = bytes(4)


class InboundType(IntEnum):
    PONG = 0
    SET_TRACK = 10
    SET_TRIM = 12
    KICK = 20
    SET_PID = 30
    SET_FOREGROUND = 31
    SET_BACKGROUND = 32
    SET_NAME = 40
    SET_LED_COLOR = 41


class OutboundType(IntEnum):
    VERSION = 1
    NAME = 2
    COLOR = 3
    AVAILABLE_COLORS = 4
    RGB = 5
    POWER = 6


# ============ Controller messages ============

@dataclass(frozen=True, slots=True)
class Pong:
    pass


@dataclass(frozen=True, slots=True)
class SetTrack:
    left: float
    right: float


@dataclass(frozen=True, slots=True)
class SetTrim:
    trim: float


@dataclass(frozen=True, slots=True)
class Kick:
    pass


@dataclass(frozen=True, slots=True)
class SetPid:
    enabled: bool


@dataclass(frozen=True, slots=True)
class SetForeground:
    pass


@dataclass(frozen=True, slots=True)
class SetBackground:
    pass


@dataclass(frozen=True, slots=True)
class SetName:
    name: str


@dataclass(frozen=True, slots=True)
class SetLedColor:
    color: str


ControllerMessage = Union[
    Pong, SetTrack, SetTrim, Kick, SetPid,
    SetForeground, SetBackground, SetName, SetLedColor,
]


def parse_discovery_reply(data: bytes) -> Optional[int]:
    """Return the session port announced in a discovery reply, or None if too short."""
    if len(data) < 4:
        return None
    (port,) = struct.unpack_from(">H", data, 2)
    return port


def decode_message(data: bytes) -> Optional[ControllerMessage]:
    """
    Decode one inbound datagram.

    Returns None for anything that is not a well-formed version 1 message of
    a known type. Values are passed through as sent; no range clamping here.
    """
    if len(data) < 2:
        return None

    version, message_type = data[0], data[1]
    if version != PROTOCOL_VERSION:
        return None

    try:
        return _decode_v1(message_type, data[2:])
    except (struct.error, UnicodeDecodeError):
        return None


def _decode_v1(message_type: int, payload: bytes) -> Optional[ControllerMessage]:
    if message_type == InboundType.PONG:
        return Pong()
    if message_type == InboundType.SET_TRACK:
        left, right = struct.unpack_from(">ff", payload)
        return SetTrack(left, right)
    if message_type == InboundType.SET_TRIM:
        (trim,) = struct.unpack_from(">f", payload)
        return SetTrim(trim)
    if message_type == InboundType.KICK:
        return Kick()
    if message_type == InboundType.SET_PID:
        (enabled,) = struct.unpack_from(">B", payload)
        return SetPid(enabled != 0)
    if message_type == InboundType.SET_FOREGROUND:
        return SetForeground()
    if message_type == InboundType.SET_BACKGROUND:
        return SetBackground()
    if message_type == InboundType.SET_NAME:
        return SetName(payload.decode("utf-8"))
    if message_type == InboundType.SET_LED_COLOR:
        return SetLedColor(payload.decode("utf-8"))
    return None


def encode_message(message: ControllerMessage) -> bytes:
    """Encode a controller message as the controller would send it."""
    if isinstance(message, Pong):
        return pack(InboundType.PONG)
    if isinstance(message, SetTrack):
        return pack(InboundType.SET_TRACK, struct.pack(">ff", message.left, message.right))
    if isinstance(message, SetTrim):
        return pack(InboundType.SET_TRIM, struct.pack(">f", message.trim))
    if isinstance(message, Kick):
        return pack(InboundType.KICK)
    if isinstance(message, SetPid):
        return pack(InboundType.SET_PID, bytes([1 if message.enabled else 0]))
    if isinstance(message, SetForeground):
        return pack(InboundType.SET_FOREGROUND)
    if isinstance(message, SetBackground):
        return pack(InboundType.SET_BACKGROUND)
    if isinstance(message, SetName):
        return pack(InboundType.SET_NAME, message.name.encode("utf-8"))
    if isinstance(message, SetLedColor):
        return pack(InboundType.SET_LED_COLOR, message.color.encode("utf-8"))
    raise TypeError(f"Not a controller message: {message!r}")


def pack(message_type: int, payload: bytes = b"") -> bytes:
    """Frame a payload with the version and type header."""
    return bytes([PROTOCOL_VERSION, message_type]) + payload


def encode_text(message_type: OutboundType, text: str) -> bytes:
    return pack(message_type, text.encode("utf-8"))


def encode_rgb(rgb: Tuple[int, int, int]) -> bytes:
    return pack(OutboundType.RGB, bytes(rgb))


def encode_power(fraction: float) -> bytes:
    return pack(OutboundType.POWER, struct.pack(">f", fraction))
