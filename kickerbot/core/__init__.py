"""Core framework for message-passing actor architecture."""

from .messages import (
    ConnectionState,
    PidCommandType,
    TrackCommand,
    PidTrackCommand,
    TrimCommand,
    KickRequest,
    StopCommand,
    PidCommand,
    ColorTelemetry,
    ConnectionStateChange,
    MotorOutput,
)
from .bus import MessageBus, Topics
from .actor import Actor
from .config import Config, load_config

__all__ = [
    "ConnectionState",
    "PidCommandType",
    "TrackCommand",
    "PidTrackCommand",
    "TrimCommand",
    "KickRequest",
    "StopCommand",
    "PidCommand",
    "ColorTelemetry",
    "ConnectionStateChange",
    "MotorOutput",
    "MessageBus",
    "Topics",
    "Actor",
    "Config",
    "load_config",
]
