"""
Typed message definitions for the message bus.

All messages are immutable dataclasses. Actors communicate by publishing
these on the topics in core.bus.Topics; no actor mutates state owned by
another actor.
"""

from dataclasses import dataclass, field
from enum import Enum
import time


class ConnectionState(Enum):
    """Link state between the robot and its controller."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"


class PidCommandType(Enum):
    """Commands understood by the PidActor."""
    START = "start"
    STOP = "stop"
    SET_FOREGROUND = "set_foreground"
    SET_BACKGROUND = "set_background"


# ============ Driving channel ============

@dataclass(frozen=True, slots=True)
class TrackCommand:
    """
    Manual track fractions from the remote control, each in [-1, 1].
    Published by: CommandRouterActor
    Topic: /driving/command
    """
    left: float
    right: float
    timestamp: float = field(default_factory=time.time, compare=False)


@dataclass(frozen=True, slots=True)
class PidTrackCommand:
    """
    Autonomous track fractions, scaled by the PID authority inside DrivingActor.
    Published by: PidActor
    Topic: /driving/command
    """
    left: float
    right: float
    timestamp: float = field(default_factory=time.time, compare=False)


@dataclass(frozen=True, slots=True)
class TrimCommand:
    """
    Steering trim. Accepted for wire compatibility; DrivingActor ignores it.
    Published by: CommandRouterActor
    Topic: /driving/command
    """
    trim: float
    timestamp: float = field(default_factory=time.time, compare=False)


@dataclass(frozen=True, slots=True)
class KickRequest:
    """
    Fire the kicker once. Ignored while a kick is in flight.
    Published by: CommandRouterActor
    Topic: /driving/command
    """
    timestamp: float = field(default_factory=time.time, compare=False)


@dataclass(frozen=True, slots=True)
class StopCommand:
    """
    Ends an actor's run cleanly; the supervisor does not restart it.
    Published by: RobotController
    Topics: /driving/command, /network/control, /robot/command
    """
    reason: str = ""
    timestamp: float = field(default_factory=time.time, compare=False)


# ============ PID channel ============

@dataclass(frozen=True, slots=True)
class PidCommand:
    """
    Line follower control.
    Published by: CommandRouterActor
    Topic: /pid/command
    """
    command: PidCommandType
    timestamp: float = field(default_factory=time.time, compare=False)


# ============ Network channel ============

@dataclass(frozen=True, slots=True)
class ColorTelemetry:
    """
    Halved and clamped color sensor reading, one byte per channel.
    Published by: PidActor
    Topic: /network/command
    """
    r: int
    g: int
    b: int
    timestamp: float = field(default_factory=time.time, compare=False)


# ============ Observability ============

@dataclass(frozen=True, slots=True)
class ConnectionStateChange:
    """
    Connection state transition.
    Published by: NetworkActor
    Topic: /network/connection_state
    """
    state: ConnectionState
    previous_state: ConnectionState = ConnectionState.DISCONNECTED
    timestamp: float = field(default_factory=time.time, compare=False)


@dataclass(frozen=True, slots=True)
class MotorOutput:
    """
    Duty cycles last written to the traction motors.
    Published by: DrivingActor
    Topic: /driving/output
    """
    left_duty: float
    right_duty: float
    timestamp: float = field(default_factory=time.time, compare=False)
