"""Actor implementations for the message-passing architecture."""

from .driving_actor import DrivingActor
from .pid_actor import PidActor
from .network_actor import NetworkActor, ConnectionLost
from .command_router_actor import CommandRouterActor

__all__ = [
    "DrivingActor",
    "PidActor",
    "NetworkActor",
    "ConnectionLost",
    "CommandRouterActor",
]
