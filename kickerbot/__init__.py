"""
EV3 soccer robot controller - message-passing actor architecture.

Three supervised actors run side by side:
- DrivingActor: traction motors and kicker
- PidActor: color sensor and the autonomous line follower
- NetworkActor: controller discovery, keepalive and telemetry
plus a CommandRouterActor that dispatches decoded controller commands.
"""

__version__ = "0.3.0"
