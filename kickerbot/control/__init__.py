"""Control algorithms."""

from .line_follower import LineFollower, PidState, PidStep, compute_error, telemetry_color

__all__ = ["LineFollower", "PidState", "PidStep", "compute_error", "telemetry_color"]
