"""
Line follower controller.

Turns a raw color reading into a signed line error and runs one PID step per
reading: decay-based anti-windup, lost-line detection and speed selection.
The PidActor owns one LineFollower; its state is reset at the start of every
autonomous run.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

Color = Tuple[int, int, int]

DT = 1.0


def compute_error(
    sensor: Color,
    foreground: Color,
    background: Color,
    drive_multiplier: float = -1.0,
) -> float:
    """
    Normalized line error in [-1, 1].

    Each channel is mapped to 0 at the foreground color and 1 at the
    background color. The sum of the three ratios is divided by 1.5, clamped
    to [0, 2] and shifted to [-1, 1], so the foreground reads -1, the
    midpoint 0 and the background +1 before the drive multiplier is applied.
    A channel whose calibration colors are equal contributes the midpoint.
    """
    reading = np.asarray(sensor, dtype=float)
    fg = np.asarray(foreground, dtype=float)
    span = np.asarray(background, dtype=float) - fg
    ratios = np.divide(reading - fg, span, out=np.full(3, 0.5), where=span != 0)
    scaled = np.clip(ratios.sum() / 1.5, 0.0, 2.0)
    return float((scaled - 1.0) * drive_multiplier)


def telemetry_color(sensor: Color) -> Color:
    """Halve a raw reading and clamp it to one byte per channel."""
    r, g, b = np.clip(np.asarray(sensor, dtype=int) // 2, 0, 255)
    return (int(r), int(g), int(b))


@dataclass
class PidState:
    """Per-run controller state."""
    last_error: float = 0.0
    history_error: float = 0.0  # Error two steps back
    integral: float = 0.0
    lost_line: int = 0
    drive_slow: int = 0


@dataclass(frozen=True)
class PidStep:
    """Result of one controller step."""
    error: float
    integral: float
    derivative: float
    output: float
    speed: float
    left: float
    right: float


class LineFollower:
    """
    PID line follower.

    step() returns None when the line is considered lost; the caller must
    then call begin_recovery(), rotate with recovery_command() until
    is_line_found() holds for a fresh reading, and call finish_recovery().
    """

    def __init__(self, config):
        """
        Args:
            config: PidConfig with gains, speeds and thresholds
        """
        self.kp = config.kp
        self.ki = config.ki
        self.kd = config.kd
        self.integral_maximum = config.integral_maximum
        self.integral_limiter = (config.integral_maximum - 1.0) / config.integral_maximum
        self.speed_normal = config.speed
        self.speed_fast = config.speed + config.fast_boost
        self.speed_slow = config.speed - config.slow_penalty
        self.countermeasure = config.countermeasure
        self.drive_multiplier = config.drive_multiplier
        self.lost_line_threshold = config.lost_line_threshold
        self.lost_line_jump = config.lost_line_jump
        self.lost_line_limit = config.lost_line_limit
        self.recovery_exit_threshold = config.recovery_exit_threshold
        self.drive_slow_iterations = config.drive_slow_iterations

        self.state = PidState()

    def reset(self) -> None:
        self.state = PidState()

    def step(self, error: float) -> Optional[PidStep]:
        """Run one control step for a new error. Returns None if the line is lost."""
        s = self.state

        s.integral = (s.integral + error * DT) * self.integral_limiter
        derivative = (error - s.last_error) / DT
        output = self.kp * error + self.ki * s.integral + self.kd * derivative

        self._update_lost_line(error)
        if s.lost_line > self.lost_line_limit:
            return None

        speed = self._select_speed(derivative)
        left = speed + self.countermeasure * output
        right = speed - self.countermeasure * output

        s.history_error = s.last_error
        s.last_error = error

        return PidStep(
            error=error,
            integral=s.integral,
            derivative=derivative,
            output=output,
            speed=speed,
            left=left,
            right=right,
        )

    def _update_lost_line(self, error: float) -> None:
        s = self.state
        off_line = error * self.drive_multiplier > self.lost_line_threshold

        if s.lost_line > 0:
            s.lost_line = s.lost_line + 1 if off_line else 0
        elif (off_line
              and abs(s.history_error - error) > self.lost_line_jump
              and s.drive_slow == 0):
            s.lost_line = 1

    def _select_speed(self, derivative: float) -> float:
        s = self.state
        if s.drive_slow > 0:
            s.drive_slow -= 1
            return self.speed_slow
        if abs(s.integral) < 0.2 and abs(derivative) < 0.2:
            return self.speed_fast
        if abs(s.integral) > 1.0:
            return self.speed_slow
        return self.speed_normal

    # ============ Line recovery ============

    def begin_recovery(self) -> None:
        """Saturate the integral toward the search direction and forget the history."""
        s = self.state
        s.integral = self.integral_maximum * self.drive_multiplier
        s.history_error = 0.0
        s.last_error = 0.0
        s.lost_line = 0

    def recovery_command(self) -> Tuple[float, float]:
        """Slow rotation in place used while searching for the line."""
        return (
            self.speed_slow * self.drive_multiplier,
            -self.speed_slow * self.drive_multiplier,
        )

    def is_line_found(self, error: float) -> bool:
        return error * self.drive_multiplier <= self.recovery_exit_threshold

    def finish_recovery(self) -> None:
        self.state.drive_slow = self.drive_slow_iterations
