"""Tests for the error normalization and the PID step."""

import numpy as np
import pytest

from kickerbot.control.line_follower import LineFollower, compute_error, telemetry_color
from kickerbot.core.config import PidConfig

FG = (20, 20, 20)
BG = (200, 200, 200)
MID = (110, 110, 110)


def test_error_at_calibration_points() -> None:
    """Foreground and background land on opposite ends, the midpoint on zero."""
    assert compute_error(FG, FG, BG, drive_multiplier=1.0) == pytest.approx(-1.0)
    assert compute_error(BG, FG, BG, drive_multiplier=1.0) == pytest.approx(1.0)
    assert compute_error(MID, FG, BG, drive_multiplier=1.0) == pytest.approx(0.0)


def test_error_applies_drive_multiplier() -> None:
    assert compute_error(FG, FG, BG) == pytest.approx(1.0)
    assert compute_error(BG, FG, BG) == pytest.approx(-1.0)


def test_error_is_clamped() -> None:
    assert compute_error((900, 900, 900), FG, BG) == pytest.approx(-1.0)
    assert compute_error((0, 0, 0), FG, BG) == pytest.approx(1.0)


def test_degenerate_channel_reads_midpoint() -> None:
    """A channel whose calibration colors match cannot divide; it counts as 0.5."""
    assert compute_error((110, 110, 999), FG, (200, 200, 20)) == pytest.approx(0.0)


def test_telemetry_color_halves_and_clamps() -> None:
    assert telemetry_color((300, 11, 600)) == (150, 5, 255)
    assert telemetry_color((-4, 0, 1)) == (0, 0, 0)


def test_centered_error_drives_fast_and_straight() -> None:
    follower = LineFollower(PidConfig())

    step = follower.step(0.0)

    assert step.speed == pytest.approx(1.0)
    assert step.left == pytest.approx(step.right)
    assert step.left == pytest.approx(1.0)


def test_step_output() -> None:
    follower = LineFollower(PidConfig())

    step = follower.step(0.5)

    # integral = 0.5 * 0.6, derivative = 0.5
    assert step.integral == pytest.approx(0.3)
    assert step.derivative == pytest.approx(0.5)
    assert step.output == pytest.approx(0.4 * 0.5 + 0.18 * 0.3 + 0.25 * 0.5)
    assert step.speed == pytest.approx(0.6)
    assert step.left == pytest.approx(0.6 + 0.5 * step.output)
    assert step.right == pytest.approx(0.6 - 0.5 * step.output)


def test_integral_decays_without_error() -> None:
    follower = LineFollower(PidConfig())
    follower.step(1.0)
    first = follower.state.integral

    follower.step(0.0)

    assert follower.state.integral == pytest.approx(first * 0.6)


def test_large_integral_selects_slow_speed() -> None:
    follower = LineFollower(PidConfig())
    follower.state.integral = 2.0

    step = follower.step(0.1)

    assert step.speed == pytest.approx(0.4)


def test_line_lost_after_sustained_jump() -> None:
    """A jump onto the background starts the counter; the step past the limit reports loss."""
    follower = LineFollower(PidConfig())

    for i in range(15):
        assert follower.step(-1.0) is not None, f"step {i + 1}"
        assert follower.state.lost_line == i + 1

    assert follower.step(-1.0) is None


def test_counter_resets_when_back_on_line() -> None:
    follower = LineFollower(PidConfig())
    for _ in range(5):
        follower.step(-1.0)

    follower.step(0.0)

    assert follower.state.lost_line == 0


def test_gradual_drift_does_not_count_as_lost() -> None:
    follower = LineFollower(PidConfig())

    for _ in range(30):
        assert follower.step(-0.6) is not None

    assert follower.state.lost_line == 0


def test_recovery_cycle() -> None:
    follower = LineFollower(PidConfig())
    follower.state.lost_line = 16

    follower.begin_recovery()

    assert follower.state.integral == pytest.approx(-2.5)
    assert follower.state.lost_line == 0
    assert follower.recovery_command() == (pytest.approx(-0.4), pytest.approx(0.4))
    assert not follower.is_line_found(-1.0)
    assert not follower.is_line_found(0.0)
    assert follower.is_line_found(0.5)

    follower.finish_recovery()
    assert follower.state.drive_slow == 20


def test_slow_window_after_recovery() -> None:
    follower = LineFollower(PidConfig())
    follower.finish_recovery()

    speeds = [follower.step(0.0).speed for _ in range(21)]

    assert speeds[:20] == [pytest.approx(0.4)] * 20
    assert speeds[20] == pytest.approx(1.0)


def test_no_loss_detection_during_slow_window() -> None:
    follower = LineFollower(PidConfig())
    follower.finish_recovery()

    follower.step(-1.0)

    assert follower.state.lost_line == 0


def test_reset_clears_state() -> None:
    follower = LineFollower(PidConfig())
    follower.step(1.0)
    follower.finish_recovery()

    follower.reset()

    assert follower.state.integral == 0.0
    assert follower.state.last_error == 0.0
    assert follower.state.drive_slow == 0


def test_integral_stays_bounded() -> None:
    follower = LineFollower(PidConfig())
    rng = np.random.default_rng(7)

    for error in np.concatenate([np.ones(200), -np.ones(200), rng.uniform(-1.0, 1.0, 500)]):
        follower.state.lost_line = 0
        follower.step(float(error))
        assert abs(follower.state.integral) <= 2.5
