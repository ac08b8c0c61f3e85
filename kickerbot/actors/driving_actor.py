"""
Driving Actor - owns the traction motors and the kicker.

Responsibilities:
- Calibrate the kicker against its hard stop at the start of every run
- Blend manual and line follower track commands into motor duty cycles
- Fire the kicker and retract it after a fixed time
"""

import logging
import queue
import time
from typing import Callable, Optional, Tuple

from ..core.actor import Actor
from ..core.bus import MessageBus, Topics
from ..core.config import Config
from ..core.messages import (
    TrackCommand, PidTrackCommand, TrimCommand, KickRequest, StopCommand, MotorOutput
)
from ..robot.hardware_base import HardwareInterface, Motor

logger = logging.getLogger(__name__)


def blend_tracks(manual: Tuple[float, float], pid: Tuple[float, float]) -> Tuple[float, float]:
    """Sum manual and autonomous fractions per side and clamp to [-1, 1]."""
    left = max(-1.0, min(1.0, manual[0] + pid[0]))
    right = max(-1.0, min(1.0, manual[1] + pid[1]))
    return left, right


class DrivingActor(Actor):
    """
    Motor actuation actor.

    Subscribes: /driving/command (TrackCommand, PidTrackCommand, TrimCommand,
                KickRequest, StopCommand)
    Publishes: /driving/output (MotorOutput)
    """

    def __init__(
        self,
        bus: MessageBus,
        config: Config,
        hardware: HardwareInterface,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(
            name="DrivingActor",
            bus=bus,
            config=config,
            restart_delay_s=config.supervision.restart_delay_s,
        )

        self._cfg = config.driving
        self._hardware = hardware
        self._clock = clock
        self._sleep = sleep

        # The channel outlives individual runs
        self._command_queue = bus.subscribe_queue(Topics.DRIVING_COMMAND)

        self._handlers = {
            TrackCommand: self._on_track,
            PidTrackCommand: self._on_pid_track,
            TrimCommand: self._on_trim,
            KickRequest: self._on_kick,
            StopCommand: self._on_stop,
        }

        # Per-run state, reset in setup()
        self._manual = (0.0, 0.0)
        self._pid = (0.0, 0.0)
        self._kick_started: Optional[float] = None

    def setup(self) -> None:
        """Reset state, calibrate the kicker and put the tracks in direct mode."""
        self._manual = (0.0, 0.0)
        self._pid = (0.0, 0.0)
        self._kick_started = None

        self._calibrate_kicker()

        for motor in (Motor.LEFT, Motor.RIGHT):
            self._hardware.set_duty_cycle(motor, 0)
        for motor in (Motor.LEFT, Motor.RIGHT):
            self._hardware.run_direct(motor)

    def _calibrate_kicker(self) -> None:
        """Run the kicker backwards into its hard stop and call that position zero."""
        cfg = self._cfg
        self._hardware.set_speed(Motor.KICKER, cfg.kicker_calibration_speed)
        self._hardware.run_timed(Motor.KICKER, cfg.kicker_calibration_ms)
        self._sleep(cfg.kicker_calibration_ms / 1000.0)
        self._hardware.stop(Motor.KICKER)
        self._sleep(cfg.kicker_settle_ms / 1000.0)
        self._hardware.set_position(Motor.KICKER, 0)
        self._hardware.set_speed(Motor.KICKER, cfg.kicker_speed)
        logger.info("[DrivingActor] Kicker calibrated")

    def loop(self) -> None:
        """Wait briefly for one command, then advance the kick timer."""
        try:
            cmd = self._command_queue.get(timeout=self._cfg.receive_timeout_s)
        except queue.Empty:
            cmd = None

        if cmd is not None:
            handler = self._handlers.get(type(cmd))
            if handler:
                handler(cmd)
            else:
                logger.warning("[DrivingActor] Unknown command: %r", cmd)

        self._update_kick()

    # ============ Tracks ============

    def _on_track(self, cmd: TrackCommand) -> None:
        self._manual = (cmd.left, cmd.right)
        self._apply_output()

    def _on_pid_track(self, cmd: PidTrackCommand) -> None:
        self._pid = (cmd.left * self._cfg.pid_speed, cmd.right * self._cfg.pid_speed)
        self._apply_output()

    def _on_trim(self, cmd: TrimCommand) -> None:
        # Trim is part of the protocol but steers nothing yet
        logger.debug("[DrivingActor] Trim %.3f ignored", cmd.trim)

    def _apply_output(self) -> None:
        left, right = blend_tracks(self._manual, self._pid)
        left_duty = left * self._cfg.max_speed
        right_duty = right * self._cfg.max_speed

        self._hardware.set_duty_cycle(Motor.LEFT, left_duty)
        self._hardware.set_duty_cycle(Motor.RIGHT, right_duty)

        self.bus.publish(Topics.MOTOR_OUTPUT, MotorOutput(left_duty=left_duty, right_duty=right_duty))

    # ============ Kicker ============

    def _on_kick(self, cmd: KickRequest) -> None:
        if self._kick_started is not None:
            return
        self._kick_started = self._clock()
        self._hardware.run_to_absolute_position(Motor.KICKER, self._cfg.kick_position)

    def _kick_elapsed_ms(self) -> float:
        return (self._clock() - self._kick_started) * 1000.0

    def _update_kick(self) -> None:
        if self._kick_started is None:
            return
        if self._kick_elapsed_ms() > self._cfg.kick_duration_ms:
            self._retract_kicker()

    def _retract_kicker(self) -> None:
        self._kick_started = None
        self._hardware.run_to_absolute_position(Motor.KICKER, 0)

    # ============ Stop ============

    def _on_stop(self, cmd: StopCommand) -> None:
        # A kick in flight always completes its retract
        if self._kick_started is not None:
            remaining_ms = self._cfg.kick_duration_ms - self._kick_elapsed_ms()
            if remaining_ms > 0:
                self._sleep(remaining_ms / 1000.0)
            self._retract_kicker()

        logger.info("[DrivingActor] Stop requested %s", cmd.reason)
        self.finish()

    def teardown(self) -> None:
        """Leave the tracks idle."""
        for motor in (Motor.LEFT, Motor.RIGHT):
            self._hardware.set_duty_cycle(motor, 0)

    @property
    def kick_in_flight(self) -> bool:
        return self._kick_started is not None
