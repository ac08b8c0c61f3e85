"""
PID Actor - owns the color sensor and runs the autonomous line follower.

Responsibilities:
- Publish the live sensor color as telemetry (idle and running)
- Follow the line and publish PidTrackCommand while running
- Search for a lost line with a blocking rotate-in-place loop
- Load calibration colors at start, save them on every change
"""

import logging
import queue
from enum import Enum
from typing import Optional, Tuple

from ..control.line_follower import LineFollower, compute_error, telemetry_color
from ..core.actor import Actor
from ..core.bus import MessageBus, Topics
from ..core.calibration import CalibrationStore
from ..core.config import Config
from ..core.messages import ColorTelemetry, PidCommand, PidCommandType, PidTrackCommand
from ..robot.hardware_base import HardwareInterface

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]


class PidMode(Enum):
    IDLE = "idle"
    RUNNING = "running"


class PidActor(Actor):
    """
    Line follower actor.

    Subscribes: /pid/command (PidCommand)
    Publishes: /driving/command (PidTrackCommand), /network/command (ColorTelemetry)

    While idle the actor waits up to idle_timeout_s for a command between
    telemetry readings. While running it only polls the channel, so the loop
    is paced by the sensor. Line recovery does not read the channel at all:
    commands sent during a search wait until the line is found again.
    """

    def __init__(
        self,
        bus: MessageBus,
        config: Config,
        hardware: HardwareInterface,
        store: Optional[CalibrationStore] = None,
    ):
        super().__init__(
            name="PidActor",
            bus=bus,
            config=config,
            restart_delay_s=config.supervision.restart_delay_s,
        )

        self._cfg = config.pid
        self._hardware = hardware
        self._store = store or CalibrationStore.from_config(config)

        self._command_queue = bus.subscribe_queue(Topics.PID_COMMAND)

        # Per-run state, reset in setup()
        self._follower = LineFollower(config.pid)
        self._mode = PidMode.IDLE
        self._foreground: Color = (config.pid.default_foreground,) * 3
        self._background: Color = (config.pid.default_background,) * 3

    @property
    def mode(self) -> PidMode:
        return self._mode

    @property
    def foreground(self) -> Color:
        return self._foreground

    @property
    def background(self) -> Color:
        return self._background

    @property
    def follower(self) -> LineFollower:
        return self._follower

    def setup(self) -> None:
        """Load calibration and start idle."""
        self._foreground = self._store.load_foreground()
        self._background = self._store.load_background()
        self._mode = PidMode.IDLE
        self._follower.reset()
        logger.info("[PidActor] Calibration foreground=%s background=%s",
                    self._foreground, self._background)

    def loop(self) -> None:
        if self._mode is PidMode.RUNNING:
            self._running_step()
        else:
            self._idle_step()

    # ============ Idle ============

    def _idle_step(self) -> None:
        try:
            cmd: PidCommand = self._command_queue.get(timeout=self._cfg.idle_timeout_s)
        except queue.Empty:
            cmd = None

        if cmd is not None:
            if cmd.command is PidCommandType.START:
                self._start_following()
            else:
                self._handle_calibration(cmd)

        if self._mode is PidMode.IDLE:
            self._read_sensor()

    # ============ Running ============

    def _running_step(self) -> None:
        try:
            cmd: Optional[PidCommand] = self._command_queue.get_nowait()
        except queue.Empty:
            cmd = None

        if cmd is not None:
            if cmd.command is PidCommandType.STOP:
                self._stop_following()
                return
            self._handle_calibration(cmd)

        error = self._sample_error()
        step = self._follower.step(error)
        if step is None:
            self._recover_line()
            return

        logger.debug("[PidActor] e=%.3f o=%.3f i=%.3f d=%.3f speed=%.2f",
                     step.error, step.output, step.integral, step.derivative, step.speed)
        self.bus.publish(Topics.DRIVING_COMMAND, PidTrackCommand(left=step.left, right=step.right))

    def _recover_line(self) -> None:
        """Rotate in place until a fresh reading crosses back onto the line."""
        logger.info("[PidActor] Line lost, searching")
        self._follower.begin_recovery()
        left, right = self._follower.recovery_command()

        # Blocks the command channel until the line is found
        while self.is_running():
            error = self._sample_error()
            if self._follower.is_line_found(error):
                break
            self.bus.publish(Topics.DRIVING_COMMAND, PidTrackCommand(left=left, right=right))

        self._follower.finish_recovery()
        logger.info("[PidActor] Line found")

    def _start_following(self) -> None:
        self._follower.reset()
        self._mode = PidMode.RUNNING
        logger.info("[PidActor] Line following started")

    def _stop_following(self) -> None:
        self.bus.publish(Topics.DRIVING_COMMAND, PidTrackCommand(left=0.0, right=0.0))
        self._mode = PidMode.IDLE
        logger.info("[PidActor] Line following stopped")

    # ============ Sensor ============

    def _read_sensor(self) -> Color:
        """Read the sensor and publish the reading as telemetry."""
        sensor = self._hardware.read_color_rgb()
        r, g, b = telemetry_color(sensor)
        self.bus.publish(Topics.NETWORK_COMMAND, ColorTelemetry(r=r, g=g, b=b))
        return sensor

    def _sample_error(self) -> float:
        return compute_error(
            self._read_sensor(),
            self._foreground,
            self._background,
            self._cfg.drive_multiplier,
        )

    def _handle_calibration(self, cmd: PidCommand) -> None:
        if cmd.command is PidCommandType.SET_FOREGROUND:
            self._foreground = self._hardware.read_color_rgb()
            self._store.save_foreground(self._foreground)
            logger.info("[PidActor] Foreground set to %s", self._foreground)
        elif cmd.command is PidCommandType.SET_BACKGROUND:
            self._background = self._hardware.read_color_rgb()
            self._store.save_background(self._background)
            logger.info("[PidActor] Background set to %s", self._background)

    def teardown(self) -> None:
        """Release the tracks if the run ends while following."""
        if self._mode is PidMode.RUNNING:
            self.bus.publish(Topics.DRIVING_COMMAND, PidTrackCommand(left=0.0, right=0.0))
            self._mode = PidMode.IDLE
