"""
CommandRouter Actor - dispatches decoded controller commands.

Responsibilities:
- Subscribe to controller messages forwarded by the NetworkActor
- Translate them into DrivingActor and PidActor commands, in arrival order
"""

import logging
import queue

from ..core.actor import Actor
from ..core.bus import MessageBus, Topics
from ..core.config import Config
from ..core.messages import (
    KickRequest, PidCommand, PidCommandType, StopCommand, TrackCommand, TrimCommand
)
from ..core.protocol import Kick, SetBackground, SetForeground, SetPid, SetTrack, SetTrim

logger = logging.getLogger(__name__)

RECEIVE_TIMEOUT_S = 0.1


class CommandRouterActor(Actor):
    """
    Command routing actor.

    Subscribes: /robot/command (SetTrack, SetTrim, Kick, SetPid, SetForeground,
                SetBackground; StopCommand ends the router)
    Publishes: /driving/command, /pid/command
    """

    def __init__(self, bus: MessageBus, config: Config):
        super().__init__(
            name="CommandRouterActor",
            bus=bus,
            config=config,
            restart_delay_s=config.supervision.restart_delay_s,
        )

        self._command_queue = bus.subscribe_queue(Topics.ROBOT_COMMAND)

        self._handlers = {
            SetTrack: self._handle_set_track,
            SetTrim: self._handle_set_trim,
            Kick: self._handle_kick,
            SetPid: self._handle_set_pid,
            SetForeground: self._handle_set_foreground,
            SetBackground: self._handle_set_background,
            StopCommand: self._handle_stop,
        }

    def setup(self) -> None:
        pass

    def loop(self) -> None:
        """Route the next command, if one arrives in time."""
        try:
            cmd = self._command_queue.get(timeout=RECEIVE_TIMEOUT_S)
        except queue.Empty:
            return
        self.route(cmd)

    def route(self, cmd) -> None:
        """Route one controller command to the actor that owns it."""
        handler = self._handlers.get(type(cmd))
        if handler:
            logger.debug("[CommandRouter] %r", cmd)
            handler(cmd)
        else:
            logger.debug("[CommandRouter] No route for %r", cmd)

    def _handle_set_track(self, cmd: SetTrack) -> None:
        self.bus.publish(Topics.DRIVING_COMMAND, TrackCommand(left=cmd.left, right=cmd.right))

    def _handle_set_trim(self, cmd: SetTrim) -> None:
        self.bus.publish(Topics.DRIVING_COMMAND, TrimCommand(trim=cmd.trim))

    def _handle_kick(self, cmd: Kick) -> None:
        self.bus.publish(Topics.DRIVING_COMMAND, KickRequest())

    def _handle_set_pid(self, cmd: SetPid) -> None:
        command = PidCommandType.START if cmd.enabled else PidCommandType.STOP
        self.bus.publish(Topics.PID_COMMAND, PidCommand(command=command))

    def _handle_set_foreground(self, cmd: SetForeground) -> None:
        self.bus.publish(Topics.PID_COMMAND, PidCommand(command=PidCommandType.SET_FOREGROUND))

    def _handle_set_background(self, cmd: SetBackground) -> None:
        self.bus.publish(Topics.PID_COMMAND, PidCommand(command=PidCommandType.SET_BACKGROUND))

    def _handle_stop(self, cmd: StopCommand) -> None:
        logger.info("[CommandRouter] Stop requested %s", cmd.reason)
        self.finish()

    def teardown(self) -> None:
        pass
