"""
Main orchestrator for the kicker robot.

Wires the hardware, the message bus and the four actors together and keeps
them running until interrupted.
"""

import argparse
import logging
import time
from typing import List, Optional

from .core.actor import Actor
from .core.bus import MessageBus, Topics
from .core.calibration import CalibrationStore
from .core.config import Config, load_config, save_config
from .core.messages import PidCommand, PidCommandType, StopCommand
from .robot.hardware_base import HardwareInterface, create_hardware
from .robot.status import Status

from .actors.driving_actor import DrivingActor
from .actors.pid_actor import PidActor
from .actors.network_actor import NetworkActor
from .actors.command_router_actor import CommandRouterActor

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s: [%(threadName)s] %(name)s - %(message)s"


class RobotController:
    """
    Main controller owning all actors.

    Responsibilities:
    - Connect the hardware backend
    - Create the bus, Status and the actors
    - Start the actors and keep the process alive
    - Stop everything in order on shutdown
    """

    def __init__(self, config: Config, hardware: Optional[HardwareInterface] = None):
        self.config = config
        self.bus = MessageBus()

        self.hardware = hardware or create_hardware(config)
        self.status: Optional[Status] = None
        self.store = CalibrationStore.from_config(config)

        self.driving: Optional[DrivingActor] = None
        self.pid: Optional[PidActor] = None
        self.network: Optional[NetworkActor] = None
        self.router: Optional[CommandRouterActor] = None

        self._running = False

    @property
    def actors(self) -> List[Actor]:
        return [a for a in (self.driving, self.pid, self.network, self.router) if a is not None]

    def setup(self) -> None:
        """Connect hardware and start all actors."""
        logger.info("[Controller] Setting up...")
        self.hardware.connect()

        storage = self.config.storage
        self.status = Status(self.hardware, name_path=storage.name_path, color_path=storage.color_path)

        self.driving = DrivingActor(self.bus, self.config, self.hardware)
        self.pid = PidActor(self.bus, self.config, self.hardware, store=self.store)
        self.network = NetworkActor(self.bus, self.config, self.status)
        self.router = CommandRouterActor(self.bus, self.config)

        for actor in self.actors:
            actor.start()
        logger.info("[Controller] Setup complete")

    def run(self) -> None:
        """Block until interrupted, then shut down."""
        self._running = True
        logger.info("[Controller] Running, %s", self.status.get_name() if self.status else "")
        try:
            while self._running:
                time.sleep(1.0)
        except KeyboardInterrupt:
            logger.info("[Controller] Interrupted")
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Stop line following, drain every actor and release the hardware."""
        logger.info("[Controller] Shutting down...")
        self._running = False

        # Ask each actor to finish its current run before stopping the threads
        self.bus.publish(Topics.PID_COMMAND, PidCommand(command=PidCommandType.STOP))
        self.bus.publish(Topics.ROBOT_COMMAND, StopCommand(reason="shutdown"))
        self.bus.publish(Topics.NETWORK_CONTROL, StopCommand(reason="shutdown"))
        self.bus.publish(Topics.DRIVING_COMMAND, StopCommand(reason="shutdown"))

        for actor in (self.router, self.pid, self.network, self.driving):
            if actor is not None:
                actor.stop()

        self.hardware.disconnect()
        logger.info("[Controller] Shutdown complete")


def main():
    parser = argparse.ArgumentParser(description="EV3 kicker robot controller")
    parser.add_argument("--config", type=str, help="Path to config file")
    parser.add_argument("--sim", action="store_true", help="Use simulated hardware instead of the EV3")
    parser.add_argument("--broadcast", type=str, help="Broadcast address used for discovery")
    parser.add_argument("--discovery-port", type=int, help="UDP port the controller listens on")
    parser.add_argument("--log-level", type=str, default="INFO", help="Logging level (DEBUG, INFO, ...)")
    parser.add_argument("--dump-config", type=str, metavar="PATH",
                        help="Write the effective configuration to PATH and exit")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format=LOG_FORMAT)

    # Load config
    config = load_config(args.config)

    # Command line overrides
    if args.sim:
        config.hardware.backend = "sim"
    if args.broadcast:
        config.network.broadcast_address = args.broadcast
    if args.discovery_port:
        config.network.discovery_port = args.discovery_port

    if args.dump_config:
        save_config(config, args.dump_config)
        logger.info("Configuration written to %s", args.dump_config)
        return

    controller = RobotController(config)
    controller.setup()
    controller.run()


if __name__ == "__main__":
    main()
