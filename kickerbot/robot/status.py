"""
Robot identity and status indicators.

Status keeps the robot's name and team color label on disk, renders the
color label on the left LED and the connection state on the right LED, and
reports the battery level. It is owned by the NetworkActor, the only writer
of the connection state.
"""

import logging
from pathlib import Path
from typing import List

from .. import __version__
from ..core.messages import ConnectionState
from .hardware_base import HardwareInterface, LedColor

logger = logging.getLogger(__name__)

DEFAULT_NAME = "EV3"
COLOR_OFF = "black"

# Team color labels offered to the controller, in display order
AVAILABLE_COLORS = {
    "lime": LedColor.GREEN,
    "yellow": LedColor.YELLOW,
    "amber": LedColor.AMBER,
    "orange": LedColor.ORANGE,
    "red": LedColor.RED,
}

CONNECTION_COLORS = {
    ConnectionState.DISCONNECTED: LedColor.RED,
    ConnectionState.CONNECTING: LedColor.AMBER,
    ConnectionState.CONNECTED: LedColor.GREEN,
    ConnectionState.RECONNECTING: LedColor.YELLOW,
}


class Status:
    """Name, color label, LEDs and power level."""

    def __init__(self, hardware: HardwareInterface, name_path: str = "name", color_path: str = "color"):
        self._hardware = hardware
        self._name_path = Path(name_path)
        self._color_path = Path(color_path)
        self._connection = ConnectionState.DISCONNECTED

        if not self._name_path.exists():
            self.set_name(DEFAULT_NAME)
        if not self._color_path.exists():
            self._color_path.write_text(COLOR_OFF)

        self._render()

    @property
    def connection_state(self) -> ConnectionState:
        return self._connection

    @property
    def version(self) -> str:
        return __version__

    @property
    def available_colors(self) -> List[str]:
        return list(AVAILABLE_COLORS)

    def get_name(self) -> str:
        try:
            return self._name_path.read_text()
        except OSError:
            return ""

    def set_name(self, name: str) -> None:
        self._name_path.write_text(name)
        logger.info("Name set to %r", name)

    def get_color(self) -> str:
        try:
            return self._color_path.read_text()
        except OSError:
            return ""

    def set_color(self, color: str) -> None:
        self._color_path.write_text(color)
        logger.info("Color set to %r", color)
        self._render()

    def set_connection_state(self, state: ConnectionState) -> None:
        self._connection = state
        self._render()

    def get_power(self) -> float:
        """Battery level in [0, 1], relative to the design voltage range."""
        now = self._hardware.read_voltage_now()
        low = self._hardware.read_voltage_min()
        high = self._hardware.read_voltage_max()
        if high <= low:
            return 0.0
        return min(1.0, max(0.0, (now - low) / (high - low)))

    def _render(self) -> None:
        main_color = AVAILABLE_COLORS.get(self.get_color().strip(), LedColor.BLACK)
        self._hardware.set_left_indicator_color(main_color)
        self._hardware.set_right_indicator_color(CONNECTION_COLORS[self._connection])
