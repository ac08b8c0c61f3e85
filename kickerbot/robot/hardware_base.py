"""
Abstract hardware interface for the robot.

Defines the common interface that both the real EV3 and the simulation must
implement. Each group of devices has exactly one owning actor:
motors -> DrivingActor, color sensor -> PidActor, LEDs and power supply ->
NetworkActor (through Status).
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Tuple


class HardwareError(OSError):
    """A device read or write failed. Fatal to the calling actor's run."""


class Motor(Enum):
    LEFT = "left"
    RIGHT = "right"
    KICKER = "kicker"


class LedColor(Enum):
    BLACK = "BLACK"
    RED = "RED"
    GREEN = "GREEN"
    AMBER = "AMBER"
    ORANGE = "ORANGE"
    YELLOW = "YELLOW"


class HardwareInterface(ABC):
    """
    Abstract interface for robot hardware or simulation backend.

    All methods must be implemented by concrete classes (EV3Hardware,
    SimulatedHardware). Every I/O failure is raised as HardwareError.
    """

    @abstractmethod
    def connect(self) -> None:
        """Open the devices. Raises HardwareError if one is missing."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Stop motors and release devices."""
        pass

    # ============ Motors ============

    @abstractmethod
    def set_duty_cycle(self, motor: Motor, percent: float) -> None:
        """Set the duty cycle setpoint (-100..100) used in direct mode."""
        pass

    @abstractmethod
    def run_direct(self, motor: Motor) -> None:
        """Switch the motor to follow its duty cycle setpoint immediately."""
        pass

    @abstractmethod
    def set_speed(self, motor: Motor, speed: int) -> None:
        """Set the speed setpoint used by timed and position runs."""
        pass

    @abstractmethod
    def run_timed(self, motor: Motor, duration_ms: int) -> None:
        """Run at the speed setpoint for duration_ms, then stop."""
        pass

    @abstractmethod
    def run_to_absolute_position(self, motor: Motor, position: int) -> None:
        """
        Start driving to an absolute encoder position and return at once.

        Args:
            position: Target position in encoder ticks
        """
        pass

    @abstractmethod
    def stop(self, motor: Motor) -> None:
        """Stop the motor (brake)."""
        pass

    @abstractmethod
    def set_position(self, motor: Motor, value: int) -> None:
        """Redefine the current encoder position."""
        pass

    # ============ Sensors ============

    @abstractmethod
    def read_color_rgb(self) -> Tuple[int, int, int]:
        """Read the raw red, green and blue channels of the color sensor."""
        pass

    # ============ Status ============

    @abstractmethod
    def set_left_indicator_color(self, color: LedColor) -> None:
        pass

    @abstractmethod
    def set_right_indicator_color(self, color: LedColor) -> None:
        pass

    @abstractmethod
    def read_voltage_now(self) -> float:
        pass

    @abstractmethod
    def read_voltage_min(self) -> float:
        """Minimum design voltage of the power supply."""
        pass

    @abstractmethod
    def read_voltage_max(self) -> float:
        """Maximum design voltage of the power supply."""
        pass


def create_hardware(config) -> HardwareInterface:
    """Build the backend named by config.hardware.backend."""
    backend = config.hardware.backend
    # Lazy imports to avoid loading ev3dev2 when not needed
    if backend == "sim":
        from .simulated import SimulatedHardware
        return SimulatedHardware()
    if backend == "ev3":
        from .ev3 import EV3Hardware
        return EV3Hardware(
            left_port=config.hardware.left_motor_port,
            right_port=config.hardware.right_motor_port,
            kicker_port=config.hardware.kicker_port,
        )
    raise ValueError(f"Unknown hardware backend: {backend}")
