"""Robot-specific code."""

from .hardware_base import HardwareInterface, HardwareError, Motor, LedColor, create_hardware
from .status import Status

# EV3Hardware is imported lazily by create_hardware() to avoid loading
# ev3dev2 when only the simulation is needed

__all__ = [
    "HardwareInterface",
    "HardwareError",
    "Motor",
    "LedColor",
    "create_hardware",
    "Status",
]
