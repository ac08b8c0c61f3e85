"""
LEGO EV3 hardware interface (ev3dev).

Thin wrapper around python-ev3dev2 - no control logic, just I/O.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Optional, Tuple

from ev3dev2 import DeviceNotFound
from ev3dev2.led import Leds
from ev3dev2.motor import LargeMotor, MediumMotor, OUTPUT_A, OUTPUT_B, OUTPUT_C, OUTPUT_D
from ev3dev2.power import PowerSupply
from ev3dev2.sensor.lego import ColorSensor

from .hardware_base import HardwareInterface, HardwareError, LedColor, Motor

logger = logging.getLogger(__name__)

PORTS = {
    "outA": OUTPUT_A,
    "outB": OUTPUT_B,
    "outC": OUTPUT_C,
    "outD": OUTPUT_D,
}


@contextmanager
def _io(what: str):
    """Re-raise any ev3dev2 failure as HardwareError."""
    try:
        yield
    except HardwareError:
        raise
    except (OSError, DeviceNotFound) as e:
        raise HardwareError(f"{what}: {e}") from e


class EV3Hardware(HardwareInterface):
    """
    EV3 brick: two large traction motors, a medium kicker motor, a color
    sensor in raw RGB mode, the two brick LEDs and the battery.
    """

    def __init__(self, left_port: str = "outB", right_port: str = "outA", kicker_port: str = "outC"):
        self.left_port = left_port
        self.right_port = right_port
        self.kicker_port = kicker_port

        self._motors: Dict[Motor, object] = {}
        self._color_sensor: Optional[ColorSensor] = None
        self._leds: Optional[Leds] = None
        self._power: Optional[PowerSupply] = None

    def connect(self) -> None:
        with _io("connect"):
            self._motors = {
                Motor.LEFT: LargeMotor(PORTS[self.left_port]),
                Motor.RIGHT: LargeMotor(PORTS[self.right_port]),
                Motor.KICKER: MediumMotor(PORTS[self.kicker_port]),
            }
            self._motors[Motor.KICKER].stop_action = MediumMotor.STOP_ACTION_BRAKE

            self._color_sensor = ColorSensor()
            self._color_sensor.mode = ColorSensor.MODE_RGB_RAW

            self._leds = Leds()
            self._power = PowerSupply()
        logger.info("EV3 devices ready (left=%s right=%s kicker=%s)",
                    self.left_port, self.right_port, self.kicker_port)

    def disconnect(self) -> None:
        for motor in self._motors.values():
            try:
                motor.stop()
            except (OSError, DeviceNotFound) as e:
                logger.warning("Failed to stop motor on disconnect: %s", e)
        self._motors = {}
        self._color_sensor = None
        self._leds = None
        self._power = None

    def _motor(self, motor: Motor):
        try:
            return self._motors[motor]
        except KeyError:
            raise HardwareError(f"Motor {motor.value} not connected") from None

    # ============ Motors ============

    def set_duty_cycle(self, motor: Motor, percent: float) -> None:
        with _io(f"duty cycle {motor.value}"):
            self._motor(motor).duty_cycle_sp = int(percent)

    def run_direct(self, motor: Motor) -> None:
        with _io(f"run direct {motor.value}"):
            self._motor(motor).run_direct()

    def set_speed(self, motor: Motor, speed: int) -> None:
        with _io(f"speed {motor.value}"):
            self._motor(motor).speed_sp = speed

    def run_timed(self, motor: Motor, duration_ms: int) -> None:
        with _io(f"run timed {motor.value}"):
            self._motor(motor).run_timed(time_sp=duration_ms)

    def run_to_absolute_position(self, motor: Motor, position: int) -> None:
        with _io(f"run to position {motor.value}"):
            self._motor(motor).run_to_abs_pos(position_sp=position)

    def stop(self, motor: Motor) -> None:
        with _io(f"stop {motor.value}"):
            self._motor(motor).stop()

    def set_position(self, motor: Motor, value: int) -> None:
        with _io(f"position {motor.value}"):
            self._motor(motor).position = value

    # ============ Sensors ============

    def read_color_rgb(self) -> Tuple[int, int, int]:
        if self._color_sensor is None:
            raise HardwareError("Color sensor not connected")
        with _io("color sensor"):
            r, g, b = self._color_sensor.raw
        return (int(r), int(g), int(b))

    # ============ Status ============

    def set_left_indicator_color(self, color: LedColor) -> None:
        self._set_led("LEFT", color)

    def set_right_indicator_color(self, color: LedColor) -> None:
        self._set_led("RIGHT", color)

    def _set_led(self, group: str, color: LedColor) -> None:
        if self._leds is None:
            raise HardwareError("LEDs not connected")
        with _io(f"led {group}"):
            self._leds.set_color(group, color.value)

    def read_voltage_now(self) -> float:
        return self._read_power("measured_volts")

    # Design limits are reported in microvolts
    def read_voltage_min(self) -> float:
        return self._read_power("min_voltage") / 1e6

    def read_voltage_max(self) -> float:
        return self._read_power("max_voltage") / 1e6

    def _read_power(self, attribute: str) -> float:
        if self._power is None:
            raise HardwareError("Power supply not connected")
        with _io(f"power {attribute}"):
            return float(getattr(self._power, attribute))
