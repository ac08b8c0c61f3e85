"""
In-memory simulation backend.

Implements the HardwareInterface so the controller can run on a desktop
(--sim) and so actors can be exercised without an EV3. Every motor call is
recorded; the color reading comes from a fixed value or a script.
"""

import threading
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from .hardware_base import HardwareInterface, HardwareError, LedColor, Motor

Color = Tuple[int, int, int]


class SimulatedHardware(HardwareInterface):
    """
    Simulated EV3.

    color_source may be a fixed (r, g, b), an iterable of readings (the last
    one repeats once exhausted) or a callable returning a reading.
    """

    def __init__(
        self,
        color_source: Union[Color, Iterable[Color], Callable[[], Color]] = (110, 110, 110),
        voltage_now: float = 7.5,
        voltage_min: float = 6.0,
        voltage_max: float = 9.0,
    ):
        self._lock = threading.Lock()
        self.connected = False

        self.calls: List[tuple] = []
        self.duty_cycles: Dict[Motor, float] = {m: 0.0 for m in Motor}
        self.speeds: Dict[Motor, int] = {m: 0 for m in Motor}
        self.positions: Dict[Motor, int] = {m: 0 for m in Motor}
        self.direct: Dict[Motor, bool] = {m: False for m in Motor}
        self.left_led = LedColor.BLACK
        self.right_led = LedColor.BLACK

        self.voltage_now = voltage_now
        self.voltage_min = voltage_min
        self.voltage_max = voltage_max

        self.color_reads = 0
        self.fail_color_reads = 0  # Number of upcoming reads that raise
        self.fail_motor_writes = 0  # Number of upcoming motor calls that raise

        self._color_fixed: Optional[Color] = None
        self._color_iter = None
        self._color_call: Optional[Callable[[], Color]] = None
        self._color_last: Color = (0, 0, 0)
        self.set_color_source(color_source)

    def set_color_source(self, source) -> None:
        with self._lock:
            self._color_fixed = None
            self._color_iter = None
            self._color_call = None
            if callable(source):
                self._color_call = source
            elif isinstance(source, tuple) and len(source) == 3 and all(isinstance(c, int) for c in source):
                self._color_fixed = source
            else:
                self._color_iter = iter(source)

    def connect(self) -> None:
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False

    def _record(self, *call) -> None:
        with self._lock:
            if self.fail_motor_writes > 0:
                self.fail_motor_writes -= 1
                raise HardwareError(f"Simulated motor failure on {call[0]}")
            self.calls.append(call)

    def calls_for(self, motor: Motor) -> List[tuple]:
        """Recorded calls that targeted one motor."""
        with self._lock:
            return [c for c in self.calls if c[1] == motor]

    # ============ Motors ============

    def set_duty_cycle(self, motor: Motor, percent: float) -> None:
        self._record("set_duty_cycle", motor, percent)
        self.duty_cycles[motor] = percent

    def run_direct(self, motor: Motor) -> None:
        self._record("run_direct", motor)
        self.direct[motor] = True

    def set_speed(self, motor: Motor, speed: int) -> None:
        self._record("set_speed", motor, speed)
        self.speeds[motor] = speed

    def run_timed(self, motor: Motor, duration_ms: int) -> None:
        self._record("run_timed", motor, duration_ms)

    def run_to_absolute_position(self, motor: Motor, position: int) -> None:
        self._record("run_to_absolute_position", motor, position)
        self.positions[motor] = position

    def stop(self, motor: Motor) -> None:
        self._record("stop", motor)
        self.direct[motor] = False

    def set_position(self, motor: Motor, value: int) -> None:
        self._record("set_position", motor, value)
        self.positions[motor] = value

    # ============ Sensors ============

    def read_color_rgb(self) -> Color:
        with self._lock:
            self.color_reads += 1
            if self.fail_color_reads > 0:
                self.fail_color_reads -= 1
                raise HardwareError("Simulated color sensor failure")
            if self._color_call is not None:
                return self._color_call()
            if self._color_fixed is not None:
                return self._color_fixed
            self._color_last = next(self._color_iter, self._color_last)
            return self._color_last

    # ============ Status ============

    def set_left_indicator_color(self, color: LedColor) -> None:
        self.left_led = color

    def set_right_indicator_color(self, color: LedColor) -> None:
        self.right_led = color

    def read_voltage_now(self) -> float:
        return self.voltage_now

    def read_voltage_min(self) -> float:
        return self.voltage_min

    def read_voltage_max(self) -> float:
        return self.voltage_max
