"""Shared fixtures: simulated EV3, bus, config with temporary storage."""

import queue

import pytest

from kickerbot.core.bus import MessageBus
from kickerbot.core.config import Config
from kickerbot.robot.simulated import SimulatedHardware


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def drain(q: queue.Queue) -> list:
    """Everything currently waiting on a subscriber queue."""
    items = []
    while True:
        try:
            items.append(q.get_nowait())
        except queue.Empty:
            return items


@pytest.fixture
def config(tmp_path) -> Config:
    cfg = Config()
    cfg.hardware.backend = "sim"
    cfg.storage.foreground_path = str(tmp_path / "foreground")
    cfg.storage.background_path = str(tmp_path / "background")
    cfg.storage.name_path = str(tmp_path / "name")
    cfg.storage.color_path = str(tmp_path / "color")
    cfg.pid.idle_timeout_s = 0.01
    cfg.driving.receive_timeout_s = 0.01
    cfg.supervision.restart_delay_s = 0.0
    return cfg


@pytest.fixture
def bus() -> MessageBus:
    return MessageBus()


@pytest.fixture
def hardware() -> SimulatedHardware:
    return SimulatedHardware()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
