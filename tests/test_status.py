"""Tests for Status: identity files, LEDs and power."""

from pathlib import Path

import pytest

from kickerbot import __version__
from kickerbot.core.messages import ConnectionState
from kickerbot.robot.hardware_base import LedColor
from kickerbot.robot.status import Status


@pytest.fixture
def status(hardware, tmp_path):
    return Status(hardware, name_path=str(tmp_path / "name"), color_path=str(tmp_path / "color"))


def test_defaults_written_on_first_start(status, hardware, tmp_path) -> None:
    assert (tmp_path / "name").read_text() == "EV3"
    assert (tmp_path / "color").read_text() == "black"
    assert hardware.left_led is LedColor.BLACK
    assert hardware.right_led is LedColor.RED


def test_existing_identity_is_kept(hardware, tmp_path) -> None:
    (tmp_path / "name").write_text("Keeper")
    (tmp_path / "color").write_text("orange")

    status = Status(hardware, name_path=str(tmp_path / "name"), color_path=str(tmp_path / "color"))

    assert status.get_name() == "Keeper"
    assert hardware.left_led is LedColor.ORANGE


def test_set_name_persists(status, tmp_path) -> None:
    status.set_name("Striker")

    assert status.get_name() == "Striker"
    assert Path(tmp_path / "name").read_text() == "Striker"


def test_set_color_updates_left_led(status, hardware) -> None:
    status.set_color("lime")
    assert hardware.left_led is LedColor.GREEN

    status.set_color("purple")
    assert hardware.left_led is LedColor.BLACK
    assert status.get_color() == "purple"


@pytest.mark.parametrize("state, led", [
    (ConnectionState.DISCONNECTED, LedColor.RED),
    (ConnectionState.CONNECTING, LedColor.AMBER),
    (ConnectionState.CONNECTED, LedColor.GREEN),
    (ConnectionState.RECONNECTING, LedColor.YELLOW),
])
def test_connection_state_on_right_led(status, hardware, state, led) -> None:
    status.set_connection_state(state)

    assert status.connection_state is state
    assert hardware.right_led is led


def test_available_colors_and_version(status) -> None:
    assert status.available_colors == ["lime", "yellow", "amber", "orange", "red"]
    assert status.version == __version__


def test_power_fraction(status, hardware) -> None:
    assert status.get_power() == pytest.approx(0.5)

    hardware.voltage_now = 9.6
    assert status.get_power() == 1.0

    hardware.voltage_now = 5.0
    assert status.get_power() == 0.0


def test_power_with_empty_range(status, hardware) -> None:
    hardware.voltage_min = 7.0
    hardware.voltage_max = 7.0

    assert status.get_power() == 0.0
