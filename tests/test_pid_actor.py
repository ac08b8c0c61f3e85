"""Tests for PidActor: telemetry, start/stop, calibration and line recovery."""

import time
from pathlib import Path

import pytest

from kickerbot.actors.pid_actor import PidActor, PidMode
from kickerbot.core.bus import Topics
from kickerbot.core.messages import ColorTelemetry, PidCommand, PidCommandType, PidTrackCommand

from conftest import drain

FG = (20, 20, 20)
BG = (200, 200, 200)


@pytest.fixture
def tracks(bus):
    return bus.subscribe_queue(Topics.DRIVING_COMMAND)


@pytest.fixture
def telemetry(bus):
    return bus.subscribe_queue(Topics.NETWORK_COMMAND)


@pytest.fixture
def actor(bus, config, hardware):
    pid = PidActor(bus, config, hardware)
    pid._running.set()
    pid.setup()
    return pid


def command(bus, kind: PidCommandType) -> None:
    bus.publish(Topics.PID_COMMAND, PidCommand(command=kind))


def start(bus, actor) -> None:
    command(bus, PidCommandType.START)
    actor.loop()
    assert actor.mode is PidMode.RUNNING


def test_setup_uses_default_calibration(actor) -> None:
    assert actor.foreground == FG
    assert actor.background == BG
    assert actor.mode is PidMode.IDLE


def test_setup_loads_saved_calibration(bus, config, hardware) -> None:
    Path(config.storage.foreground_path).write_text("1;2;3")
    Path(config.storage.background_path).write_text("bad")

    pid = PidActor(bus, config, hardware)
    pid.setup()

    assert pid.foreground == (1, 2, 3)
    assert pid.background == BG


def test_idle_publishes_telemetry(actor, hardware, telemetry, tracks) -> None:
    hardware.set_color_source((300, 40, 7))

    actor.loop()

    assert drain(telemetry) == [ColorTelemetry(r=150, g=20, b=3)]
    assert drain(tracks) == []


def test_start_switches_to_running_without_reading(bus, actor, hardware) -> None:
    start(bus, actor)

    assert hardware.color_reads == 0


def test_running_publishes_track_command(bus, actor, tracks, telemetry) -> None:
    start(bus, actor)

    actor.loop()

    assert drain(tracks) == [PidTrackCommand(left=pytest.approx(1.0), right=pytest.approx(1.0))]
    assert len(drain(telemetry)) == 1


def test_stop_releases_tracks(bus, actor, tracks, hardware) -> None:
    start(bus, actor)
    actor.loop()
    drain(tracks)
    reads = hardware.color_reads

    command(bus, PidCommandType.STOP)
    actor.loop()

    assert drain(tracks) == [PidTrackCommand(0.0, 0.0)]
    assert actor.mode is PidMode.IDLE
    assert hardware.color_reads == reads


def test_set_foreground_saves_current_reading(bus, actor, hardware, config) -> None:
    hardware.set_color_source((30, 40, 50))

    command(bus, PidCommandType.SET_FOREGROUND)
    actor.loop()

    assert actor.foreground == (30, 40, 50)
    assert Path(config.storage.foreground_path).read_text() == "30;40;50"


def test_set_background_while_running(bus, actor, hardware, config) -> None:
    start(bus, actor)
    hardware.set_color_source((180, 190, 200))

    command(bus, PidCommandType.SET_BACKGROUND)
    actor.loop()

    assert actor.background == (180, 190, 200)
    assert Path(config.storage.background_path).read_text() == "180;190;200"
    assert actor.mode is PidMode.RUNNING


def test_stop_while_idle_is_ignored(bus, actor, tracks) -> None:
    command(bus, PidCommandType.STOP)
    actor.loop()

    assert actor.mode is PidMode.IDLE
    assert drain(tracks) == []


def test_lost_line_recovery(bus, actor, hardware, tracks) -> None:
    # 16 readings to lose the line, 3 more while searching, then the line
    hardware.set_color_source([BG] * 19 + [FG])
    start(bus, actor)

    for _ in range(16):
        actor.loop()

    published = drain(tracks)
    assert len(published) == 15 + 3
    for cmd in published[15:]:
        assert cmd == PidTrackCommand(left=pytest.approx(-0.4), right=pytest.approx(0.4))
    assert actor.follower.state.drive_slow == 20
    assert actor.mode is PidMode.RUNNING


def test_commands_wait_during_recovery(bus, actor, hardware, tracks) -> None:
    """A stop sent while searching is only seen once the line is found."""
    reads = []

    def source():
        reads.append(1)
        if len(reads) == 17:
            command(bus, PidCommandType.STOP)
        return BG if len(reads) <= 18 else FG

    hardware.set_color_source(source)
    start(bus, actor)

    for _ in range(16):
        actor.loop()

    assert actor.mode is PidMode.RUNNING
    assert len(reads) == 19
    drain(tracks)

    actor.loop()

    assert actor.mode is PidMode.IDLE
    assert drain(tracks) == [PidTrackCommand(0.0, 0.0)]


def test_teardown_while_running_releases_tracks(bus, actor, tracks) -> None:
    start(bus, actor)

    actor.teardown()

    assert drain(tracks) == [PidTrackCommand(0.0, 0.0)]
    assert actor.mode is PidMode.IDLE


def test_sensor_failure_restarts_idle(bus, config, hardware, tracks) -> None:
    pid = PidActor(bus, config, hardware)
    hardware.fail_color_reads = 1

    pid.start()
    command(bus, PidCommandType.START)
    deadline = time.monotonic() + 2.0
    while pid.restart_count == 0 and time.monotonic() < deadline:
        time.sleep(0.01)
    pid.stop()

    assert pid.restart_count >= 1
    assert pid.mode is PidMode.IDLE

