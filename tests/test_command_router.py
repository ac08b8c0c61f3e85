"""Tests for CommandRouterActor routing."""

import pytest

from kickerbot.actors.command_router_actor import CommandRouterActor
from kickerbot.core.bus import Topics
from kickerbot.core.messages import (
    KickRequest, PidCommand, PidCommandType, StopCommand, TrackCommand, TrimCommand
)
from kickerbot.core.protocol import (
    Kick, Pong, SetBackground, SetForeground, SetPid, SetTrack, SetTrim
)

from conftest import drain


@pytest.fixture
def router(bus, config):
    actor = CommandRouterActor(bus, config)
    actor._running.set()
    return actor


@pytest.fixture
def driving(bus):
    return bus.subscribe_queue(Topics.DRIVING_COMMAND)


@pytest.fixture
def pid(bus):
    return bus.subscribe_queue(Topics.PID_COMMAND)


def test_driving_commands(router, driving, pid) -> None:
    router.route(SetTrack(0.25, -1.0))
    router.route(SetTrim(0.1))
    router.route(Kick())

    assert drain(driving) == [
        TrackCommand(0.25, -1.0),
        TrimCommand(pytest.approx(0.1)),
        KickRequest(),
    ]
    assert drain(pid) == []


@pytest.mark.parametrize("message, expected", [
    (SetPid(True), PidCommandType.START),
    (SetPid(False), PidCommandType.STOP),
    (SetForeground(), PidCommandType.SET_FOREGROUND),
    (SetBackground(), PidCommandType.SET_BACKGROUND),
])
def test_pid_commands(router, driving, pid, message, expected) -> None:
    router.route(message)

    assert drain(pid) == [PidCommand(command=expected)]
    assert drain(driving) == []


def test_unroutable_message_is_dropped(router, driving, pid) -> None:
    router.route(Pong())

    assert drain(driving) == []
    assert drain(pid) == []


def test_loop_preserves_arrival_order(bus, router, driving) -> None:
    bus.publish(Topics.ROBOT_COMMAND, SetTrack(1.0, 1.0))
    bus.publish(Topics.ROBOT_COMMAND, SetTrack(0.0, 0.0))

    router.loop()
    router.loop()

    assert drain(driving) == [TrackCommand(1.0, 1.0), TrackCommand(0.0, 0.0)]


def test_loop_without_commands_returns(router, driving) -> None:
    router.loop()

    assert drain(driving) == []


def test_stop_finishes_router(bus, router) -> None:
    bus.publish(Topics.ROBOT_COMMAND, StopCommand(reason="test"))

    router.loop()

    assert not router.is_running()
