"""Tests for the sport-mode selector."""

from __future__ import annotations

import time

import pytest

from go2ctl.sport_modes import (
    VELOCITY_MOVE_COMMAND,
    SportMode,
    SportModeRunner,
    describe_modes,
    parse_sport_mode,
)
from go2ctl.types import STOP_COMMAND, MotionCommand


@pytest.mark.parametrize(
    "text, expected",
    [
        ("0", SportMode.NORMAL_STAND),
        ("2", SportMode.VELOCITY_MOVE),
        (8, SportMode.RISE_SIT),
        ("99", SportMode.STOP_MOVE),
        ("stand_down", SportMode.STAND_DOWN),
        ("Recovery-Stand", SportMode.RECOVERY_STAND),
    ],
)
def test_parse_sport_mode(text, expected: SportMode) -> None:
    assert parse_sport_mode(text) is expected


@pytest.mark.parametrize("bad", ["9", "-1", 42])
def test_parse_rejects_out_of_range_numbers(bad) -> None:
    with pytest.raises(ValueError, match="Mode must be 0-8 or 99"):
        parse_sport_mode(bad)


def test_parse_rejects_unknown_names() -> None:
    with pytest.raises(ValueError, match="Unknown sport mode"):
        parse_sport_mode("moonwalk")


def test_describe_modes_lists_every_mode() -> None:
    text = describe_modes()
    for mode in SportMode:
        assert mode.name.lower() in text


@pytest.mark.parametrize(
    "mode, posture",
    [
        (SportMode.NORMAL_STAND, "stand_up"),
        (SportMode.BALANCE_STAND, "balance_stand"),
        (SportMode.STAND_DOWN, "stand_down"),
        (SportMode.STAND_UP, "stand_up"),
        (SportMode.DAMP, "damp"),
        (SportMode.RECOVERY_STAND, "recovery_stand"),
    ],
)
def test_repeating_modes_fire_every_tick(posture_sink, mode: SportMode, posture: str) -> None:
    runner = SportModeRunner(posture_sink, mode)
    for _ in range(3):
        runner.tick()
    assert posture_sink.postures == [posture] * 3
    assert runner.ticks == 3


@pytest.mark.parametrize("mode, posture", [(SportMode.SIT, "sit"), (SportMode.RISE_SIT, "rise_sit")])
def test_sit_modes_fire_once(posture_sink, mode: SportMode, posture: str) -> None:
    runner = SportModeRunner(posture_sink, mode)
    for _ in range(5):
        runner.tick()
    assert posture_sink.postures == [posture]


def test_velocity_move_and_stop(posture_sink) -> None:
    SportModeRunner(posture_sink, SportMode.VELOCITY_MOVE).tick()
    SportModeRunner(posture_sink, SportMode.STOP_MOVE).tick()
    assert posture_sink.commands == [MotionCommand(*VELOCITY_MOVE_COMMAND), STOP_COMMAND]


def test_run_for_duration(posture_sink) -> None:
    runner = SportModeRunner(posture_sink, SportMode.BALANCE_STAND, period_s=0.005)
    ticks = runner.run(duration_s=0.05)
    assert ticks > 0
    assert len(posture_sink.postures) == ticks
    assert not runner.is_running


def test_background_runner_stops_cleanly(posture_sink) -> None:
    with SportModeRunner(posture_sink, SportMode.STAND_UP, period_s=0.005) as runner:
        time.sleep(0.05)
        assert runner.is_running
    assert not runner.is_running
    assert runner.ticks > 0
    runner.check_health()
