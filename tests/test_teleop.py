"""Tests for keyboard teleoperation without a terminal."""

from __future__ import annotations

import pytest

from go2ctl.config import TeleopConfig
from go2ctl.teleop import (
    ESC,
    HELP_TEXT,
    KeyboardTeleop,
    TeleopMode,
    TeleopState,
    apply_mode,
    command_for_mode,
)
from go2ctl.types import STOP_COMMAND, MotionCommand


@pytest.mark.parametrize(
    "mode, expected",
    [
        (TeleopMode.FORWARD, MotionCommand(0.3, 0.0, 0.0)),
        (TeleopMode.BACKWARD, MotionCommand(-0.3, 0.0, 0.0)),
        (TeleopMode.LEFT_TURN, MotionCommand(0.0, 0.0, 0.4)),
        (TeleopMode.RIGHT_TURN, MotionCommand(0.0, 0.0, -0.4)),
        (TeleopMode.LEFT_SIDE, MotionCommand(0.0, 0.4, 0.0)),
        (TeleopMode.RIGHT_SIDE, MotionCommand(0.0, -0.4, 0.0)),
        (TeleopMode.STOP, MotionCommand()),
        (TeleopMode.STAND_UP, None),
    ],
)
def test_command_for_mode(mode: TeleopMode, expected) -> None:
    assert command_for_mode(mode, TeleopConfig()) == expected


def test_apply_mode_routes_postures_and_stop(posture_sink) -> None:
    apply_mode(posture_sink, TeleopMode.STAND_UP)
    apply_mode(posture_sink, TeleopMode.STAND_DOWN)
    apply_mode(posture_sink, TeleopMode.STOP)
    apply_mode(posture_sink, TeleopMode.FORWARD)

    assert posture_sink.postures == ["stand_up", "stand_down"]
    assert posture_sink.commands == [STOP_COMMAND, MotionCommand(0.3, 0.0, 0.0)]


def test_state_handles_keys_case_insensitively() -> None:
    state = TeleopState()
    assert state.handle_key("W") is TeleopMode.FORWARD
    assert state.mode is TeleopMode.FORWARD
    assert state.handle_key("x") is None
    assert state.mode is TeleopMode.FORWARD
    assert state.handle_key(" ") is TeleopMode.STOP
    assert state.handle_key("") is None

    assert state.handle_key(ESC) is None
    assert not state.running
    assert state.mode is TeleopMode.STOP


def test_run_applies_scripted_keys_until_escape(posture_sink) -> None:
    keys = iter(["w", "", "a", "h", ESC])
    lines: list[str] = []
    config = TeleopConfig(control_period_s=0.002, input_period_s=0.01)
    teleop = KeyboardTeleop(posture_sink, config, echo=lines.append)

    polls = teleop.run(lambda: next(keys, ""))

    assert polls == 5
    assert not teleop.state.running
    assert lines.count(HELP_TEXT) == 2
    assert "forward" in lines
    assert "turn left" in lines
    assert "quit" in lines
    assert posture_sink.last_command == STOP_COMMAND
    teleop.check_health()


def test_run_stops_after_max_polls(posture_sink) -> None:
    teleop = KeyboardTeleop(
        posture_sink,
        TeleopConfig(control_period_s=0.002, input_period_s=0.005),
        echo=lambda _line: None,
    )
    polls = teleop.run(lambda: "", max_polls=5)

    assert polls == 5
    assert teleop.state.running
    assert posture_sink.last_command == STOP_COMMAND
    stats = teleop.timing_stats()
    assert stats is not None and stats.target_period_s == 0.002


def test_control_loop_failure_surfaces() -> None:
    class _Broken:
        def move(self, vx, vy, omega):
            raise OSError("link down")

        def stop(self):
            return None

    teleop = KeyboardTeleop(
        _Broken(),  # type: ignore[arg-type]
        TeleopConfig(control_period_s=0.002, input_period_s=0.01),
        state=TeleopState(TeleopMode.FORWARD),
        echo=lambda _line: None,
    )
    with pytest.raises(RuntimeError, match="Teleop control loop failed"):
        teleop.run(lambda: "", max_polls=50)
