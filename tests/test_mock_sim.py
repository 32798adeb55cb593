"""Tests for the simulated Go2."""

from __future__ import annotations

import math

import pytest

from go2ctl.config import ControllerConfig
from go2ctl.controller import HeadingController
from go2ctl.pose_feed import PoseFeed, TelemetryPump
from go2ctl.sim import MockGo2
from go2ctl.sinks import RecordingSink
from go2ctl.transport import InprocTransport


def test_step_integrates_body_velocity() -> None:
    robot = MockGo2(InprocTransport())

    robot.move(1.0, 0.0, 0.0)
    pose = robot.step(0.5)
    assert pose.position == pytest.approx((0.5, 0.0, 0.0))

    robot.move(0.0, 0.0, math.pi / 2)
    pose = robot.step(1.0)
    assert pose.yaw == pytest.approx(math.pi / 2)

    robot.move(1.0, 0.0, 0.0)
    pose = robot.step(1.0)
    assert pose.position == pytest.approx((0.5, 1.0, 0.0))


def test_yaw_wraps_and_stays_normalized() -> None:
    robot = MockGo2(InprocTransport(), initial_yaw=3.0)
    robot.move(0.0, 0.0, 1.0)
    pose = robot.step(0.5)
    assert -math.pi < pose.yaw <= math.pi
    assert pose.yaw == pytest.approx(3.5 - 2 * math.pi)


def test_lying_down_ignores_velocity_commands() -> None:
    robot = MockGo2(InprocTransport())
    robot.stand_down()
    robot.move(1.0, 0.0, 1.0)
    pose = robot.step(1.0)
    assert robot.posture == "down"
    assert pose.position == (0.0, 0.0, 0.0)
    assert pose.yaw == 0.0


def test_posture_command_zeroes_velocity() -> None:
    robot = MockGo2(InprocTransport())
    robot.move(0.3, 0.0, 0.0)
    robot.balance_stand()
    assert robot.command.is_zero
    assert robot.posture == "balance"


def test_drift_only_while_commanded() -> None:
    robot = MockGo2(InprocTransport(), yaw_drift_rps=0.1)
    assert robot.step(1.0).yaw == 0.0
    robot.move(0.5, 0.0, 0.0)
    assert robot.step(1.0).yaw == pytest.approx(0.1)


def test_step_publishes_pose_telemetry() -> None:
    transport = InprocTransport()
    sub = transport.subscribe("rt/sportmodestate")
    robot = MockGo2(transport)

    robot.step(0.01)
    env = sub.recv(timeout_s=0.1)

    assert env is not None
    assert env.metadata == {"source": "mock"}
    assert env.payload["yaw"] == 0.0


def test_heading_hold_against_drifting_mock() -> None:
    transport = InprocTransport()
    feed = PoseFeed()
    robot = MockGo2(transport, yaw_drift_rps=0.2)
    sink = RecordingSink(inner=robot)
    config = ControllerConfig(tick_period_s=0.01, forward_speed_mps=1.0)

    with TelemetryPump(feed, transport), robot:
        assert feed.wait_until_initialized(timeout_s=1.0)
        with HeadingController(feed, sink, config) as controller:
            result = controller.move_forward(0.3)
        robot.check_health()

    assert result.completed
    corrections = [c.omega for c in sink.commands if not c.is_zero]
    # Drift only ever turns left, so every correction turns right.
    assert all(omega <= 0.0 for omega in corrections)
    assert any(omega < 0.0 for omega in corrections)
    assert robot.command.is_zero
