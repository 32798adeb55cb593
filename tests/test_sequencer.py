"""Tests for scripted routes."""

from __future__ import annotations

import math
from pathlib import Path

import pytest

from go2ctl.config import ControllerConfig
from go2ctl.controller import HeadingController, ManeuverProgress
from go2ctl.sequencer import DEFAULT_ROUTE, Route, RouteStep, RouteSummary, run_route
from go2ctl.types import STOP_COMMAND, ManeuverStatus, Pose


class _TurnOnCommand:
    """Sink that snaps the feed to the commanded heading direction one step per move."""

    def __init__(self, feed, step_rad: float = 0.01) -> None:
        self.feed = feed
        self.step_rad = step_rad
        self.moves = 0
        self.stops = 0

    def move(self, vx: float, vy: float, omega: float) -> None:
        self.moves += 1
        if omega and vx == 0.0:
            self.feed.on_telemetry(
                Pose(yaw=self.feed.current_yaw() + math.copysign(self.step_rad, omega))
            )

    def stop(self) -> None:
        self.stops += 1


@pytest.fixture
def controller(feed, sink, clock) -> HeadingController:
    return HeadingController(feed, sink, ControllerConfig(), clock=clock, sleep=clock.sleep)


def test_route_step_parsing_and_validation() -> None:
    assert RouteStep.from_dict({"forward": 1.5}) == RouteStep("forward", 1.5)
    assert RouteStep.from_dict({"turn": -90}) == RouteStep("turn", -90.0)
    assert RouteStep.from_dict({"action": "turn", "value": 20}) == RouteStep("turn", 20.0)

    with pytest.raises(ValueError):
        RouteStep("jump", 1.0)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        RouteStep("forward", -1.0)
    with pytest.raises(ValueError):
        RouteStep("turn", math.inf)


def test_route_step_describe() -> None:
    assert RouteStep("forward", 3.2).describe() == "forward 3.2 m"
    assert RouteStep("turn", 90.0).describe() == "turn left 90 deg"
    assert RouteStep("turn", -20.0).describe() == "turn right 20 deg"


def test_default_route_matches_packaged_yaml() -> None:
    route = Route.from_yaml("courtyard_loop.yaml")
    assert route == DEFAULT_ROUTE
    assert len(route.steps) == 17
    assert route.total_distance_m == pytest.approx(33.6)


def test_route_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "square.yaml"
    path.write_text(
        "name: square\npause_s: 0\nsteps:\n  - forward: 1\n  - turn: 90\n  - forward: 1\n"
    )
    route = Route.from_yaml(path)
    assert route.name == "square"
    assert route.pause_s == 0.0
    assert [s.action for s in route.steps] == ["forward", "turn", "forward"]


def test_run_route_executes_steps_in_order_with_pauses(controller, sink, clock) -> None:
    steps = [RouteStep("forward", 0.1), RouteStep("turn", 0.0), RouteStep("forward", 0.1)]
    pauses: list[float] = []

    results = run_route(controller, steps, pause_s=1.0, sleep=pauses.append)

    assert [r.kind.value for r in results] == ["forward", "turn", "forward"]
    assert all(r.completed for r in results)
    assert pauses == [1.0, 1.0]
    # Every leg ends with its own stop.
    assert sink.commands.count(STOP_COMMAND) == 3

    summary = RouteSummary(results)
    assert summary.completed
    assert summary.distance_m == pytest.approx(0.2, abs=0.011)
    assert summary.to_dict()["steps"][1]["kind"] == "turn"


def test_run_route_turns_in_degrees(feed, clock) -> None:
    body = _TurnOnCommand(feed)
    controller = HeadingController(feed, body, clock=clock, sleep=clock.sleep)

    results = run_route(controller, Route("left", (RouteStep("turn", 90.0),)), sleep=lambda _s: None)

    assert results[0].completed
    assert results[0].target_yaw == pytest.approx(math.pi / 2)
    assert abs(feed.current_yaw() - math.pi / 2) < 0.05


def test_run_route_halts_on_cancel(controller, sink) -> None:
    def progress(p: ManeuverProgress) -> None:
        if p.tick == 3:
            controller.cancel()

    route = Route("short", (RouteStep("forward", 1.0), RouteStep("forward", 1.0)), pause_s=0.0)
    results = run_route(controller, route, progress=progress)

    assert len(results) == 1
    assert results[0].status is ManeuverStatus.CANCELLED
    assert not RouteSummary(results).completed
    assert sink.last_command == STOP_COMMAND


def test_empty_route_summary_is_completed() -> None:
    summary = RouteSummary([])
    assert summary.completed
    assert summary.ticks == 0
