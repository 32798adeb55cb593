"""
go2ctl.sequencer - Scripted forward/turn routes
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from .config import load_yaml
from .controller import HeadingController, ManeuverResult, ProgressCallback
from .timing import Sleeper

logger = logging.getLogger(__name__)

StepAction = Literal["forward", "turn"]


@dataclass(frozen=True)
class RouteStep:
    """
    One leg of a route.

    Attributes:
        action: "forward" (value in meters) or "turn" (value in degrees, positive = left)
        value: Distance or relative angle
    """

    action: StepAction
    value: float

    def __post_init__(self) -> None:
        if self.action not in ("forward", "turn"):
            raise ValueError(f"Unknown route action {self.action!r}")
        if not math.isfinite(self.value):
            raise ValueError("route step value must be finite")
        if self.action == "forward" and self.value < 0:
            raise ValueError("forward distance must be >= 0")

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> RouteStep:
        if "forward" in d:
            return cls("forward", float(d["forward"]))
        if "turn" in d:
            return cls("turn", float(d["turn"]))
        return cls(d["action"], float(d["value"]))

    def describe(self) -> str:
        if self.action == "forward":
            return f"forward {self.value:g} m"
        side = "left" if self.value >= 0 else "right"
        return f"turn {side} {abs(self.value):g} deg"


@dataclass(frozen=True)
class Route:
    """Ordered list of steps with a pause between them."""

    name: str = "route"
    steps: tuple[RouteStep, ...] = ()
    pause_s: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(self.steps))
        if self.pause_s < 0:
            raise ValueError("pause_s must be >= 0")

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> Route:
        steps = [RouteStep.from_dict(s) for s in d.get("steps", [])]
        return cls(
            name=str(d.get("name", "route")),
            steps=tuple(steps),
            pause_s=float(d.get("pause_s", 1.0)),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> Route:
        return cls.from_dict(load_yaml(path))

    @property
    def total_distance_m(self) -> float:
        return sum(s.value for s in self.steps if s.action == "forward")


def _steps(*legs: tuple[StepAction, float]) -> tuple[RouteStep, ...]:
    return tuple(RouteStep(action, value) for action, value in legs)


DEFAULT_ROUTE = Route(
    name="courtyard-loop",
    steps=_steps(
        ("forward", 1.0),
        ("turn", 20.0),
        ("forward", 1.3),
        ("turn", -20.0),
        ("forward", 3.2),
        ("turn", 90.0),
        ("forward", 5.3),
        ("turn", 90.0),
        ("forward", 7.5),
        ("turn", 90.0),
        ("forward", 0.8),
        ("turn", 90.0),
        ("forward", 6.0),
        ("turn", -90.0),
        ("forward", 3.5),
        ("turn", -90.0),
        ("forward", 5.0),
    ),
)


def run_step(
    controller: HeadingController,
    step: RouteStep,
    *,
    progress: ProgressCallback | None = None,
) -> ManeuverResult:
    if step.action == "forward":
        return controller.move_forward(step.value, progress=progress)
    return controller.turn_to(math.radians(step.value), progress=progress)


def run_route(
    controller: HeadingController,
    route: Route | Iterable[RouteStep],
    *,
    pause_s: float | None = None,
    progress: ProgressCallback | None = None,
    sleep: Sleeper = time.sleep,
) -> list[ManeuverResult]:
    """
    Run steps in order, pausing between them.

    Stops at the first step that does not complete (cancelled or timed out)
    and returns the results collected so far, that step included.
    """
    if isinstance(route, Route):
        steps: Sequence[RouteStep] = route.steps
        pause = route.pause_s if pause_s is None else pause_s
    else:
        steps = tuple(route)
        pause = 1.0 if pause_s is None else pause_s

    results: list[ManeuverResult] = []
    for i, step in enumerate(steps, start=1):
        logger.info("Step %d/%d: %s", i, len(steps), step.describe())
        result = run_step(controller, step, progress=progress)
        results.append(result)
        if not result.completed:
            logger.warning("Route halted at step %d: %s", i, result.status.value)
            break
        if pause > 0 and i < len(steps):
            sleep(pause)
    return results


@dataclass
class RouteSummary:
    """Aggregate of a finished route run."""

    results: list[ManeuverResult] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return all(r.completed for r in self.results)

    @property
    def distance_m(self) -> float:
        return sum(r.distance_m for r in self.results)

    @property
    def ticks(self) -> int:
        return sum(r.ticks for r in self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "completed": self.completed,
            "distance_m": self.distance_m,
            "ticks": self.ticks,
            "steps": [r.to_dict() for r in self.results],
        }
