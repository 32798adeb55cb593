"""
go2ctl.types - Value types exchanged between the pose feed, controller and sinks.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .angles import normalize_angle


@dataclass(frozen=True)
class Pose:
    """
    Snapshot of the platform orientation as delivered by telemetry.

    Attributes:
        yaw: Heading in radians, normalized into (-pi, pi]
        position: Optional (x, y, z) in meters from the state estimator
        timestamp_ns: Wall-clock arrival time of the sample
    """

    yaw: float
    position: tuple[float, float, float] | None = None
    timestamp_ns: int = field(default_factory=time.time_ns)

    def __post_init__(self) -> None:
        object.__setattr__(self, "yaw", normalize_angle(self.yaw))
        if self.position is not None:
            object.__setattr__(self, "position", tuple(float(v) for v in self.position))

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> Pose:
        if "yaw" not in d:
            raise ValueError("telemetry sample is missing 'yaw'")
        position = d.get("position")
        timestamp_ns = d.get("timestamp_ns")
        return cls(
            yaw=float(d["yaw"]),
            position=None if position is None else tuple(position),
            timestamp_ns=int(timestamp_ns) if timestamp_ns is not None else time.time_ns(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "yaw": self.yaw,
            "position": None if self.position is None else list(self.position),
            "timestamp_ns": self.timestamp_ns,
        }


@dataclass
class HeadingGoal:
    """Target heading held by the controller across a maneuver."""

    target_yaw: float

    def __post_init__(self) -> None:
        self.target_yaw = normalize_angle(self.target_yaw)

    def rotate(self, relative_angle: float) -> float:
        self.target_yaw = normalize_angle(self.target_yaw + relative_angle)
        return self.target_yaw


@dataclass(frozen=True)
class MotionCommand:
    """Body velocity command: vx, vy in m/s and omega (yaw rate) in rad/s."""

    vx: float = 0.0
    vy: float = 0.0
    omega: float = 0.0

    @property
    def is_zero(self) -> bool:
        return self.vx == 0.0 and self.vy == 0.0 and self.omega == 0.0


STOP_COMMAND = MotionCommand()


class ControllerState(str, Enum):
    IDLE = "idle"
    MOVING_FORWARD = "moving_forward"
    TURNING = "turning"
    CANCELLED = "cancelled"


class ManeuverKind(str, Enum):
    FORWARD = "forward"
    TURN = "turn"


class ManeuverStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"
