"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Callable, Iterable

import pytest

from go2ctl.pose_feed import PoseFeed
from go2ctl.sinks import RecordingSink
from go2ctl.types import Pose


class FakeClock:
    """Simulated monotonic clock kept in integer nanoseconds so ticks stay exact."""

    def __init__(self) -> None:
        self.ns = 0
        self.sleeps: list[float] = []
        self.on_sleep: Callable[[float], None] | None = None

    def __call__(self) -> float:
        return self.ns / 1e9

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.ns += round(seconds * 1e9)
        if self.on_sleep is not None:
            self.on_sleep(seconds)


class ScriptedYaw:
    """Feeds a fixed sequence of yaw readings into a feed, one per sleep."""

    def __init__(self, feed: PoseFeed, readings: Iterable[float]) -> None:
        self.feed = feed
        self._readings = iter(readings)

    def __call__(self, _seconds: float) -> None:
        for yaw in self._readings:
            self.feed.on_telemetry(Pose(yaw=yaw))
            return


class PostureRecorder(RecordingSink):
    """RecordingSink that also logs posture calls by name."""

    def __init__(self) -> None:
        super().__init__()
        self.postures: list[str] = []

    def stand_up(self) -> None:
        self.postures.append("stand_up")

    def stand_down(self) -> None:
        self.postures.append("stand_down")

    def balance_stand(self) -> None:
        self.postures.append("balance_stand")

    def recovery_stand(self) -> None:
        self.postures.append("recovery_stand")

    def damp(self) -> None:
        self.postures.append("damp")

    def sit(self) -> None:
        self.postures.append("sit")

    def rise_sit(self) -> None:
        self.postures.append("rise_sit")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def posture_sink() -> PostureRecorder:
    return PostureRecorder()


@pytest.fixture
def feed() -> PoseFeed:
    """A pose feed that has already received one sample at yaw 0."""
    f = PoseFeed()
    f.on_telemetry(Pose(yaw=0.0))
    return f
