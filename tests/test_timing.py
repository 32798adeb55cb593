"""Tests for fixed-period loop pacing."""

from __future__ import annotations

import pytest

from conftest import FakeClock
from go2ctl.timing import LoopTimer


def test_wait_sleeps_until_next_deadline() -> None:
    clock = FakeClock()
    timer = LoopTimer(0.25, clock=clock, sleep=clock.sleep)

    for _ in range(5):
        timer.mark()
        timer.wait()

    assert clock.sleeps == [0.25] * 5
    assert timer.elapsed() == 1.25
    stats = timer.stats()
    assert stats.iterations == 5
    assert stats.overruns == 0
    assert stats.avg_period_s == 0.25
    assert stats.max_jitter_s == 0.0


def test_late_tick_resets_deadline_and_counts_overrun() -> None:
    clock = FakeClock()
    timer = LoopTimer(0.25, clock=clock, sleep=clock.sleep)

    timer.mark()
    clock.ns += 750_000_000  # three periods of work
    timer.wait()
    assert clock.sleeps == []

    timer.mark()
    timer.wait()
    assert clock.sleeps == [0.25]

    stats = timer.stats()
    assert stats.overruns == 1
    assert stats.max_jitter_s == pytest.approx(0.5)


def test_empty_stats() -> None:
    timer = LoopTimer(0.01)
    stats = timer.stats()
    assert stats.iterations == 0
    assert stats.avg_period_s == 0.0
    assert stats.to_dict()["target_period_s"] == 0.01


def test_rejects_non_positive_period() -> None:
    with pytest.raises(ValueError):
        LoopTimer(0.0)
