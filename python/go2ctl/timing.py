"""
go2ctl.timing - Fixed-period loop pacing and jitter statistics.
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

Clock = Callable[[], float]
Sleeper = Callable[[float], None]


@dataclass(frozen=True)
class LoopTimingStats:
    """Loop timing summary for jitter and overrun analysis."""

    iterations: int
    overruns: int
    target_period_s: float
    avg_period_s: float
    p50_jitter_s: float
    p95_jitter_s: float
    p99_jitter_s: float
    max_jitter_s: float

    def to_dict(self) -> dict[str, float | int]:
        return {
            "iterations": int(self.iterations),
            "overruns": int(self.overruns),
            "target_period_s": float(self.target_period_s),
            "avg_period_s": float(self.avg_period_s),
            "p50_jitter_s": float(self.p50_jitter_s),
            "p95_jitter_s": float(self.p95_jitter_s),
            "p99_jitter_s": float(self.p99_jitter_s),
            "max_jitter_s": float(self.max_jitter_s),
        }


class LoopTimer:
    """
    Deadline-based pacing for a fixed-period control loop.

    ``wait()`` sleeps until the next deadline; a late tick resets the deadline
    instead of trying to catch up. The clock and sleep function are injectable
    so control laws can be exercised against a simulated clock.
    """

    def __init__(
        self,
        period_s: float,
        *,
        clock: Clock = time.perf_counter,
        sleep: Sleeper = time.sleep,
        max_samples: int = 10_000,
    ) -> None:
        if period_s <= 0:
            raise ValueError("period_s must be > 0")
        self.period_s = float(period_s)
        self._clock = clock
        self._sleep = sleep
        self._period_samples: deque[float] = deque(maxlen=max_samples)
        self._jitter_samples: deque[float] = deque(maxlen=max_samples)
        self._iterations = 0
        self._overruns = 0
        self._start = clock()
        self._next_deadline = self._start
        self._last_tick: float | None = None

    def now(self) -> float:
        return self._clock()

    def elapsed(self) -> float:
        return self._clock() - self._start

    def mark(self) -> None:
        """Record the start of a tick."""
        now = self._clock()
        if self._last_tick is not None:
            dt = now - self._last_tick
            self._period_samples.append(dt)
            self._jitter_samples.append(abs(dt - self.period_s))
            if dt > self.period_s:
                self._overruns += 1
        self._last_tick = now
        self._iterations += 1

    def wait(self) -> None:
        self._next_deadline += self.period_s
        sleep_s = self._next_deadline - self._clock()
        if sleep_s > 0:
            self._sleep(sleep_s)
        else:
            self._next_deadline = self._clock()

    def stats(self) -> LoopTimingStats:
        period_samples = np.asarray(tuple(self._period_samples), dtype=np.float64)
        jitter_samples = np.asarray(tuple(self._jitter_samples), dtype=np.float64)

        if period_samples.size == 0:
            return LoopTimingStats(
                iterations=self._iterations,
                overruns=self._overruns,
                target_period_s=self.period_s,
                avg_period_s=0.0,
                p50_jitter_s=0.0,
                p95_jitter_s=0.0,
                p99_jitter_s=0.0,
                max_jitter_s=0.0,
            )

        return LoopTimingStats(
            iterations=self._iterations,
            overruns=self._overruns,
            target_period_s=self.period_s,
            avg_period_s=float(np.mean(period_samples)),
            p50_jitter_s=float(np.percentile(jitter_samples, 50)),
            p95_jitter_s=float(np.percentile(jitter_samples, 95)),
            p99_jitter_s=float(np.percentile(jitter_samples, 99)),
            max_jitter_s=float(np.max(jitter_samples)),
        )
