"""
go2ctl.controller - Heading-hold locomotion controller.

Two control laws share one heading goal:

- ``move_forward`` drives at constant speed and applies a clamped
  proportional yaw-rate correction toward the held heading. Distance is dead
  reckoned from commanded speed and elapsed time, not measured.
- ``turn_to`` rotates in place at a fixed rate whose sign follows the
  heading error (bang-bang) until the error is inside the tolerance band.

    >>> feed = PoseFeed()
    >>> controller = HeadingController(feed, sink)
    >>> controller.move_forward(1.0)
    >>> controller.turn_left_90()
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .angles import angle_error, clamp, sign
from .config import ControllerConfig
from .errors import InvalidManeuverError, NotReadyError
from .pose_feed import PoseFeed
from .sinks import MotionSink
from .timing import Clock, LoopTimer, LoopTimingStats, Sleeper
from .types import ControllerState, HeadingGoal, ManeuverKind, ManeuverStatus

logger = logging.getLogger(__name__)

QUARTER_TURN = math.pi / 2.0
TWENTY_DEGREES = math.pi / 9.0


@dataclass(frozen=True)
class ManeuverProgress:
    """Per-tick progress report."""

    kind: ManeuverKind
    tick: int
    elapsed_s: float
    distance_m: float
    error_rad: float


@dataclass(frozen=True)
class ManeuverResult:
    """Outcome of one maneuver. ``status`` tells completion from cancellation."""

    kind: ManeuverKind
    status: ManeuverStatus
    ticks: int
    elapsed_s: float
    distance_m: float
    target_yaw: float
    final_error_rad: float
    timing: LoopTimingStats

    @property
    def completed(self) -> bool:
        return self.status is ManeuverStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "status": self.status.value,
            "ticks": int(self.ticks),
            "elapsed_s": float(self.elapsed_s),
            "distance_m": float(self.distance_m),
            "target_yaw": float(self.target_yaw),
            "final_error_rad": float(self.final_error_rad),
            "timing": self.timing.to_dict(),
        }


ProgressCallback = Callable[[ManeuverProgress], None]


class HeadingController:
    """
    Closed-loop straight-line and turn-in-place maneuvers on top of a yaw feed.

    Maneuvers block the calling thread until they complete, time out or are
    cancelled. ``cancel()`` may be called from any thread; it is observed at
    the next tick boundary and stays in effect until ``resume()``. Every
    maneuver exit, and ``close()``, sends a stop command to the sink.
    """

    def __init__(
        self,
        feed: PoseFeed,
        sink: MotionSink,
        config: ControllerConfig | None = None,
        *,
        clock: Clock = time.perf_counter,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self.feed = feed
        self.sink = sink
        self.config = config or ControllerConfig()
        self._clock = clock
        self._sleep = sleep

        self._state = ControllerState.IDLE
        self._state_lock = threading.Lock()
        self._maneuver_lock = threading.Lock()
        self._cancel = threading.Event()
        self._goal: HeadingGoal | None = None
        self._closed = False

        if self.config.turn_step_rad > self.config.turn_tolerance_rad:
            logger.warning(
                "turn step %.3f rad per tick exceeds tolerance %.3f rad; turns may "
                "overshoot and oscillate around the target",
                self.config.turn_step_rad,
                self.config.turn_tolerance_rad,
            )

    @property
    def state(self) -> ControllerState:
        with self._state_lock:
            return self._state

    @property
    def target_yaw(self) -> float | None:
        return None if self._goal is None else self._goal.target_yaw

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def is_ready(self) -> bool:
        return self.feed.is_initialized()

    def cancel(self) -> None:
        self._cancel.set()

    def resume(self) -> None:
        self._cancel.clear()

    def reset_heading(self) -> float:
        """Re-anchor the held heading at the current yaw."""
        yaw = self.feed.current_yaw()
        self._goal = HeadingGoal(yaw)
        logger.info("Heading goal reset to %.1f deg", math.degrees(yaw))
        return self._goal.target_yaw

    # ---------- Maneuvers ----------

    def move_forward(
        self,
        distance_m: float,
        *,
        timeout_s: float | None = None,
        progress: ProgressCallback | None = None,
    ) -> ManeuverResult:
        distance_m = float(distance_m)
        if not math.isfinite(distance_m) or distance_m < 0:
            raise InvalidManeuverError(f"distance_m must be a finite value >= 0, got {distance_m}")
        goal = self._ensure_ready()

        cfg = self.config
        target = goal.target_yaw
        timer = LoopTimer(cfg.tick_period_s, clock=self._clock, sleep=self._sleep)
        status = ManeuverStatus.COMPLETED
        ticks = 0
        traveled = 0.0
        yaw_error = 0.0

        logger.info("Forward %.2f m at heading %.1f deg", distance_m, math.degrees(target))
        with self._maneuver(ControllerState.MOVING_FORWARD) as scope:
            while traveled < distance_m:
                if self._cancel.is_set():
                    status = ManeuverStatus.CANCELLED
                    break
                if timeout_s is not None and timer.elapsed() >= timeout_s:
                    status = ManeuverStatus.TIMED_OUT
                    break

                timer.mark()
                yaw_error = angle_error(target, self.feed.current_yaw())
                correction = clamp(
                    yaw_error * cfg.yaw_gain, -cfg.max_correction_rps, cfg.max_correction_rps
                )
                self.sink.move(cfg.forward_speed_mps, 0.0, correction)
                ticks += 1

                traveled = cfg.forward_speed_mps * timer.elapsed()
                logger.debug(
                    "forward tick=%d distance=%.2f m yaw_error=%.1f deg",
                    ticks,
                    traveled,
                    math.degrees(yaw_error),
                )
                if progress is not None:
                    progress(
                        ManeuverProgress(
                            ManeuverKind.FORWARD, ticks, timer.elapsed(), traveled, yaw_error
                        )
                    )
                if traveled >= distance_m:
                    break
                timer.wait()
            scope.status = status

        logger.info("Forward %s after %d ticks, %.2f m", status.value, ticks, traveled)
        return ManeuverResult(
            kind=ManeuverKind.FORWARD,
            status=status,
            ticks=ticks,
            elapsed_s=timer.elapsed(),
            distance_m=traveled,
            target_yaw=target,
            final_error_rad=yaw_error,
            timing=timer.stats(),
        )

    def turn_to(
        self,
        relative_angle: float,
        *,
        timeout_s: float | None = None,
        progress: ProgressCallback | None = None,
    ) -> ManeuverResult:
        """Rotate the held heading by ``relative_angle`` (rad, positive = left) and turn to it."""
        goal = self._ensure_ready()
        cfg = self.config
        status = ManeuverStatus.COMPLETED
        ticks = 0

        with self._maneuver(ControllerState.TURNING) as scope:
            target = goal.rotate(relative_angle)
            error = angle_error(target, self.feed.current_yaw())
            logger.info(
                "Turn %.1f deg to heading %.1f deg",
                math.degrees(relative_angle),
                math.degrees(target),
            )
            timer = LoopTimer(cfg.tick_period_s, clock=self._clock, sleep=self._sleep)
            while True:
                if self._cancel.is_set():
                    status = ManeuverStatus.CANCELLED
                    break
                if timeout_s is not None and timer.elapsed() >= timeout_s:
                    status = ManeuverStatus.TIMED_OUT
                    break

                timer.mark()
                error = angle_error(target, self.feed.current_yaw())
                if abs(error) < cfg.turn_tolerance_rad:
                    break

                self.sink.move(0.0, 0.0, sign(error) * cfg.turn_speed_rps)
                ticks += 1
                logger.debug("turn tick=%d error=%.1f deg", ticks, math.degrees(error))
                if progress is not None:
                    progress(ManeuverProgress(ManeuverKind.TURN, ticks, timer.elapsed(), 0.0, error))
                timer.wait()
            scope.status = status

        logger.info("Turn %s after %d ticks, error %.1f deg", status.value, ticks, math.degrees(error))
        return ManeuverResult(
            kind=ManeuverKind.TURN,
            status=status,
            ticks=ticks,
            elapsed_s=timer.elapsed(),
            distance_m=0.0,
            target_yaw=target,
            final_error_rad=error,
            timing=timer.stats(),
        )

    def turn_left_90(self, **kwargs: Any) -> ManeuverResult:
        return self.turn_to(QUARTER_TURN, **kwargs)

    def turn_right_90(self, **kwargs: Any) -> ManeuverResult:
        return self.turn_to(-QUARTER_TURN, **kwargs)

    def turn_left_20(self, **kwargs: Any) -> ManeuverResult:
        return self.turn_to(TWENTY_DEGREES, **kwargs)

    def turn_right_20(self, **kwargs: Any) -> ManeuverResult:
        return self.turn_to(-TWENTY_DEGREES, **kwargs)

    # ---------- Lifecycle ----------

    def close(self) -> None:
        """Cancel any running maneuver and leave the actuator stopped."""
        self._cancel.set()
        if self._closed:
            return
        self._closed = True
        self.sink.stop()

    def __enter__(self) -> HeadingController:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    def __del__(self) -> None:
        if getattr(self, "_closed", True):
            return
        try:
            self.close()
        except Exception:
            logger.exception("Failed to stop actuator while finalizing controller")

    # ---------- Internals ----------

    def _ensure_ready(self) -> HeadingGoal:
        if self._closed:
            raise RuntimeError("Controller is closed")
        if not self.feed.is_initialized():
            raise NotReadyError("Pose feed has not delivered a sample yet")
        if self._goal is None:
            self._goal = HeadingGoal(self.feed.initial_yaw)
        return self._goal

    def _set_state(self, state: ControllerState) -> None:
        with self._state_lock:
            self._state = state

    def _maneuver(self, state: ControllerState) -> _ManeuverScope:
        return _ManeuverScope(self, state)


class _ManeuverScope:
    """Enter an active state; on exit always stop the sink and return to IDLE."""

    def __init__(self, controller: HeadingController, state: ControllerState) -> None:
        self._controller = controller
        self._state = state
        self.status: ManeuverStatus | None = None

    def __enter__(self) -> _ManeuverScope:
        if not self._controller._maneuver_lock.acquire(blocking=False):
            raise RuntimeError("A maneuver is already running")
        self._controller._set_state(self._state)
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        controller = self._controller
        try:
            if self.status is ManeuverStatus.CANCELLED:
                controller._set_state(ControllerState.CANCELLED)
            controller.sink.stop()
        finally:
            controller._set_state(ControllerState.IDLE)
            controller._maneuver_lock.release()
