"""
go2ctl.sim.mock - Yaw-integrating stand-in for the Go2
"""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Any

import numpy as np

from ..angles import normalize_angle
from ..transport import TransportLike
from ..types import MotionCommand, Pose

logger = logging.getLogger(__name__)


class MockGo2:
    """
    Kinematic mock of the Go2 sport-mode interface.

    Accepts the same commands as `Go2SportSink` and, from a background thread,
    integrates the commanded body velocity into a planar pose which it
    publishes as telemetry. ``yaw_drift_rps`` and ``noise_std`` perturb the
    heading so heading-hold correction has something to correct.
    """

    def __init__(
        self,
        transport: TransportLike,
        topic: str = "rt/sportmodestate",
        *,
        rate_hz: float = 500.0,
        initial_yaw: float = 0.0,
        yaw_drift_rps: float = 0.0,
        noise_std: float = 0.0,
        seed: int | None = None,
    ) -> None:
        if rate_hz <= 0:
            raise ValueError("rate_hz must be > 0")
        self.topic = topic
        self._transport = transport
        self._period_s = 1.0 / rate_hz
        self._yaw_drift_rps = float(yaw_drift_rps)
        self._noise_std = float(noise_std)
        self._rng = np.random.default_rng(seed)

        self._lock = threading.Lock()
        self._command = MotionCommand()
        self._x = 0.0
        self._y = 0.0
        self._yaw = normalize_angle(initial_yaw)
        self._posture = "stand"

        self._running = threading.Event()
        self._thread: threading.Thread | None = None
        self._error: Exception | None = None

    # ---------- MotionSink ----------

    def move(self, vx: float, vy: float, omega: float) -> None:
        with self._lock:
            self._command = MotionCommand(float(vx), float(vy), float(omega))

    def stop(self) -> None:
        with self._lock:
            self._command = MotionCommand()

    # ---------- Posture commands ----------

    def stand_up(self) -> None:
        self._set_posture("stand")

    def stand_down(self) -> None:
        self._set_posture("down")

    def balance_stand(self) -> None:
        self._set_posture("balance")

    def recovery_stand(self) -> None:
        self._set_posture("stand")

    def damp(self) -> None:
        self._set_posture("damp")

    def sit(self) -> None:
        self._set_posture("sit")

    def rise_sit(self) -> None:
        self._set_posture("stand")

    # ---------- State ----------

    @property
    def command(self) -> MotionCommand:
        with self._lock:
            return self._command

    @property
    def posture(self) -> str:
        with self._lock:
            return self._posture

    def pose(self) -> Pose:
        with self._lock:
            return Pose(yaw=self._yaw, position=(self._x, self._y, 0.0))

    def step(self, dt: float) -> Pose:
        """Advance the pose by ``dt`` seconds under the current command and publish it."""
        noise = float(self._rng.normal(0.0, self._noise_std)) if self._noise_std > 0 else 0.0
        with self._lock:
            cmd = self._command
            # Only a walking posture moves the body.
            if self._posture in ("stand", "balance"):
                cos_yaw, sin_yaw = math.cos(self._yaw), math.sin(self._yaw)
                self._x += (cmd.vx * cos_yaw - cmd.vy * sin_yaw) * dt
                self._y += (cmd.vx * sin_yaw + cmd.vy * cos_yaw) * dt
                yaw_rate = cmd.omega + (self._yaw_drift_rps if not cmd.is_zero else 0.0)
                self._yaw = normalize_angle(self._yaw + yaw_rate * dt + noise)
            pose = Pose(yaw=self._yaw, position=(self._x, self._y, 0.0))
        self._transport.publish(self.topic, pose.to_dict(), metadata={"source": "mock"})
        return pose

    # ---------- Lifecycle ----------

    @property
    def error(self) -> Exception | None:
        return self._error

    def start(self) -> None:
        if self._thread is not None:
            return
        self._running.set()
        self._thread = threading.Thread(target=self._run, name="mock-go2", daemon=True)
        self._thread.start()

    def stop_simulation(self) -> None:
        self._running.clear()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None

    def check_health(self) -> None:
        if self._error is not None:
            raise RuntimeError("Mock Go2 simulation failed") from self._error

    def _set_posture(self, posture: str) -> None:
        with self._lock:
            self._posture = posture
            self._command = MotionCommand()

    def _run(self) -> None:
        last = time.perf_counter()
        try:
            while self._running.is_set():
                now = time.perf_counter()
                self.step(now - last)
                last = now
                time.sleep(self._period_s)
        except Exception as exc:
            self._error = exc
            logger.exception("Mock Go2 simulation stopped")

    def __enter__(self) -> MockGo2:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.stop()
        self.stop_simulation()
