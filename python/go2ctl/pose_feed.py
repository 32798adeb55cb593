"""
go2ctl.pose_feed - Latest-value bridge from asynchronous telemetry to the control loop.
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Mapping
from typing import Any

from .errors import NotReadyError
from .transport import Subscription, TransportLike
from .types import Pose

logger = logging.getLogger(__name__)

DEFAULT_STATE_TOPIC = "rt/sportmodestate"


class PoseFeed:
    """
    Single-slot, lock-guarded cell holding the most recent pose.

    Writers (the transport callback) and readers (the control loop) only ever
    exchange whole immutable `Pose` snapshots, so a reader never observes a
    yaw from one sample paired with a position from another. Intermediate
    samples are overwritten; no history is kept.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cond = threading.Condition(self._lock)
        self._latest: Pose | None = None
        self._initial_yaw: float | None = None
        self._version = 0

    def on_telemetry(self, sample: Pose | Mapping[str, Any]) -> None:
        pose = sample if isinstance(sample, Pose) else Pose.from_dict(sample)
        with self._cond:
            self._latest = pose
            self._version += 1
            first = self._initial_yaw is None
            if first:
                self._initial_yaw = pose.yaw
            self._cond.notify_all()
        if first:
            logger.info("Initial yaw latched: %.1f deg", math.degrees(pose.yaw))

    def is_initialized(self) -> bool:
        with self._lock:
            return self._latest is not None

    def current_yaw(self) -> float:
        with self._lock:
            pose = self._latest
        if pose is None:
            raise NotReadyError("No pose sample received yet")
        return pose.yaw

    def latest(self) -> Pose | None:
        with self._lock:
            return self._latest

    @property
    def initial_yaw(self) -> float:
        with self._lock:
            initial = self._initial_yaw
        if initial is None:
            raise NotReadyError("No pose sample received yet")
        return initial

    @property
    def version(self) -> int:
        """Number of samples received so far."""
        with self._lock:
            return self._version

    def wait_until_initialized(self, timeout_s: float | None = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._latest is not None, timeout=timeout_s)


class TelemetryPump:
    """Background thread draining a transport subscription into a `PoseFeed`."""

    def __init__(
        self,
        feed: PoseFeed,
        transport: TransportLike,
        topic: str = DEFAULT_STATE_TOPIC,
        *,
        poll_timeout_s: float = 0.05,
    ) -> None:
        self.feed = feed
        self.topic = topic
        self._transport = transport
        self._poll_timeout_s = poll_timeout_s
        self._subscription: Subscription | None = None
        self._running = threading.Event()
        self._thread: threading.Thread | None = None
        self._error: Exception | None = None
        self._received = 0
        self._rejected = 0

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def received(self) -> int:
        return self._received

    @property
    def rejected(self) -> int:
        return self._rejected

    @property
    def error(self) -> Exception | None:
        return self._error

    def start(self) -> None:
        if self._thread is not None:
            return
        sub = self._transport.subscribe(self.topic)
        self._subscription = sub
        self._running.set()
        self._thread = threading.Thread(
            target=self._run,
            args=(sub,),
            name=f"telemetry-{self.topic}",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        self._running.clear()
        if self._subscription is not None:
            self._transport.unsubscribe(self._subscription)
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        self._subscription = None

    def check_health(self) -> None:
        if self._error is not None:
            raise RuntimeError(f"Telemetry pump failed: {self.topic}") from self._error

    def _run(self, sub: Subscription) -> None:
        try:
            while self._running.is_set():
                envelope = sub.recv(timeout_s=self._poll_timeout_s)
                if envelope is None:
                    continue
                try:
                    self.feed.on_telemetry(envelope.payload)
                except (TypeError, ValueError) as exc:
                    # Malformed samples are dropped; the next good one wins.
                    self._rejected += 1
                    logger.warning("Dropping malformed telemetry on %s: %s", envelope.key, exc)
                    continue
                self._received += 1
        except Exception as exc:
            self._error = exc
            self._running.clear()
            logger.exception("Telemetry pump on %s stopped", self.topic)

    def __enter__(self) -> TelemetryPump:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.stop()
