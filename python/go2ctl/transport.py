"""
go2ctl.transport - In-process keyed pub/sub used to deliver telemetry.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .config import TransportConfig


@dataclass(frozen=True)
class TransportEnvelope:
    """Message envelope carrying routing and timing metadata."""

    key: str
    sequence: int
    timestamp_ns: int
    payload: Any
    metadata: dict[str, Any] = field(default_factory=dict)


class Subscription:
    """
    Subscription cursor for keyed transport messages.

    The queue is bounded; when full, the oldest envelope is dropped so a slow
    reader always sees the most recent samples.
    """

    def __init__(self, pattern: str, capacity: int = 1024) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.pattern = pattern
        self._queue: deque[TransportEnvelope] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self._cond = threading.Condition(self._lock)
        self._closed = False
        self._dropped = 0

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def dropped(self) -> int:
        with self._lock:
            return self._dropped

    def push(self, envelope: TransportEnvelope) -> None:
        with self._cond:
            if self._closed:
                return
            if len(self._queue) == self._queue.maxlen:
                self._dropped += 1
            self._queue.append(envelope)
            self._cond.notify()

    def recv(self, timeout_s: float | None = None) -> TransportEnvelope | None:
        with self._cond:
            if timeout_s is None:
                while not self._queue and not self._closed:
                    self._cond.wait()
            elif not self._queue and not self._closed:
                self._cond.wait(timeout=timeout_s)

            if self._queue:
                return self._queue.popleft()
            return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._queue.clear()
            self._cond.notify_all()


class TransportLike(Protocol):
    """Transport protocol consumed by the telemetry pump and mock robot."""

    def subscribe(self, pattern: str, capacity: int | None = None) -> Subscription: ...

    def unsubscribe(self, sub: Subscription) -> Any: ...

    def publish(
        self,
        key: str,
        payload: Any,
        *,
        metadata: dict[str, Any] | None = None,
        timestamp_ns: int | None = None,
    ) -> TransportEnvelope: ...


class InprocTransport:
    """
    In-process keyed pub/sub transport.

    Pattern matching uses shell-style wildcards (`*`, `?`) via `fnmatch`, so
    ``rt/*`` matches ``rt/sportmodestate`` and ``rt/utlidar/switch``.
    """

    def __init__(self, queue_capacity: int = 1024) -> None:
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()
        self._seq = 0
        self._queue_capacity = queue_capacity

    def subscribe(self, pattern: str, capacity: int | None = None) -> Subscription:
        sub = Subscription(pattern=pattern, capacity=capacity or self._queue_capacity)
        with self._lock:
            self._subscriptions.append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            self._subscriptions = [s for s in self._subscriptions if s is not sub]
        sub.close()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(
        self,
        key: str,
        payload: Any,
        *,
        metadata: dict[str, Any] | None = None,
        timestamp_ns: int | None = None,
    ) -> TransportEnvelope:
        now_ns = int(timestamp_ns if timestamp_ns is not None else time.time_ns())
        with self._lock:
            self._seq += 1
            seq = self._seq
            subscribers = tuple(self._subscriptions)

        envelope = TransportEnvelope(
            key=key,
            sequence=seq,
            timestamp_ns=now_ns,
            payload=payload,
            metadata=dict(metadata or {}),
        )

        for sub in subscribers:
            if fnmatchcase(key, sub.pattern):
                sub.push(envelope)

        return envelope


def create_transport(config: TransportConfig) -> InprocTransport:
    """
    Resolve a concrete transport backend from TransportConfig.

    - `inproc`: pure-Python in-process transport.

    Robot telemetry over DDS goes through `go2ctl.real.go2` instead.
    """
    backend = str(config.backend).strip().lower()
    if backend == "inproc":
        return InprocTransport(queue_capacity=config.queue_capacity)

    raise ValueError(f"Unsupported transport backend {config.backend!r}. Expected one of: inproc.")
