"""
go2ctl.sinks - Velocity command sinks.
"""

from __future__ import annotations

import threading
from typing import Protocol, runtime_checkable

from .types import STOP_COMMAND, MotionCommand


@runtime_checkable
class MotionSink(Protocol):
    """
    Single-writer actuator accepting body velocity commands.

    Calls are fire-and-forget: nothing is acknowledged and every call replaces
    whatever the previous call asked for.
    """

    def move(self, vx: float, vy: float, omega: float) -> None: ...

    def stop(self) -> None: ...


@runtime_checkable
class PostureSink(MotionSink, Protocol):
    """Motion sink that also accepts the sport-mode posture commands."""

    def stand_up(self) -> None: ...

    def stand_down(self) -> None: ...

    def balance_stand(self) -> None: ...

    def recovery_stand(self) -> None: ...

    def damp(self) -> None: ...

    def sit(self) -> None: ...

    def rise_sit(self) -> None: ...


def send(sink: MotionSink, command: MotionCommand) -> None:
    if command.is_zero:
        sink.stop()
    else:
        sink.move(command.vx, command.vy, command.omega)


class RecordingSink:
    """Sink that remembers every command and optionally forwards it to another sink."""

    def __init__(self, inner: MotionSink | None = None) -> None:
        self._inner = inner
        self._lock = threading.Lock()
        self._commands: list[MotionCommand] = []

    def move(self, vx: float, vy: float, omega: float) -> None:
        with self._lock:
            self._commands.append(MotionCommand(float(vx), float(vy), float(omega)))
        if self._inner is not None:
            self._inner.move(vx, vy, omega)

    def stop(self) -> None:
        with self._lock:
            self._commands.append(STOP_COMMAND)
        if self._inner is not None:
            self._inner.stop()

    @property
    def commands(self) -> list[MotionCommand]:
        with self._lock:
            return list(self._commands)

    @property
    def last_command(self) -> MotionCommand | None:
        with self._lock:
            return self._commands[-1] if self._commands else None

    def clear(self) -> None:
        with self._lock:
            self._commands.clear()
