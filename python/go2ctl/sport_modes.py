"""
go2ctl.sport_modes - One-shot sport-mode selector
"""

from __future__ import annotations

import logging
import threading
import time
from enum import IntEnum
from typing import Any

from .sinks import PostureSink
from .timing import LoopTimer

logger = logging.getLogger(__name__)


class SportMode(IntEnum):
    NORMAL_STAND = 0
    BALANCE_STAND = 1
    VELOCITY_MOVE = 2
    STAND_DOWN = 3
    STAND_UP = 4
    DAMP = 5
    RECOVERY_STAND = 6
    SIT = 7
    RISE_SIT = 8
    STOP_MOVE = 99


SPORT_MODE_HELP = {
    SportMode.NORMAL_STAND: "normal stand",
    SportMode.BALANCE_STAND: "balance stand",
    SportMode.VELOCITY_MOVE: "walk forward 0.3 m/s while turning 0.3 rad/s",
    SportMode.STAND_DOWN: "lie down",
    SportMode.STAND_UP: "stand up",
    SportMode.DAMP: "damping mode",
    SportMode.RECOVERY_STAND: "recovery stand",
    SportMode.SIT: "sit",
    SportMode.RISE_SIT: "rise from sitting",
    SportMode.STOP_MOVE: "stop moving",
}

VELOCITY_MOVE_COMMAND = (0.3, 0.0, 0.3)

# Modes that must be issued once rather than every tick.
_ONE_SHOT = frozenset({SportMode.SIT, SportMode.RISE_SIT})


def parse_sport_mode(text: str | int) -> SportMode:
    """Parse a mode given by number (``"3"``) or name (``"stand_down"``)."""
    if isinstance(text, int):
        try:
            return SportMode(text)
        except ValueError:
            raise ValueError(f"Invalid mode {text}. Mode must be 0-8 or 99.") from None
    value = str(text).strip()
    if value.lstrip("-").isdigit():
        return parse_sport_mode(int(value))
    try:
        return SportMode[value.upper().replace("-", "_")]
    except KeyError:
        raise ValueError(f"Unknown sport mode {text!r}") from None


def describe_modes() -> str:
    return "\n".join(f"  {int(m):>2} : {m.name.lower()} ({SPORT_MODE_HELP[m]})" for m in SportMode)


class SportModeRunner:
    """
    Re-issues the command for one sport mode on a fixed period.

    ``SIT`` and ``RISE_SIT`` are sent only on the first tick; every other mode
    is refreshed each tick.
    """

    def __init__(self, sink: PostureSink, mode: SportMode, *, period_s: float = 0.005) -> None:
        self.sink = sink
        self.mode = SportMode(mode)
        self.period_s = period_s
        self._fired = False
        self._ticks = 0
        self._running = threading.Event()
        self._thread: threading.Thread | None = None
        self._error: Exception | None = None

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    def tick(self) -> None:
        mode = self.mode
        self._ticks += 1
        if mode in _ONE_SHOT:
            if self._fired:
                return
            self._fired = True

        if mode is SportMode.NORMAL_STAND or mode is SportMode.STAND_UP:
            self.sink.stand_up()
        elif mode is SportMode.BALANCE_STAND:
            self.sink.balance_stand()
        elif mode is SportMode.VELOCITY_MOVE:
            self.sink.move(*VELOCITY_MOVE_COMMAND)
        elif mode is SportMode.STAND_DOWN:
            self.sink.stand_down()
        elif mode is SportMode.DAMP:
            self.sink.damp()
        elif mode is SportMode.RECOVERY_STAND:
            self.sink.recovery_stand()
        elif mode is SportMode.SIT:
            self.sink.sit()
        elif mode is SportMode.RISE_SIT:
            self.sink.rise_sit()
        else:
            self.sink.stop()

    def run(self, duration_s: float | None = None) -> int:
        """Tick until stopped or ``duration_s`` elapses; returns the tick count."""
        self._running.set()
        return self._loop(duration_s)

    def _loop(self, duration_s: float | None = None) -> int:
        timer = LoopTimer(self.period_s)
        logger.info("Running sport mode %s", self.mode.name.lower())
        try:
            while self._running.is_set():
                if duration_s is not None and timer.elapsed() >= duration_s:
                    break
                timer.mark()
                self.tick()
                timer.wait()
        finally:
            self._running.clear()
        return self._ticks

    def start(self) -> None:
        if self._thread is not None:
            return
        self._running.set()
        self._thread = threading.Thread(target=self._run_thread, name="sport-mode", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._running.clear()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None

    def check_health(self) -> None:
        if self._error is not None:
            raise RuntimeError("Sport mode loop failed") from self._error

    def _run_thread(self) -> None:
        try:
            self._loop()
        except Exception as exc:
            self._error = exc
            logger.exception("Sport mode loop stopped")

    def __enter__(self) -> SportModeRunner:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.stop()
