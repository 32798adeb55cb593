"""
go2ctl.teleop - WASD keyboard teleoperation.

Key presses switch an explicit `TeleopState`; a separate control thread
re-applies the current mode to the sink every 10 ms.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
from collections.abc import Callable
from enum import IntEnum
from typing import Any, TextIO

from .config import TeleopConfig
from .sinks import PostureSink, send
from .timing import LoopTimer, LoopTimingStats
from .types import MotionCommand

logger = logging.getLogger(__name__)

ESC = "\x1b"


class TeleopMode(IntEnum):
    STOP = 0
    FORWARD = 1
    BACKWARD = 2
    LEFT_TURN = 3
    RIGHT_TURN = 4
    LEFT_SIDE = 5
    RIGHT_SIDE = 6
    STAND_UP = 7
    STAND_DOWN = 8


KEY_BINDINGS: dict[str, TeleopMode] = {
    "w": TeleopMode.FORWARD,
    "s": TeleopMode.BACKWARD,
    "a": TeleopMode.LEFT_TURN,
    "d": TeleopMode.RIGHT_TURN,
    "q": TeleopMode.LEFT_SIDE,
    "e": TeleopMode.RIGHT_SIDE,
    "r": TeleopMode.STAND_UP,
    "f": TeleopMode.STAND_DOWN,
    " ": TeleopMode.STOP,
}

MODE_LABELS = {
    TeleopMode.STOP: "stop",
    TeleopMode.FORWARD: "forward",
    TeleopMode.BACKWARD: "backward",
    TeleopMode.LEFT_TURN: "turn left",
    TeleopMode.RIGHT_TURN: "turn right",
    TeleopMode.LEFT_SIDE: "side step left",
    TeleopMode.RIGHT_SIDE: "side step right",
    TeleopMode.STAND_UP: "stand up",
    TeleopMode.STAND_DOWN: "stand down",
}

HELP_TEXT = """\
========== Go2 keyboard control ==========
W : forward
S : backward
A : turn left
D : turn right
Q : side step left
E : side step right
R : stand up
F : stand down
Space : stop
ESC : quit
H : show this help
=========================================="""


def command_for_mode(mode: TeleopMode, config: TeleopConfig | None = None) -> MotionCommand | None:
    """Velocity command for a motion mode, or None for posture modes."""
    cfg = config or TeleopConfig()
    if mode is TeleopMode.FORWARD:
        return MotionCommand(cfg.linear_speed_mps, 0.0, 0.0)
    if mode is TeleopMode.BACKWARD:
        return MotionCommand(-cfg.linear_speed_mps, 0.0, 0.0)
    if mode is TeleopMode.LEFT_TURN:
        return MotionCommand(0.0, 0.0, cfg.turn_speed_rps)
    if mode is TeleopMode.RIGHT_TURN:
        return MotionCommand(0.0, 0.0, -cfg.turn_speed_rps)
    if mode is TeleopMode.LEFT_SIDE:
        return MotionCommand(0.0, cfg.lateral_speed_mps, 0.0)
    if mode is TeleopMode.RIGHT_SIDE:
        return MotionCommand(0.0, -cfg.lateral_speed_mps, 0.0)
    if mode in (TeleopMode.STAND_UP, TeleopMode.STAND_DOWN):
        return None
    return MotionCommand()


def apply_mode(sink: PostureSink, mode: TeleopMode, config: TeleopConfig | None = None) -> None:
    if mode is TeleopMode.STAND_UP:
        sink.stand_up()
        return
    if mode is TeleopMode.STAND_DOWN:
        sink.stand_down()
        return
    command = command_for_mode(mode, config)
    if command is not None:
        send(sink, command)


class TeleopState:
    """Current teleop mode and quit flag, shared between the input and control threads."""

    def __init__(self, mode: TeleopMode = TeleopMode.STOP) -> None:
        self._lock = threading.Lock()
        self._mode = mode
        self._running = True

    @property
    def mode(self) -> TeleopMode:
        with self._lock:
            return self._mode

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    def set_mode(self, mode: TeleopMode) -> None:
        with self._lock:
            self._mode = mode

    def quit(self) -> None:
        with self._lock:
            self._running = False
            self._mode = TeleopMode.STOP

    def handle_key(self, key: str) -> TeleopMode | None:
        """Apply a key press. Returns the new mode, or None if the key changed no mode."""
        if not key:
            return None
        if key == ESC:
            self.quit()
            return None
        mode = KEY_BINDINGS.get(key.lower())
        if mode is not None:
            self.set_mode(mode)
        return mode


class RawTerminal:
    """
    Put a TTY into non-canonical, no-echo, non-blocking mode for the duration
    of a ``with`` block and restore it afterwards.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdin
        self._fd: int | None = None
        self._saved_attrs: Any = None
        self._saved_flags: int | None = None

    def __enter__(self) -> RawTerminal:
        import fcntl
        import termios

        fd = self._stream.fileno()
        self._fd = fd
        self._saved_attrs = termios.tcgetattr(fd)
        raw = termios.tcgetattr(fd)
        raw[3] &= ~(termios.ICANON | termios.ECHO)
        raw[6][termios.VMIN] = 0
        raw[6][termios.VTIME] = 0
        termios.tcsetattr(fd, termios.TCSAFLUSH, raw)

        self._saved_flags = fcntl.fcntl(fd, fcntl.F_GETFL)
        fcntl.fcntl(fd, fcntl.F_SETFL, self._saved_flags | os.O_NONBLOCK)
        return self

    def read_key(self) -> str:
        """Return one pending character, or '' when nothing was typed."""
        if self._fd is None:
            raise RuntimeError("RawTerminal is not active")
        try:
            data = os.read(self._fd, 1)
        except BlockingIOError:
            return ""
        return data.decode("utf-8", errors="ignore")

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        import fcntl
        import termios

        if self._fd is None:
            return
        termios.tcsetattr(self._fd, termios.TCSAFLUSH, self._saved_attrs)
        if self._saved_flags is not None:
            fcntl.fcntl(self._fd, fcntl.F_SETFL, self._saved_flags)
        self._fd = None


class KeyboardTeleop:
    """
    Keyboard teleoperation session.

    ``run(read_key)`` polls ``read_key`` every ``input_period_s`` on the
    calling thread while a daemon thread applies the current mode every
    ``control_period_s``. On exit the sink is stopped.
    """

    def __init__(
        self,
        sink: PostureSink,
        config: TeleopConfig | None = None,
        *,
        state: TeleopState | None = None,
        echo: Callable[[str], None] = print,
    ) -> None:
        self.sink = sink
        self.config = config or TeleopConfig()
        self.state = state or TeleopState()
        self._echo = echo
        self._control_thread: threading.Thread | None = None
        self._control_running = threading.Event()
        self._control_timer: LoopTimer | None = None
        self._loop_error: Exception | None = None

    def print_help(self) -> None:
        self._echo(HELP_TEXT)

    def on_key(self, key: str) -> None:
        if key.lower() == "h":
            self.print_help()
            return
        if key == ESC:
            self._echo("quit")
        mode = self.state.handle_key(key)
        if mode is not None:
            self._echo(MODE_LABELS[mode])

    def start_control(self) -> None:
        if self._control_thread is not None:
            return
        self._loop_error = None
        self._control_running.set()
        self._control_thread = threading.Thread(
            target=self._control_loop,
            name="teleop-control-loop",
            daemon=True,
        )
        self._control_thread.start()

    def stop_control(self) -> None:
        self._control_running.clear()
        if self._control_thread is not None:
            self._control_thread.join(timeout=2.0)
            self._control_thread = None
        self.sink.stop()

    def check_health(self) -> None:
        if self._loop_error is not None:
            raise RuntimeError("Teleop control loop failed") from self._loop_error

    def timing_stats(self) -> LoopTimingStats | None:
        return None if self._control_timer is None else self._control_timer.stats()

    def run(self, read_key: Callable[[], str], *, max_polls: int | None = None) -> int:
        """Process keys until ESC (or ``max_polls`` polls); returns the number of polls."""
        self.print_help()
        self.start_control()
        timer = LoopTimer(self.config.input_period_s)
        polls = 0
        try:
            while self.state.running:
                self.check_health()
                key = read_key()
                if key:
                    self.on_key(key)
                polls += 1
                if max_polls is not None and polls >= max_polls:
                    break
                timer.wait()
        finally:
            self.stop_control()
        return polls

    def _control_loop(self) -> None:
        timer = LoopTimer(self.config.control_period_s)
        self._control_timer = timer
        try:
            while self._control_running.is_set() and self.state.running:
                timer.mark()
                apply_mode(self.sink, self.state.mode, self.config)
                timer.wait()
        except Exception as exc:
            self._loop_error = exc
            logger.exception("Teleop control loop stopped")
