"""
go2ctl.errors - Exception types raised by the control core and adapters.
"""

from __future__ import annotations


class Go2CtlError(Exception):
    """Base class for go2ctl errors."""


class NotReadyError(Go2CtlError):
    """Raised when a maneuver is requested before any pose sample has arrived."""


class Go2CommandError(Go2CtlError):
    """Raised when the sport client rejects a stance command."""

    def __init__(self, command: str, code: int) -> None:
        super().__init__(f"Go2 command '{command}' failed with code {code}")
        self.command = command
        self.code = code


class InvalidManeuverError(NotReadyError, ValueError):
    """Raised when a maneuver is requested with arguments it cannot run with."""
