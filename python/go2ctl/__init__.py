"""
go2ctl: heading-hold locomotion for the Unitree Go2

Drive straight and turn in place on IMU yaw feedback.

    >>> feed = go2ctl.PoseFeed()
    >>> controller = go2ctl.HeadingController(feed, sink)
    >>> controller.move_forward(1.0)     # hold heading for 1 m
    >>> controller.turn_left_90()        # bang-bang turn to +90 deg

Hardware adapters live in ``go2ctl.real``, a simulated robot in ``go2ctl.sim``.
"""

from __future__ import annotations

__version__ = "0.1.0"
VERSION = __version__

from .angles import angle_error, normalize_angle
from .config import (
    ConnectionConfig,
    ControllerConfig,
    Go2CtlConfig,
    TeleopConfig,
    TransportConfig,
    load_yaml,
)
from .controller import (
    QUARTER_TURN,
    TWENTY_DEGREES,
    HeadingController,
    ManeuverProgress,
    ManeuverResult,
)
from .errors import Go2CommandError, Go2CtlError, InvalidManeuverError, NotReadyError
from .pose_feed import PoseFeed, TelemetryPump
from .sequencer import DEFAULT_ROUTE, Route, RouteStep, RouteSummary, run_route
from .sinks import MotionSink, PostureSink, RecordingSink
from .sport_modes import SportMode, SportModeRunner, parse_sport_mode
from .timing import LoopTimer, LoopTimingStats
from .transport import InprocTransport, TransportEnvelope, create_transport
from .types import (
    ControllerState,
    HeadingGoal,
    ManeuverKind,
    ManeuverStatus,
    MotionCommand,
    Pose,
)

__all__ = [
    "__version__",
    "VERSION",
    # Angles
    "normalize_angle",
    "angle_error",
    # Config
    "ControllerConfig",
    "ConnectionConfig",
    "TeleopConfig",
    "TransportConfig",
    "Go2CtlConfig",
    "load_yaml",
    # Control
    "HeadingController",
    "ManeuverProgress",
    "ManeuverResult",
    "QUARTER_TURN",
    "TWENTY_DEGREES",
    "PoseFeed",
    "TelemetryPump",
    # Errors
    "Go2CtlError",
    "NotReadyError",
    "InvalidManeuverError",
    "Go2CommandError",
    # Routes
    "Route",
    "RouteStep",
    "RouteSummary",
    "DEFAULT_ROUTE",
    "run_route",
    # Sinks
    "MotionSink",
    "PostureSink",
    "RecordingSink",
    # Sport modes
    "SportMode",
    "SportModeRunner",
    "parse_sport_mode",
    # Timing / transport
    "LoopTimer",
    "LoopTimingStats",
    "InprocTransport",
    "TransportEnvelope",
    "create_transport",
    # Types
    "Pose",
    "HeadingGoal",
    "MotionCommand",
    "ControllerState",
    "ManeuverKind",
    "ManeuverStatus",
]
