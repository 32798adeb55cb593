"""
go2ctl.real - Hardware adapters for the Unitree Go2

The vendor SDK (unitree_sdk2py) is imported lazily, so this package imports
cleanly on machines without it.
"""

from .go2 import (
    Go2Channel,
    Go2SportSink,
    Go2StateSubscriber,
    LidarSwitch,
    pose_from_sport_state,
    prepare_stance,
)

__all__ = [
    "Go2Channel",
    "Go2SportSink",
    "Go2StateSubscriber",
    "LidarSwitch",
    "pose_from_sport_state",
    "prepare_stance",
]
