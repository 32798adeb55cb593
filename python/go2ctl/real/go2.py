"""
go2ctl.real.go2 - Unitree Go2 adapters over unitree_sdk2py
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from ..config import ConnectionConfig
from ..errors import Go2CommandError
from ..pose_feed import PoseFeed
from ..timing import Sleeper
from ..types import Pose

logger = logging.getLogger(__name__)

TOPIC_SPORT_STATE = "rt/sportmodestate"
TOPIC_LIDAR_SWITCH = "rt/utlidar/switch"
LIDAR_COMMANDS = ("ON", "OFF")


class Go2Channel:
    """Process-wide DDS channel initialization."""

    _initialized = False

    @classmethod
    def initialize(cls, connection: ConnectionConfig) -> None:
        if cls._initialized:
            return
        from unitree_sdk2py.core.channel import ChannelFactoryInitialize

        if connection.network_interface:
            ChannelFactoryInitialize(connection.domain_id, connection.network_interface)
        else:
            ChannelFactoryInitialize(connection.domain_id)
        cls._initialized = True
        logger.info(
            "DDS channel initialized (domain=%d, interface=%s)",
            connection.domain_id,
            connection.network_interface or "default",
        )


class Go2SportSink:
    """`MotionSink` over the Go2 high-level `SportClient`, plus stance commands."""

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def connect(cls, connection: ConnectionConfig) -> Go2SportSink:
        from unitree_sdk2py.go2.sport.sport_client import SportClient

        Go2Channel.initialize(connection)
        client = SportClient()
        client.SetTimeout(connection.client_timeout_s)
        client.Init()
        return cls(client)

    def is_connected(self) -> bool:
        code, _ = self._client.GetServerApiVersion()
        return code == 0

    def move(self, vx: float, vy: float, omega: float) -> None:
        rc = self._client.Move(float(vx), float(vy), float(omega))
        if rc not in (None, 0):
            logger.warning("Move(%.2f, %.2f, %.2f) returned %s", vx, vy, omega, rc)

    def stop(self) -> None:
        rc = self._client.StopMove()
        if rc not in (None, 0):
            logger.warning("StopMove returned %s", rc)

    def stand_up(self) -> None:
        self._stance("StandUp")

    def stand_down(self) -> None:
        self._stance("StandDown")

    def balance_stand(self) -> None:
        self._stance("BalanceStand")

    def recovery_stand(self) -> None:
        self._stance("RecoveryStand")

    def damp(self) -> None:
        self._stance("Damp")

    def sit(self) -> None:
        self._stance("Sit")

    def rise_sit(self) -> None:
        self._stance("RiseSit")

    def _stance(self, command: str) -> None:
        rc = getattr(self._client, command)()
        if rc not in (None, 0):
            raise Go2CommandError(command, int(rc))


def prepare_stance(
    sink: Go2SportSink,
    *,
    repeats: int = 30,
    interval_s: float = 0.1,
    sleep: Sleeper = time.sleep,
) -> None:
    """Stand up, settle into balance stand, then stop (about six seconds by default)."""
    logger.info("Stand up")
    for _ in range(repeats):
        sink.stand_up()
        sleep(interval_s)
    logger.info("Balance stand")
    for _ in range(repeats):
        sink.balance_stand()
        sleep(interval_s)
    sink.stop()
    logger.info("Ready to move")


def pose_from_sport_state(msg: Any) -> Pose:
    """Extract yaw (imu_state.rpy[2]) and position from a `SportModeState_` message."""
    position = getattr(msg, "position", None)
    return Pose(
        yaw=float(msg.imu_state.rpy[2]),
        position=None if position is None else tuple(float(v) for v in list(position)[:3]),
    )


class Go2StateSubscriber:
    """Subscribes to sport-mode state and pushes each sample into a `PoseFeed`."""

    def __init__(
        self,
        feed: PoseFeed,
        topic: str = TOPIC_SPORT_STATE,
        *,
        subscriber_factory: Callable[[str], Any] | None = None,
    ) -> None:
        self.feed = feed
        self.topic = topic
        self._subscriber_factory = subscriber_factory or _sport_state_subscriber
        self._sub: Any = None
        self._received = 0
        self._rejected = 0

    @property
    def received(self) -> int:
        return self._received

    @property
    def rejected(self) -> int:
        return self._rejected

    def start(self) -> None:
        if self._sub is not None:
            return
        sub = self._subscriber_factory(self.topic)
        # Queue depth 1: only the newest state matters to the control loop.
        sub.Init(self._on_state, 1)
        self._sub = sub

    def stop(self) -> None:
        if self._sub is None:
            return
        try:
            self._sub.Close()
        finally:
            self._sub = None

    def _on_state(self, msg: Any) -> None:
        # Called on the SDK reader thread.
        try:
            self.feed.on_telemetry(pose_from_sport_state(msg))
        except (TypeError, ValueError) as exc:
            self._rejected += 1
            logger.warning("Dropping malformed sport state on %s: %s", self.topic, exc)
            return
        self._received += 1

    def __enter__(self) -> Go2StateSubscriber:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.stop()


def _sport_state_subscriber(topic: str) -> Any:
    from unitree_sdk2py.core.channel import ChannelSubscriber
    from unitree_sdk2py.idl.unitree_go.msg.dds_ import SportModeState_

    return ChannelSubscriber(topic, SportModeState_)


class LidarSwitch:
    """Publishes ON/OFF on the lidar switch topic."""

    def __init__(
        self,
        publisher: Any,
        *,
        message_factory: Callable[[], Any] | None = None,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self._publisher = publisher
        self._message_factory = message_factory or _string_message
        self._sleep = sleep

    @classmethod
    def connect(cls, connection: ConnectionConfig, topic: str = TOPIC_LIDAR_SWITCH) -> LidarSwitch:
        from unitree_sdk2py.core.channel import ChannelPublisher
        from unitree_sdk2py.idl.std_msgs.msg.dds_ import String_

        Go2Channel.initialize(connection)
        publisher = ChannelPublisher(topic, String_)
        publisher.Init()
        return cls(publisher)

    def send(self, command: str, *, repeats: int = 5, interval_s: float = 1.0) -> int:
        """Publish ``command`` ``repeats`` times, pausing ``interval_s`` after each write."""
        command = command.strip().upper()
        if command not in LIDAR_COMMANDS:
            raise ValueError(f"Lidar command must be one of {LIDAR_COMMANDS}, got {command!r}")
        if repeats < 1:
            raise ValueError("repeats must be >= 1")

        for _ in range(repeats):
            msg = self._message_factory()
            msg.data = command
            self._publisher.Write(msg)
            self._sleep(interval_s)
        logger.info("Lidar switch command sent: %s (x%d)", command, repeats)
        return repeats

    def close(self) -> None:
        close = getattr(self._publisher, "Close", None)
        if close is not None:
            close()


def _string_message() -> Any:
    from unitree_sdk2py.idl.default import std_msgs_msg_dds__String_

    return std_msgs_msg_dds__String_()
