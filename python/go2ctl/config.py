"""
go2ctl.config - Controller, connection and teleop configuration
"""

from __future__ import annotations

import math
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, is_dataclass
from pathlib import Path
from typing import Any, Literal, cast

TransportBackend = Literal["inproc"]


def _filter_fields(cls: type, d: Mapping[str, Any]) -> dict[str, Any]:
    valid_keys = cls.__dataclass_fields__.keys()  # type: ignore[attr-defined]
    return {k: v for k, v in d.items() if k in valid_keys}


@dataclass(frozen=True)
class ControllerConfig:
    """
    Tuning for the heading-hold controller.

    Attributes:
        tick_period_s: Control loop period
        forward_speed_mps: Commanded speed while moving forward
        yaw_gain: Proportional gain on heading error while moving forward
        max_correction_rps: Clamp on the corrective yaw rate
        turn_speed_rps: Fixed yaw rate used while turning in place
        turn_tolerance_rad: Heading error below which a turn is complete
    """

    tick_period_s: float = 0.02
    forward_speed_mps: float = 0.5
    yaw_gain: float = 0.5
    max_correction_rps: float = 0.3
    turn_speed_rps: float = 0.5
    turn_tolerance_rad: float = 0.05

    def __post_init__(self) -> None:
        for name in (
            "tick_period_s",
            "forward_speed_mps",
            "max_correction_rps",
            "turn_speed_rps",
            "turn_tolerance_rad",
        ):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be > 0")
        if not math.isfinite(self.yaw_gain) or self.yaw_gain < 0:
            raise ValueError("yaw_gain must be >= 0")

    @property
    def rate_hz(self) -> float:
        return 1.0 / self.tick_period_s

    @property
    def turn_step_rad(self) -> float:
        """Heading change per tick while turning at full rate."""
        return self.turn_speed_rps * self.tick_period_s

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> ControllerConfig:
        return cls(**{k: float(v) for k, v in _filter_fields(cls, d).items()})


@dataclass(frozen=True)
class ConnectionConfig:
    """DDS channel settings for the vendor SDK."""

    network_interface: str | None = None
    domain_id: int = 0
    client_timeout_s: float = 10.0
    state_topic: str = "rt/sportmodestate"

    def __post_init__(self) -> None:
        if self.client_timeout_s <= 0:
            raise ValueError("client_timeout_s must be > 0")

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> ConnectionConfig:
        return cls(**_filter_fields(cls, d))


@dataclass(frozen=True)
class TeleopConfig:
    """Keyboard teleoperation speeds and loop periods."""

    linear_speed_mps: float = 0.3
    lateral_speed_mps: float = 0.4
    turn_speed_rps: float = 0.4
    control_period_s: float = 0.01
    input_period_s: float = 0.05

    def __post_init__(self) -> None:
        if self.control_period_s <= 0 or self.input_period_s <= 0:
            raise ValueError("teleop periods must be > 0")

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> TeleopConfig:
        return cls(**_filter_fields(cls, d))


@dataclass(frozen=True)
class TransportConfig:
    """Transport used to deliver telemetry to the pose feed."""

    backend: TransportBackend = "inproc"
    queue_capacity: int = 1024

    def __post_init__(self) -> None:
        if self.queue_capacity <= 0:
            raise ValueError("queue_capacity must be > 0")


@dataclass(frozen=True)
class Go2CtlConfig:
    """Top-level configuration, loadable from YAML."""

    controller: ControllerConfig = field(default_factory=ControllerConfig)
    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    teleop: TeleopConfig = field(default_factory=TeleopConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> Go2CtlConfig:
        transport = d.get("transport") or {}
        return cls(
            controller=ControllerConfig.from_dict(d.get("controller") or {}),
            connection=ConnectionConfig.from_dict(d.get("connection") or {}),
            teleop=TeleopConfig.from_dict(d.get("teleop") or {}),
            transport=TransportConfig(**_filter_fields(TransportConfig, transport)),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> Go2CtlConfig:
        return cls.from_dict(load_yaml(path))

    def to_dict(self) -> dict[str, Any]:
        return cast(dict[str, Any], to_serializable(self))


def _get_config_search_paths() -> list[Path]:
    paths = [Path.cwd()]
    paths.append(Path(__file__).parent / "configs")
    if "GO2CTL_CONFIG_DIR" in os.environ:
        paths.append(Path(os.environ["GO2CTL_CONFIG_DIR"]))
    return paths


def resolve_config_path(path: str | Path) -> Path:
    path = Path(path)
    if path.exists():
        return path
    for search_path in _get_config_search_paths():
        full_path = search_path / path
        if full_path.exists():
            return full_path
    raise FileNotFoundError(f"Config not found: {path}")


def load_yaml(path: str | Path) -> dict[str, Any]:
    import yaml  # type: ignore[import-untyped]

    with open(resolve_config_path(path)) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {path}")
    return data


def to_serializable(value: Any) -> Any:
    """Convert dataclasses and Paths into JSON-serializable values."""
    if isinstance(value, Path):
        return str(value)
    if is_dataclass(value) and not isinstance(value, type):
        return to_serializable(asdict(cast(Any, value)))
    if isinstance(value, Mapping):
        return {str(k): to_serializable(v) for k, v in value.items()}
    if isinstance(value, (tuple, list)):
        return [to_serializable(v) for v in value]
    return value
