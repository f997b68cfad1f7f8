"""Energy readings published by the live telemetry feed.

The feed itself is an external collaborator; this module only normalizes its
records into one strict contract.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from math import isfinite
from typing import Protocol, TypeVar


WARNING_POWER_W = 1200.0
CRITICAL_POWER_W = 1500.0

_EnumT = TypeVar("_EnumT", bound=StrEnum)


class DeviceStatus(StrEnum):
    """Connectivity reported by a metering device."""

    ONLINE = "online"
    OFFLINE = "offline"


class AlertLevel(StrEnum):
    """Alert level attached to one reading."""

    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True, slots=True)
class EnergyReading:
    """One metering record: electrical quantities plus status and alert."""

    voltage: float
    current: float
    power: float
    energy: float
    status: DeviceStatus
    alert: AlertLevel
    timestamp: float

    def __post_init__(self) -> None:
        for field_name in ("voltage", "current", "power", "energy", "timestamp"):
            if not isfinite(getattr(self, field_name)):
                raise ValueError(f"{field_name} must be finite")
        if self.energy < 0:
            raise ValueError("energy must be >= 0")
        if self.timestamp < 0:
            raise ValueError("timestamp must be >= 0")

    @property
    def is_online(self) -> bool:
        return self.status == DeviceStatus.ONLINE

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> EnergyReading:
        """Normalize one raw feed record."""
        return cls(
            voltage=_require_float(payload.get("voltage"), field_name="voltage"),
            current=_require_float(payload.get("current"), field_name="current"),
            power=_require_float(payload.get("power"), field_name="power"),
            energy=_require_float(payload.get("energy"), field_name="energy"),
            status=_require_enum(DeviceStatus, payload.get("status"), field_name="status"),
            alert=_require_enum(AlertLevel, payload.get("alert"), field_name="alert"),
            timestamp=_require_float(payload.get("timestamp"), field_name="timestamp"),
        )

    def to_mapping(self) -> dict[str, object]:
        return {
            "voltage": self.voltage,
            "current": self.current,
            "power": self.power,
            "energy": self.energy,
            "status": self.status.value,
            "alert": self.alert.value,
            "timestamp": self.timestamp,
        }


ReadingCallback = Callable[[EnergyReading], None]


class TelemetryFeed(Protocol):
    """Live feed of readings keyed by device id."""

    def subscribe(self, device_id: str, callback: ReadingCallback) -> Callable[[], None]:
        """Deliver every new reading for ``device_id``; returns an unsubscribe callable."""
        ...


def classify_load_alert(power: float) -> AlertLevel:
    """Alert level for a measured load in watts."""
    if not isfinite(power):
        raise ValueError("power must be finite")
    if power > CRITICAL_POWER_W:
        return AlertLevel.CRITICAL
    if power > WARNING_POWER_W:
        return AlertLevel.WARNING
    return AlertLevel.NORMAL


def _require_float(raw: object | None, *, field_name: str) -> float:
    if raw is None:
        raise ValueError(f"{field_name} is required")
    if isinstance(raw, bool):
        raise ValueError(f"{field_name} must be numeric")
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            raise ValueError(f"{field_name} is required")
        try:
            value = float(text)
        except ValueError as exc:
            raise ValueError(f"{field_name} must be numeric") from exc
    else:
        raise ValueError(f"{field_name} must be numeric")

    if not isfinite(value):
        raise ValueError(f"{field_name} must be finite")
    return value


def _require_enum(enum_type: type[_EnumT], raw: object | None, *, field_name: str) -> _EnumT:
    if not isinstance(raw, str):
        raise ValueError(f"{field_name} is required")
    try:
        return enum_type(raw.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValueError(f"{field_name} must be one of: {allowed}") from exc
