"""Core domain models for appliance signature monitoring."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from math import isfinite


WINDOW_SAMPLES = 100
SAMPLE_STEP = 0.1

Waveform = tuple[float, ...]


class ApplianceArchetype(StrEnum):
    """Waveform-shape families of monitored loads."""

    RESISTIVE = "resistive"
    INDUCTIVE = "inductive"
    SWITCHED_MODE = "switched_mode"
    SQUARE_WAVE = "square_wave"


class ApplianceId(StrEnum):
    """Closed set of monitored appliances."""

    BULB = "bulb"
    FAN = "fan"
    LAPTOP = "laptop"
    MONITOR = "monitor"

    @property
    def archetype(self) -> ApplianceArchetype:
        """Waveform archetype produced by this appliance."""
        return _APPLIANCE_PROFILES[self].archetype

    @property
    def display_name(self) -> str:
        return _APPLIANCE_PROFILES[self].display_name

    @property
    def rated_power_w(self) -> float:
        return _APPLIANCE_PROFILES[self].rated_power_w


@dataclass(frozen=True, slots=True)
class ApplianceProfile:
    """Static description of one monitored appliance."""

    archetype: ApplianceArchetype
    display_name: str
    rated_power_w: float


_APPLIANCE_PROFILES: dict[ApplianceId, ApplianceProfile] = {
    ApplianceId.BULB: ApplianceProfile(ApplianceArchetype.RESISTIVE, "Phillips Hue Bulb", 9.0),
    ApplianceId.FAN: ApplianceProfile(ApplianceArchetype.INDUCTIVE, "Dyson Cooling Fan", 45.0),
    ApplianceId.LAPTOP: ApplianceProfile(ApplianceArchetype.SWITCHED_MODE, "MacBook Pro Charger", 65.0),
    ApplianceId.MONITOR: ApplianceProfile(ApplianceArchetype.SQUARE_WAVE, 'LG Ultrawide 34"', 80.0),
}


class HealthStatus(StrEnum):
    """Display bands for a continuous health score."""

    OPTIMAL = "optimal"
    DEGRADED = "degraded"
    CRITICAL = "critical"


def health_status(score: float) -> HealthStatus:
    """Map a health score in [0, 1] to its display band."""
    if not 0.0 <= score <= 1.0:
        raise ValueError("score must be in [0, 1]")
    if score > 0.8:
        return HealthStatus.OPTIMAL
    if score > 0.4:
        return HealthStatus.DEGRADED
    return HealthStatus.CRITICAL


class ModelState(StrEnum):
    """Lifecycle of the health classifier."""

    UNTRAINED = "untrained"
    TRAINING = "training"
    READY = "ready"
    DISPOSED = "disposed"


class DetectionMode(StrEnum):
    """Modes of the identity detection state machine."""

    IDLE = "idle"
    SCANNING = "scanning"
    LOCKED = "locked"


@dataclass(frozen=True, slots=True)
class DegradationParams:
    """Wear coefficients derived from a normalized age."""

    noise_level: float
    distortion: float
    drift: float

    def __post_init__(self) -> None:
        if self.noise_level < 0:
            raise ValueError("noise_level must be >= 0")
        if self.distortion < 0:
            raise ValueError("distortion must be >= 0")


@dataclass(frozen=True, slots=True)
class ApplianceState:
    """Mutable-by-replacement health record for one monitored asset."""

    age: float = 0.0
    health_score: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.age <= 100.0:
            raise ValueError("age must be in [0, 100]")
        if not 0.0 <= self.health_score <= 1.0:
            raise ValueError("health_score must be in [0, 1]")

    @property
    def status(self) -> HealthStatus:
        return health_status(self.health_score)


@dataclass(frozen=True, slots=True)
class TrainingSample:
    """One synthetic labelled observation window (label 1 is healthy)."""

    waveform: Waveform
    label: int

    def __post_init__(self) -> None:
        if self.label not in (0, 1):
            raise ValueError("label must be 0 or 1")
        if len(self.waveform) != WINDOW_SAMPLES:
            raise ValueError(f"waveform must contain {WINDOW_SAMPLES} samples")


@dataclass(frozen=True, slots=True)
class ModelMetrics:
    """Metrics reported at the end of one training epoch."""

    loss: float
    accuracy: float
    epoch: int

    def __post_init__(self) -> None:
        if not isfinite(self.loss) or self.loss < 0:
            raise ValueError("loss must be finite and >= 0")
        if not 0.0 <= self.accuracy <= 1.0:
            raise ValueError("accuracy must be in [0, 1]")
        if self.epoch < 1:
            raise ValueError("epoch must be >= 1")


@dataclass(frozen=True, slots=True)
class DetectionState:
    """Snapshot of the detection state machine after a transition or tick."""

    mode: DetectionMode
    locked_id: ApplianceId | None = None
    scan_ticks: int = 0
    confidence: float | None = None

    def __post_init__(self) -> None:
        if (self.mode == DetectionMode.LOCKED) != (self.locked_id is not None):
            raise ValueError("locked_id must be set if and only if mode is LOCKED")
        if self.scan_ticks < 0:
            raise ValueError("scan_ticks must be >= 0")
        if self.confidence is not None and not 0.0 <= self.confidence <= 1.0:
            raise ValueError("confidence must be in [0, 1]")

    @property
    def is_locked(self) -> bool:
        return self.mode == DetectionMode.LOCKED


@dataclass(frozen=True, slots=True)
class WaveformFrame:
    """One observation window prepared for display, with its clean reference."""

    live: Waveform
    reference: Waveform | None = None
    appliance: ApplianceId | None = None


def validate_waveform(samples: Iterable[float]) -> Waveform:
    """Return samples as an immutable window, rejecting malformed input."""
    try:
        values = tuple(float(value) for value in samples)
    except TypeError as exc:
        raise ValueError("waveform must be a sequence of numbers") from exc
    if len(values) != WINDOW_SAMPLES:
        raise ValueError(f"waveform must contain {WINDOW_SAMPLES} samples, got {len(values)}")
    if not all(isfinite(value) for value in values):
        raise ValueError("waveform must contain only finite values")
    return values
