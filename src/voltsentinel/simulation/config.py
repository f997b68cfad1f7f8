"""Timer cadence and detection settings for the simulation driver."""

from __future__ import annotations

from dataclasses import dataclass

from voltsentinel.detection.state_machine import FAST_LOCK_AFTER_TICKS, REFERENCE_LOCK_CONFIDENCE


@dataclass(frozen=True, slots=True)
class SimulationConfig:
    """Periodic task intervals (milliseconds) and lock behaviour."""

    health_interval_ms: int = 2000
    maintenance_interval_ms: int = 100
    scan_interval_ms: int = 30
    fast_lock_after_ticks: int = FAST_LOCK_AFTER_TICKS
    lock_confidence: float = REFERENCE_LOCK_CONFIDENCE
    use_classifier_confidence: bool = False
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.health_interval_ms <= 0:
            raise ValueError("health_interval_ms must be > 0")
        if self.maintenance_interval_ms <= 0:
            raise ValueError("maintenance_interval_ms must be > 0")
        if self.scan_interval_ms <= 0:
            raise ValueError("scan_interval_ms must be > 0")
        if self.fast_lock_after_ticks < 0:
            raise ValueError("fast_lock_after_ticks must be >= 0")
        if not 0.0 <= self.lock_confidence <= 1.0:
            raise ValueError("lock_confidence must be in [0, 1]")
