"""Energy telemetry contracts and the simulation-mode feed."""

from voltsentinel.telemetry.readings import (
    AlertLevel,
    DeviceStatus,
    EnergyReading,
    ReadingCallback,
    TelemetryFeed,
    classify_load_alert,
)
from voltsentinel.telemetry.simulator import AnomalyKind, EnergySimulator, EnergySimulatorConfig, LoadScenario

__all__ = [
    "AlertLevel",
    "AnomalyKind",
    "DeviceStatus",
    "EnergyReading",
    "EnergySimulator",
    "EnergySimulatorConfig",
    "LoadScenario",
    "ReadingCallback",
    "TelemetryFeed",
    "classify_load_alert",
]
