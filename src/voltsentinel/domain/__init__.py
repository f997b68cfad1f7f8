"""Domain models for appliance health and detection states."""

from voltsentinel.domain.models import (
    SAMPLE_STEP,
    WINDOW_SAMPLES,
    ApplianceArchetype,
    ApplianceId,
    ApplianceProfile,
    ApplianceState,
    DegradationParams,
    DetectionMode,
    DetectionState,
    HealthStatus,
    ModelMetrics,
    ModelState,
    TrainingSample,
    Waveform,
    WaveformFrame,
    health_status,
    validate_waveform,
)

__all__ = [
    "SAMPLE_STEP",
    "WINDOW_SAMPLES",
    "ApplianceArchetype",
    "ApplianceId",
    "ApplianceProfile",
    "ApplianceState",
    "DegradationParams",
    "DetectionMode",
    "DetectionState",
    "HealthStatus",
    "ModelMetrics",
    "ModelState",
    "TrainingSample",
    "Waveform",
    "WaveformFrame",
    "health_status",
    "validate_waveform",
]
