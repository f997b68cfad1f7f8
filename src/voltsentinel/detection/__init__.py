"""Appliance identity detection."""

from voltsentinel.detection.frames import OFFSET_PER_TICK, render_scan_frame
from voltsentinel.detection.state_machine import (
    FAST_LOCK_AFTER_TICKS,
    FREE_ROAM_WINDOWS,
    REFERENCE_LOCK_CONFIDENCE,
    DetectionListener,
    DetectionStateMachine,
)

__all__ = [
    "FAST_LOCK_AFTER_TICKS",
    "FREE_ROAM_WINDOWS",
    "OFFSET_PER_TICK",
    "REFERENCE_LOCK_CONFIDENCE",
    "DetectionListener",
    "DetectionStateMachine",
    "render_scan_frame",
]
