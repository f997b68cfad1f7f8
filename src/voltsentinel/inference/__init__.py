"""Health classifier lifecycle and inference."""

from voltsentinel.inference.classifier import (
    NEUTRAL_SCORE,
    HealthClassifier,
    ModelUnavailableError,
    lock_confidence,
)

__all__ = ["NEUTRAL_SCORE", "HealthClassifier", "ModelUnavailableError", "lock_confidence"]
