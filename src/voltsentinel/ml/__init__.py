"""PyTorch models for voltsentinel health scoring."""

from voltsentinel.ml.models import HealthCNN

__all__ = ["HealthCNN"]
