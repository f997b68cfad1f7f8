"""Synthetic datasets and training loop for the health model."""

from voltsentinel.training.datasets import (
    NORMALIZATION_SCALE,
    WaveformTensorDataset,
    draw_sample_params,
    generate_training_samples,
    normalize_waveform,
    samples_to_dataset,
)
from voltsentinel.training.trainer import EpochCallback, HealthTrainer, TrainerConfig, TrainingHistory

__all__ = [
    "NORMALIZATION_SCALE",
    "EpochCallback",
    "HealthTrainer",
    "TrainerConfig",
    "TrainingHistory",
    "WaveformTensorDataset",
    "draw_sample_params",
    "generate_training_samples",
    "normalize_waveform",
    "samples_to_dataset",
]
