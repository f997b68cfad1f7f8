"""PyTorch model for appliance waveform health scoring."""

from __future__ import annotations

from typing import cast

import torch
from torch import nn

from voltsentinel.domain.models import WINDOW_SAMPLES


class HealthCNN(nn.Module):
    """Small 1D CNN producing a healthy-probability per observation window."""

    def __init__(self, window_samples: int = WINDOW_SAMPLES, *, dropout: float = 0.2) -> None:
        super().__init__()
        if window_samples < 12:
            raise ValueError("window_samples must be >= 12")
        if not 0.0 <= dropout < 1.0:
            raise ValueError("dropout must be in [0, 1)")

        self.window_samples = window_samples
        self.features = nn.Sequential(
            nn.Conv1d(1, 16, kernel_size=5, stride=1),
            nn.ReLU(),
            nn.MaxPool1d(kernel_size=2, stride=2),
            nn.Conv1d(16, 32, kernel_size=3),
            nn.ReLU(),
            nn.MaxPool1d(kernel_size=2, stride=2),
        )
        self.classifier = nn.Sequential(
            nn.Flatten(),
            nn.Linear(32 * _feature_length(window_samples), 64),
            nn.ReLU(),
            nn.Dropout(p=dropout),
            nn.Linear(64, 1),
            nn.Sigmoid(),
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """Run forward pass for shape [batch, 1, samples]; returns [batch, 1]."""
        if x.ndim != 3 or x.shape[1] != 1:
            raise ValueError("Input tensor must have shape [batch, 1, samples]")
        if x.shape[2] != self.window_samples:
            raise ValueError(f"Input tensor must have {self.window_samples} samples")
        probs = self.classifier(self.features(x))
        return cast(torch.Tensor, probs)


def _feature_length(window_samples: int) -> int:
    after_first = (window_samples - 4) // 2
    return (after_first - 2) // 2
