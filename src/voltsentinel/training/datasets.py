"""Synthetic healthy/failing waveform datasets for classifier training."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import torch

from voltsentinel.domain.models import WINDOW_SAMPLES, ApplianceArchetype, DegradationParams, TrainingSample
from voltsentinel.signals.synthesis import sample_times, synthesize


NORMALIZATION_SCALE = 100.0

HEALTHY_NOISE_LEVEL = 2.0
HEALTHY_DISTORTION = 0.05


@dataclass(frozen=True, slots=True)
class WaveformTensorDataset:
    """Torch-ready inputs [n, 1, samples] and float labels [n, 1]."""

    inputs: torch.Tensor
    labels: torch.Tensor

    @property
    def healthy_fraction(self) -> float:
        return float(self.labels.mean().item())


def normalize_waveform(waveform: Sequence[float]) -> np.ndarray:
    """Scale raw amplitudes to roughly [-1, 1]."""
    return np.asarray(waveform, dtype=np.float32) / NORMALIZATION_SCALE


def draw_sample_params(is_healthy: bool, rng: np.random.Generator) -> DegradationParams:
    """Wear coefficients of one training window; healthy windows only receive the noise floor."""
    if is_healthy:
        return DegradationParams(noise_level=HEALTHY_NOISE_LEVEL, distortion=HEALTHY_DISTORTION, drift=0.0)
    return DegradationParams(
        noise_level=25.0 + float(rng.random()) * 20.0,
        distortion=1.5 + float(rng.random()),
        drift=(float(rng.random()) - 0.5) * 40.0,
    )


def generate_training_samples(
    num_samples: int,
    rng: np.random.Generator,
) -> tuple[TrainingSample, ...]:
    """Draw labelled windows with shape-independent health labels.

    Archetypes are picked uniformly so the model cannot use the waveform
    shape as a proxy for health.
    """
    if num_samples <= 0:
        raise ValueError("num_samples must be > 0")

    archetypes = tuple(ApplianceArchetype)
    times = sample_times(WINDOW_SAMPLES)
    samples: list[TrainingSample] = []
    for _ in range(num_samples):
        is_healthy = bool(rng.random() > 0.5)
        archetype = archetypes[int(rng.integers(len(archetypes)))]
        phase = float(rng.random()) * 2.0 * math.pi
        params = draw_sample_params(is_healthy, rng)

        values = np.asarray(synthesize(archetype, phase), dtype=np.float64)
        if not is_healthy:
            # Worn capacitors inject 5th and 7th harmonics.
            values += np.sin(times * 5.0) * params.distortion * 5.0
            values += np.sin(times * 7.0) * params.distortion * 2.0
            values += params.drift
        values += (rng.random(WINDOW_SAMPLES) - 0.5) * params.noise_level

        samples.append(
            TrainingSample(waveform=tuple(float(v) for v in values), label=1 if is_healthy else 0)
        )
    return tuple(samples)


def samples_to_dataset(samples: Sequence[TrainingSample]) -> WaveformTensorDataset:
    """Stack samples into normalized float32 tensors."""
    if not samples:
        raise ValueError("samples must not be empty")
    length = len(samples[0].waveform)
    for sample in samples[1:]:
        if len(sample.waveform) != length:
            raise ValueError("all samples must share identical window length")

    inputs_np = np.stack([normalize_waveform(sample.waveform) for sample in samples], axis=0)
    labels_np = np.asarray([[sample.label] for sample in samples], dtype=np.float32)
    return WaveformTensorDataset(
        inputs=torch.from_numpy(inputs_np[:, np.newaxis, :]),
        labels=torch.from_numpy(labels_np),
    )

