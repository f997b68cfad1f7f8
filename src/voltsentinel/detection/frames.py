"""Visualization frames emitted while a detection scan is running."""

from __future__ import annotations

import numpy as np

from voltsentinel.domain.models import WINDOW_SAMPLES, ApplianceId, WaveformFrame
from voltsentinel.signals.synthesis import SHAPES, sample_times


LOCKED_NOISE_WIDTH = 5.0
SEARCH_NOISE_WIDTH = 20.0
SEARCH_BASELINE_AMPLITUDE = 10.0
OFFSET_PER_TICK = 2.0


def render_scan_frame(
    target: ApplianceId | None,
    offset: float,
    rng: np.random.Generator,
    *,
    samples: int = WINDOW_SAMPLES,
) -> WaveformFrame:
    """Live window for the scanner; the clean reference is only shown for a target."""
    times = sample_times(samples, offset=offset)
    if target is None:
        noise = (rng.random(samples) - 0.5) * SEARCH_NOISE_WIDTH
        live = np.sin(times) * SEARCH_BASELINE_AMPLITUDE + noise
        return WaveformFrame(live=tuple(float(v) for v in live))

    shape_fn = SHAPES[target.archetype]
    reference = tuple(shape_fn(float(t), 0.0) for t in times)
    noise = (rng.random(samples) - 0.5) * LOCKED_NOISE_WIDTH
    live = tuple(value + float(n) for value, n in zip(reference, noise))
    return WaveformFrame(live=live, reference=reference, appliance=target)
