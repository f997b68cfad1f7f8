"""Age-driven wear overlay for clean appliance waveforms.

Three additive terms stand for independent failure modes: harmonic
distortion (capacitor wear), broadband noise (mechanical or contact noise)
and a DC offset (component fatigue). All of them scale with age; at age 0
only the 2-unit noise floor remains.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from voltsentinel.domain.models import DegradationParams, Waveform
from voltsentinel.signals.synthesis import sample_times


NOISE_FLOOR = 2.0
NOISE_PER_AGE = 30.0
DISTORTION_PER_AGE = 3.0
DRIFT_PER_AGE = 60.0
DISTORTION_GAIN = 8.0
MAX_AGE_YEARS_X10 = 100.0


def age_fraction(age_years_x10: float) -> float:
    """Convert the 0..100 user age scale to the 0..1 model scale."""
    if not 0.0 <= age_years_x10 <= MAX_AGE_YEARS_X10:
        raise ValueError("age_years_x10 must be in [0, 100]")
    return age_years_x10 / MAX_AGE_YEARS_X10


def degradation_params(age: float, rng: np.random.Generator) -> DegradationParams:
    """Draw the wear coefficients for a normalized age in [0, 1]."""
    _check_age(age)
    return DegradationParams(
        noise_level=NOISE_FLOOR + NOISE_PER_AGE * age,
        distortion=DISTORTION_PER_AGE * age,
        drift=(float(rng.random()) - 0.5) * DRIFT_PER_AGE * age,
    )


def apply_degradation(
    clean: Sequence[float],
    params: DegradationParams,
    rng: np.random.Generator,
) -> Waveform:
    """Overlay fixed wear coefficients onto a clean window."""
    values = np.asarray(clean, dtype=np.float64)
    times = sample_times(len(values))
    noise = rng.random(len(values))
    degraded = (
        values
        + np.sin(3.0 * times) * params.distortion * DISTORTION_GAIN
        + (noise - 0.5) * params.noise_level
        + params.drift
    )
    return tuple(float(v) for v in degraded)


def degrade(clean: Sequence[float], age: float, rng: np.random.Generator) -> Waveform:
    """Return a worn copy of ``clean`` for a normalized age in [0, 1]."""
    return apply_degradation(clean, degradation_params(age, rng), rng)


def _check_age(age: float) -> None:
    if not math.isfinite(age) or not 0.0 <= age <= 1.0:
        raise ValueError("age must be in [0, 1]")
