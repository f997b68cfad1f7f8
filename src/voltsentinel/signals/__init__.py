"""Waveform synthesis and wear modelling."""

from voltsentinel.signals.degradation import age_fraction, apply_degradation, degradation_params, degrade
from voltsentinel.signals.synthesis import SHAPES, PhaseClock, sample_times, shape, synthesize

__all__ = [
    "SHAPES",
    "PhaseClock",
    "age_fraction",
    "apply_degradation",
    "degradation_params",
    "degrade",
    "sample_times",
    "shape",
    "synthesize",
]
