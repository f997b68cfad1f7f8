"""Tests for the age-driven degradation overlay."""

from __future__ import annotations

import math

import numpy as np
import pytest

from voltsentinel.domain import ApplianceArchetype, DegradationParams
from voltsentinel.signals import age_fraction, apply_degradation, degradation_params, degrade, synthesize


def test_params_scale_linearly_with_age() -> None:
    rng = np.random.default_rng(0)
    fresh = degradation_params(0.0, rng)
    assert fresh.noise_level == 2.0
    assert fresh.distortion == 0.0
    assert fresh.drift == 0.0

    worn = degradation_params(1.0, rng)
    assert worn.noise_level == pytest.approx(32.0)
    assert worn.distortion == pytest.approx(3.0)
    assert -30.0 <= worn.drift <= 30.0


def test_params_reject_out_of_range_age() -> None:
    rng = np.random.default_rng(0)
    with pytest.raises(ValueError, match="age"):
        degradation_params(1.5, rng)
    with pytest.raises(ValueError, match="age"):
        degradation_params(-0.1, rng)


def test_age_zero_only_adds_bounded_noise() -> None:
    rng = np.random.default_rng(1)
    clean = synthesize(ApplianceArchetype.INDUCTIVE, phase=0.4)
    for _ in range(20):
        worn = degrade(clean, 0.0, rng)
        deviations = np.asarray(worn) - np.asarray(clean)
        assert np.all(np.abs(deviations) <= 1.0)
        assert abs(float(np.mean(deviations))) < 0.25


def test_apply_degradation_formula_without_noise() -> None:
    rng = np.random.default_rng(2)
    clean = tuple([0.0] * 100)
    params = DegradationParams(noise_level=0.0, distortion=1.5, drift=4.0)
    worn = apply_degradation(clean, params, rng)
    for i, value in enumerate(worn):
        t = i * 0.1
        assert value == pytest.approx(math.sin(3 * t) * 1.5 * 8 + 4.0)


def test_full_age_moves_waveform_far_from_clean() -> None:
    rng = np.random.default_rng(3)
    clean = np.asarray(synthesize(ApplianceArchetype.RESISTIVE, phase=0.0))
    fresh_err = np.mean([np.abs(np.asarray(degrade(clean, 0.0, rng)) - clean).mean() for _ in range(30)])
    worn_err = np.mean([np.abs(np.asarray(degrade(clean, 1.0, rng)) - clean).mean() for _ in range(30)])
    assert worn_err > 5 * fresh_err


def test_degrade_returns_immutable_window_of_same_length() -> None:
    rng = np.random.default_rng(4)
    clean = synthesize(ApplianceArchetype.SQUARE_WAVE, phase=0.0)
    worn = degrade(clean, 0.5, rng)
    assert isinstance(worn, tuple)
    assert len(worn) == len(clean)


def test_age_fraction_converts_user_scale() -> None:
    assert age_fraction(0) == 0.0
    assert age_fraction(50) == 0.5
    assert age_fraction(100) == 1.0
    with pytest.raises(ValueError, match="age_years_x10"):
        age_fraction(120)
