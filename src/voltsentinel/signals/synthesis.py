"""Clean current-waveform signatures for each appliance archetype."""

from __future__ import annotations

import math
import time
from collections.abc import Callable

import numpy as np
import numpy.typing as npt

from voltsentinel.domain.models import SAMPLE_STEP, WINDOW_SAMPLES, ApplianceArchetype, Waveform


FloatArray = npt.NDArray[np.float64]
ShapeFunction = Callable[[float, float], float]

PHASE_RATE_PER_SECOND = 10.0


def _resistive(t: float, phase: float) -> float:
    return math.sin(t + phase) * 15.0


def _inductive(t: float, phase: float) -> float:
    return math.sin(t + phase - 0.5) * 45.0 + math.sin(3.0 * (t + phase)) * 5.0


def _switched_mode(t: float, phase: float) -> float:
    # Cubic shaping keeps the sign and sharpens the conduction peaks.
    s = math.sin(t + phase)
    return math.copysign(abs(s) ** 3, s) * 60.0


def _square_wave(t: float, phase: float) -> float:
    s = math.sin(t + phase)
    if s == 0.0:
        return 0.0
    return math.copysign(40.0 * (1.0 - math.exp(-5.0 * abs(s))), s)


SHAPES: dict[ApplianceArchetype, ShapeFunction] = {
    ApplianceArchetype.RESISTIVE: _resistive,
    ApplianceArchetype.INDUCTIVE: _inductive,
    ApplianceArchetype.SWITCHED_MODE: _switched_mode,
    ApplianceArchetype.SQUARE_WAVE: _square_wave,
}

_missing_shapes = set(ApplianceArchetype) - set(SHAPES)
if _missing_shapes:
    raise RuntimeError(f"no shape function for archetypes: {sorted(_missing_shapes)}")


def shape(archetype: ApplianceArchetype, t: float, phase: float) -> float:
    """Return the clean amplitude of an archetype at local time ``t``."""
    return SHAPES[ApplianceArchetype(archetype)](t, phase)


def sample_times(samples: int = WINDOW_SAMPLES, *, offset: float = 0.0) -> FloatArray:
    """Local sample times ``(i + offset) * 0.1`` for one observation window."""
    if samples <= 0:
        raise ValueError("samples must be > 0")
    return (np.arange(samples, dtype=np.float64) + offset) * SAMPLE_STEP


def synthesize(
    archetype: ApplianceArchetype,
    phase: float,
    *,
    samples: int = WINDOW_SAMPLES,
) -> Waveform:
    """Produce one clean observation window for ``archetype`` at ``phase``."""
    shape_fn = SHAPES[ApplianceArchetype(archetype)]
    return tuple(shape_fn(float(t), phase) for t in sample_times(samples))


class PhaseClock:
    """Phase that advances continuously with wall-clock time.

    The phase is derived from elapsed time since construction, so consecutive
    windows stay continuous no matter how often they are requested.
    """

    def __init__(
        self,
        *,
        rate_per_second: float = PHASE_RATE_PER_SECOND,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if rate_per_second <= 0:
            raise ValueError("rate_per_second must be > 0")
        self._rate = rate_per_second
        self._clock = clock
        self._origin = clock()

    def phase(self) -> float:
        """Current phase in radians."""
        return (self._clock() - self._origin) * self._rate
