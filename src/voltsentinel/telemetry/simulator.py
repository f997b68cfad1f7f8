"""Synthetic energy readings standing in for the live feed in simulation mode."""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

import numpy as np

from voltsentinel.domain.models import ApplianceId
from voltsentinel.telemetry.readings import AlertLevel, DeviceStatus, EnergyReading, classify_load_alert


class LoadScenario(StrEnum):
    """Operating condition to simulate."""

    NORMAL = "normal"
    ANOMALY = "anomaly"


class AnomalyKind(StrEnum):
    SURGE = "surge"
    FAULT = "fault"


@dataclass(frozen=True, slots=True)
class EnergySimulatorConfig:
    """Electrical constants of the simulated supply."""

    nominal_voltage: float = 230.0
    voltage_jitter: float = 1.0
    power_fluctuation: float = 0.1
    surge_voltage: float = 260.0
    surge_voltage_spread: float = 15.0
    surge_power_factor: float = 1.5
    fault_power_factor: float = 2.5
    generic_load_w: float = 200.0
    generic_load_spread_w: float = 50.0
    history_size: int = 40

    def __post_init__(self) -> None:
        if self.nominal_voltage <= 0:
            raise ValueError("nominal_voltage must be > 0")
        if self.voltage_jitter < 0:
            raise ValueError("voltage_jitter must be >= 0")
        if self.power_fluctuation < 0:
            raise ValueError("power_fluctuation must be >= 0")
        if self.surge_voltage <= 0:
            raise ValueError("surge_voltage must be > 0")
        if self.history_size <= 0:
            raise ValueError("history_size must be > 0")


class EnergySimulator:
    """Produce one reading per call for an appliance (or a generic load)."""

    def __init__(
        self,
        config: EnergySimulatorConfig | None = None,
        *,
        rng: np.random.Generator | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config if config is not None else EnergySimulatorConfig()
        self._rng = rng if rng is not None else np.random.default_rng()
        self._clock = clock
        self._history: deque[EnergyReading] = deque(maxlen=self._config.history_size)

    @property
    def history(self) -> tuple[EnergyReading, ...]:
        """Most recent readings, oldest first."""
        return tuple(self._history)

    def base_power(self, appliance: ApplianceId | None) -> float:
        if appliance is not None:
            return ApplianceId(appliance).rated_power_w
        cfg = self._config
        return cfg.generic_load_w + float(self._rng.random()) * cfg.generic_load_spread_w

    def next_reading(
        self,
        appliance: ApplianceId | None = None,
        scenario: LoadScenario = LoadScenario.NORMAL,
    ) -> EnergyReading:
        """Draw the next reading and append it to the history."""
        cfg = self._config
        base = self.base_power(appliance)
        jitter = (float(self._rng.random()) * 2.0 - 1.0) * cfg.voltage_jitter

        if LoadScenario(scenario) == LoadScenario.NORMAL:
            voltage = cfg.nominal_voltage + jitter
            power = base + float(self._rng.random()) * base * cfg.power_fluctuation
            alert = classify_load_alert(power)
        else:
            kind = AnomalyKind.SURGE if self._rng.random() > 0.5 else AnomalyKind.FAULT
            if kind == AnomalyKind.SURGE:
                voltage = cfg.surge_voltage + float(self._rng.random()) * cfg.surge_voltage_spread
                power = base * cfg.surge_power_factor
            else:
                voltage = cfg.nominal_voltage + jitter
                power = base * cfg.fault_power_factor
            alert = AlertLevel.CRITICAL

        reading = EnergyReading(
            voltage=voltage,
            current=power / voltage,
            power=power,
            energy=len(self._history) * power / 1000.0 / 3600.0,
            status=DeviceStatus.ONLINE,
            alert=alert,
            timestamp=self._clock(),
        )
        self._history.append(reading)
        return reading

    def reset(self) -> None:
        self._history.clear()
