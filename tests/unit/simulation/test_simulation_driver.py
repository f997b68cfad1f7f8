"""Tests for the periodic simulation driver."""

from __future__ import annotations

import asyncio

import numpy as np
import pytest

from voltsentinel.domain import ApplianceId, DetectionMode, DetectionState, ModelMetrics, WaveformFrame
from voltsentinel.inference import HealthClassifier
from voltsentinel.signals import PhaseClock
from voltsentinel.simulation import SimulationConfig, SimulationDriver
from voltsentinel.telemetry import AlertLevel, EnergyReading, LoadScenario
from voltsentinel.training import TrainerConfig


FAST_TICKS = SimulationConfig(health_interval_ms=2, maintenance_interval_ms=2, scan_interval_ms=2)


@pytest.fixture(scope="module")
def trained_classifier() -> HealthClassifier:
    classifier = HealthClassifier(TrainerConfig(seed=7))
    assert classifier.train_blocking() is not None
    return classifier


def _untrained() -> HealthClassifier:
    return HealthClassifier(TrainerConfig(num_samples=64, epochs=3, seed=0))


def _driver(classifier: HealthClassifier, config: SimulationConfig | None = None, seed: int = 0) -> SimulationDriver:
    return SimulationDriver(
        classifier,
        config=config,
        rng=np.random.default_rng(seed),
        phase_clock=PhaseClock(clock=lambda: 0.0),
    )


def test_ticks_are_noops_without_a_target() -> None:
    driver = _driver(_untrained())
    assert driver.health_tick() is None
    assert driver.maintenance_tick() is None
    assert driver.scan_tick() is None
    assert driver.selected == ApplianceId.LAPTOP


@pytest.mark.asyncio
async def test_health_tick_publishes_reading_frame_and_neutral_score_when_untrained() -> None:
    driver = _driver(_untrained())
    readings: list[EnergyReading] = []
    frames: list[WaveformFrame] = []
    scores: list[tuple[ApplianceId, float]] = []
    driver.on_reading(readings.append)
    driver.on_waveform(frames.append)
    driver.on_health(lambda appliance, score: scores.append((appliance, score)))

    driver.start_health_simulation(ApplianceId.FAN)
    assert driver.health_tick() == 0.5
    await driver.close()

    assert len(readings) == 1 and readings[0].alert == AlertLevel.NORMAL
    assert frames[0].appliance == ApplianceId.FAN
    assert frames[0].reference is not None and len(frames[0].live) == 100
    assert scores == [(ApplianceId.FAN, 0.5)]
    assert driver.registry.get(ApplianceId.FAN).health_score == 0.5


def test_score_write_keeps_user_age(trained_classifier: HealthClassifier) -> None:
    driver = _driver(trained_classifier)
    driver.select("monitor")
    driver.set_age(ApplianceId.MONITOR, 60)
    score = driver.maintenance_tick()

    state = driver.registry.get(ApplianceId.MONITOR)
    assert score is not None
    assert state.age == 60.0
    assert state.health_score == pytest.approx(score)


def test_worn_appliance_scores_lower_than_new_one(trained_classifier: HealthClassifier) -> None:
    driver = _driver(trained_classifier, seed=3)

    driver.set_age(ApplianceId.LAPTOP, 100)
    worn = [driver.maintenance_tick() for _ in range(50)]
    driver.set_age(ApplianceId.LAPTOP, 0)
    fresh = [driver.maintenance_tick() for _ in range(50)]

    assert all(score is not None for score in worn + fresh)
    assert np.mean(worn) < np.mean(fresh)
    assert np.mean(worn) < 0.5 < np.mean(fresh)


def test_scan_tick_locks_on_hint_and_renders_reference() -> None:
    driver = _driver(_untrained())
    frames: list[WaveformFrame] = []
    transitions: list[DetectionState] = []
    driver.on_waveform(frames.append)
    driver.on_detection(transitions.append)

    driver.detector.start_scan(ApplianceId.FAN)
    states = [driver.scan_tick() for _ in range(11)]

    assert states[9] is not None and states[9].mode == DetectionMode.SCANNING
    assert states[10] is not None and states[10].locked_id == ApplianceId.FAN
    assert frames[0].reference is None
    assert frames[10].reference is not None and frames[10].appliance == ApplianceId.FAN
    assert [t.mode for t in transitions] == [DetectionMode.SCANNING, DetectionMode.LOCKED]


def test_classifier_confidence_replaces_reference_confidence(trained_classifier: HealthClassifier) -> None:
    driver = _driver(trained_classifier, SimulationConfig(use_classifier_confidence=True))
    driver.detector.start_scan(ApplianceId.BULB)
    states = [driver.scan_tick() for _ in range(12)]

    assert states[10] is not None and states[10].confidence == pytest.approx(0.984)
    final = states[11]
    assert final is not None and final.confidence is not None
    assert 0.5 <= final.confidence <= 1.0


def test_unknown_selection_is_rejected() -> None:
    driver = _driver(_untrained())
    with pytest.raises(ValueError):
        driver.select("toaster")


@pytest.mark.asyncio
async def test_train_delivers_metrics_on_loop_and_starts_maintenance() -> None:
    driver = _driver(_untrained(), FAST_TICKS)
    direct: list[ModelMetrics] = []
    broadcast: list[ModelMetrics] = []
    driver.on_metrics(broadcast.append)

    history = await driver.train(direct.append)

    assert history is not None
    assert [m.epoch for m in direct] == [1, 2, 3]
    assert broadcast == direct
    health, maintenance, scan = driver.tasks
    assert maintenance.running
    assert not health.running and not scan.running
    await driver.close()
    assert not maintenance.running


@pytest.mark.asyncio
async def test_close_stops_every_periodic_task() -> None:
    async with _driver(_untrained(), FAST_TICKS) as driver:
        readings: list[EnergyReading] = []
        driver.on_reading(readings.append)
        driver.start_health_simulation(ApplianceId.BULB, LoadScenario.ANOMALY)
        driver.start_maintenance()
        driver.start_scan(ApplianceId.LAPTOP)
        while len(readings) < 2 or driver.tasks[2].ticks < 2:
            await asyncio.sleep(0.002)
        assert all(task.running for task in driver.tasks)

    assert not any(task.running for task in driver.tasks)
    assert driver.detector.state.mode == DetectionMode.IDLE
    assert all(reading.alert == AlertLevel.CRITICAL for reading in readings)


@pytest.mark.asyncio
async def test_stop_scan_and_health_simulation() -> None:
    driver = _driver(_untrained(), FAST_TICKS)
    driver.start_health_simulation(ApplianceId.FAN)
    driver.start_scan()
    await asyncio.sleep(0.01)

    state = await driver.stop_scan()
    await driver.stop_health_simulation()

    assert state.mode == DetectionMode.IDLE
    assert not any(task.running for task in driver.tasks)
    await driver.close()


@pytest.mark.parametrize("appliance", list(ApplianceId))
def test_mean_health_does_not_rise_with_age(trained_classifier: HealthClassifier, appliance: ApplianceId) -> None:
    driver = _driver(trained_classifier, seed=5)
    driver.select(appliance)

    means: list[float] = []
    for age in (0, 25, 50, 75, 100):
        driver.set_age(appliance, age)
        scores = [driver.maintenance_tick() for _ in range(40)]
        assert all(score is not None for score in scores)
        means.append(float(np.mean(scores)))

    for younger, older in zip(means, means[1:]):
        assert older <= younger + 0.05
    assert means[-1] < means[0]
