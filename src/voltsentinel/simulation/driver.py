"""Timer-driven orchestration of synthesis, inference and detection."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from types import TracebackType
from typing import Any, TypeVar

import numpy as np

from voltsentinel.detection.frames import OFFSET_PER_TICK, render_scan_frame
from voltsentinel.detection.state_machine import DetectionListener, DetectionStateMachine
from voltsentinel.domain.models import ApplianceId, DetectionState, ModelMetrics, WaveformFrame
from voltsentinel.inference.classifier import HealthClassifier, lock_confidence
from voltsentinel.signals.degradation import age_fraction, degrade
from voltsentinel.signals.synthesis import PhaseClock, synthesize
from voltsentinel.simulation.config import SimulationConfig
from voltsentinel.simulation.registry import ApplianceRegistry
from voltsentinel.simulation.scheduler import PeriodicTask
from voltsentinel.telemetry.readings import EnergyReading, ReadingCallback
from voltsentinel.telemetry.simulator import EnergySimulator, LoadScenario
from voltsentinel.training.trainer import EpochCallback, TrainingHistory

logger = logging.getLogger(__name__)

WaveformListener = Callable[[WaveformFrame], None]
HealthListener = Callable[[ApplianceId, float], None]
_ListenerT = TypeVar("_ListenerT", bound=Callable[..., Any])


class SimulationDriver:
    """Own the three periodic tasks and the state each one may touch.

    * health tick: one energy reading and one degraded window for the active
      simulation target; the window is scored and written back as
      ``health_score``.
    * maintenance tick: scores the selected appliance the same way, only once
      the classifier is ready.
    * scan tick: advances the detection state machine and renders a frame.

    ``start_*`` methods must be called from inside a running event loop.
    """

    def __init__(
        self,
        classifier: HealthClassifier,
        registry: ApplianceRegistry | None = None,
        detector: DetectionStateMachine | None = None,
        *,
        config: SimulationConfig | None = None,
        rng: np.random.Generator | None = None,
        phase_clock: PhaseClock | None = None,
        energy: EnergySimulator | None = None,
    ) -> None:
        self._config = config if config is not None else SimulationConfig()
        self._classifier = classifier
        self._registry = registry if registry is not None else ApplianceRegistry()
        self._detector = (
            detector
            if detector is not None
            else DetectionStateMachine(
                fast_lock_after=self._config.fast_lock_after_ticks,
                default_confidence=self._config.lock_confidence,
            )
        )
        self._rng = rng if rng is not None else np.random.default_rng(self._config.seed)
        self._phase = phase_clock if phase_clock is not None else PhaseClock()
        self._energy = energy if energy is not None else EnergySimulator(rng=self._rng)

        self._selected = ApplianceId.LAPTOP
        self._health_target: ApplianceId | None = None
        self._scenario = LoadScenario.NORMAL
        self._scan_offset = 0.0
        self._last_scan_frame: WaveformFrame | None = None

        self._waveform_listeners: list[WaveformListener] = []
        self._health_listeners: list[HealthListener] = []
        self._metrics_listeners: list[EpochCallback] = []
        self._reading_listeners: list[ReadingCallback] = []

        self._health_task = PeriodicTask(
            "health", self._config.health_interval_ms / 1000.0, self.health_tick
        )
        self._maintenance_task = PeriodicTask(
            "maintenance", self._config.maintenance_interval_ms / 1000.0, self.maintenance_tick
        )
        self._scan_task = PeriodicTask("scan", self._config.scan_interval_ms / 1000.0, self.scan_tick)

    async def __aenter__(self) -> SimulationDriver:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def classifier(self) -> HealthClassifier:
        return self._classifier

    @property
    def registry(self) -> ApplianceRegistry:
        return self._registry

    @property
    def detector(self) -> DetectionStateMachine:
        return self._detector

    @property
    def selected(self) -> ApplianceId:
        return self._selected

    @property
    def tasks(self) -> tuple[PeriodicTask, PeriodicTask, PeriodicTask]:
        return (self._health_task, self._maintenance_task, self._scan_task)

    def on_waveform(self, listener: WaveformListener) -> Callable[[], None]:
        return _subscribe(self._waveform_listeners, listener)

    def on_health(self, listener: HealthListener) -> Callable[[], None]:
        return _subscribe(self._health_listeners, listener)

    def on_metrics(self, listener: EpochCallback) -> Callable[[], None]:
        return _subscribe(self._metrics_listeners, listener)

    def on_reading(self, listener: ReadingCallback) -> Callable[[], None]:
        return _subscribe(self._reading_listeners, listener)

    def on_detection(self, listener: DetectionListener) -> Callable[[], None]:
        return self._detector.subscribe(listener)

    def select(self, appliance: ApplianceId | str) -> None:
        """Choose the appliance scored by the maintenance tick."""
        appliance_id = ApplianceId(appliance)
        if appliance_id not in self._registry:
            raise KeyError(f"appliance not registered: {appliance_id.value}")
        self._selected = appliance_id

    def set_age(self, appliance: ApplianceId | str, age: float) -> None:
        """User-driven age edit; touches ``age`` only."""
        self._registry.set_age(appliance, age)

    async def train(self, on_epoch_end: EpochCallback | None = None) -> TrainingHistory | None:
        """Train the classifier, then start the maintenance tick.

        Epoch metrics are delivered on the event loop thread. Returns None
        when another training run is already in flight.
        """
        loop = asyncio.get_running_loop()

        def deliver(metrics: ModelMetrics) -> None:
            if on_epoch_end is not None:
                on_epoch_end(metrics)
            for listener in tuple(self._metrics_listeners):
                listener(metrics)

        history = await self._classifier.train(lambda metrics: loop.call_soon_threadsafe(deliver, metrics))
        if history is not None:
            self._maintenance_task.start()
        return history

    def start_health_simulation(
        self,
        appliance: ApplianceId | str,
        scenario: LoadScenario = LoadScenario.NORMAL,
    ) -> None:
        """Start the health tick for ``appliance`` under a load scenario."""
        appliance_id = ApplianceId(appliance)
        if appliance_id not in self._registry:
            raise KeyError(f"appliance not registered: {appliance_id.value}")
        self._health_target = appliance_id
        self._scenario = LoadScenario(scenario)
        self._health_task.start()

    async def stop_health_simulation(self) -> None:
        self._health_target = None
        await self._health_task.stop()

    def start_maintenance(self) -> None:
        """Start the maintenance tick; it idles until the classifier is ready."""
        self._maintenance_task.start()

    def start_scan(self, hint: ApplianceId | str | None = None) -> DetectionState:
        """Enter scan mode and start the scan tick."""
        self._scan_offset = 0.0
        self._last_scan_frame = None
        state = self._detector.start_scan(hint)
        self._scan_task.start()
        return state

    async def stop_scan(self) -> DetectionState:
        await self._scan_task.stop()
        return self._detector.stop_scan()

    async def close(self) -> None:
        """Stop every periodic task owned by this driver."""
        self._health_target = None
        for task in self.tasks:
            await task.stop()
        if self._detector.is_active:
            self._detector.stop_scan()
        logger.info("simulation driver closed")

    def health_tick(self) -> float | None:
        """Score the active simulation target and publish its energy reading."""
        if self._health_target is None:
            return None
        reading = self._energy.next_reading(self._health_target, self._scenario)
        self._emit_reading(reading)
        return self._score_appliance(self._health_target)

    def maintenance_tick(self) -> float | None:
        """Score the selected appliance; None until the classifier is ready."""
        if not self._classifier.is_ready:
            return None
        return self._score_appliance(self._selected)

    def scan_tick(self) -> DetectionState | None:
        """Advance the detector by one tick and render the matching frame."""
        if not self._detector.is_active:
            return None
        state = self._detector.tick(confidence=self._scan_confidence())
        self._scan_offset += OFFSET_PER_TICK
        frame = render_scan_frame(self._detector.display_target(), self._scan_offset, self._rng)
        self._last_scan_frame = frame
        self._emit_waveform(frame)
        return state

    def _score_appliance(self, appliance: ApplianceId) -> float:
        state = self._registry.get(appliance)
        clean = synthesize(appliance.archetype, self._phase.phase())
        live = degrade(clean, age_fraction(state.age), self._rng)
        self._emit_waveform(WaveformFrame(live=live, reference=clean, appliance=appliance))

        score = self._classifier.predict(live)
        self._registry.set_health_score(appliance, score)
        logger.debug("health of %s at age %.0f: %.3f", appliance.value, state.age, score)
        for listener in tuple(self._health_listeners):
            listener(appliance, score)
        return score

    def _scan_confidence(self) -> float | None:
        if not self._config.use_classifier_confidence or not self._classifier.is_ready:
            return None
        frame = self._last_scan_frame
        if frame is None or frame.appliance is None:
            return None
        return lock_confidence(self._classifier.predict(frame.live))

    def _emit_waveform(self, frame: WaveformFrame) -> None:
        for listener in tuple(self._waveform_listeners):
            listener(frame)

    def _emit_reading(self, reading: EnergyReading) -> None:
        for listener in tuple(self._reading_listeners):
            listener(reading)


def _subscribe(listeners: list[_ListenerT], listener: _ListenerT) -> Callable[[], None]:
    listeners.append(listener)

    def unsubscribe() -> None:
        if listener in listeners:
            listeners.remove(listener)

    return unsubscribe
