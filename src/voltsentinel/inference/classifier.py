"""Explicitly owned health classifier with a queryable lifecycle."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Iterable

import numpy as np
import torch

from voltsentinel.domain.models import ModelState, validate_waveform
from voltsentinel.ml.models import HealthCNN
from voltsentinel.training.datasets import generate_training_samples, normalize_waveform, samples_to_dataset
from voltsentinel.training.trainer import EpochCallback, HealthTrainer, TrainerConfig, TrainingHistory

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 0.5


class ModelUnavailableError(RuntimeError):
    """Raised when a prediction is requested from a model that is not ready."""

    def __init__(self, state: ModelState) -> None:
        super().__init__(f"health model unavailable (state={state.value})")
        self.state = state


class HealthClassifier:
    """Train and serve the waveform health model.

    Only one training run may be in flight; a concurrent request is ignored
    rather than queued. While no trained weights are available ``predict``
    answers with the neutral score 0.5, and ``predict_or_raise`` raises
    ``ModelUnavailableError`` instead.
    """

    def __init__(
        self,
        config: TrainerConfig | None = None,
        *,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._config = config if config is not None else TrainerConfig()
        self._rng = rng if rng is not None else np.random.default_rng(self._config.seed)
        self._device = torch.device(self._config.device)
        self._model: HealthCNN | None = None
        self._state = ModelState.UNTRAINED
        self._training_runs = 0
        self._lock = threading.Lock()

    @property
    def state(self) -> ModelState:
        with self._lock:
            return self._state

    @property
    def is_training(self) -> bool:
        return self.state == ModelState.TRAINING

    @property
    def is_ready(self) -> bool:
        return self.state == ModelState.READY

    @property
    def training_runs(self) -> int:
        """Number of training runs actually started."""
        with self._lock:
            return self._training_runs

    @property
    def config(self) -> TrainerConfig:
        return self._config

    def train_blocking(self, on_epoch_end: EpochCallback | None = None) -> TrainingHistory | None:
        """Train on the calling thread; returns None if a run is already in flight."""
        previous = self._claim_training()
        if previous is None:
            return None
        return self._run_training(previous, on_epoch_end)

    async def train(self, on_epoch_end: EpochCallback | None = None) -> TrainingHistory | None:
        """Train on a worker thread so the event loop keeps ticking.

        The in-flight flag is claimed before the first suspension point, so a
        second concurrent call returns None without starting another run.
        ``on_epoch_end`` is invoked on the worker thread.
        """
        previous = self._claim_training()
        if previous is None:
            return None
        return await asyncio.to_thread(self._run_training, previous, on_epoch_end)

    def predict(self, waveform: Iterable[float]) -> float:
        """Healthy-probability for one window, or 0.5 while the model is unavailable."""
        try:
            return self.predict_or_raise(waveform)
        except ModelUnavailableError:
            return NEUTRAL_SCORE

    def predict_or_raise(self, waveform: Iterable[float]) -> float:
        """Healthy-probability for one window; raises if the model is not ready."""
        with self._lock:
            state = self._state
            model = self._model
        if state != ModelState.READY or model is None:
            raise ModelUnavailableError(state)

        window = validate_waveform(waveform)
        inputs = torch.from_numpy(normalize_waveform(window)).reshape(1, 1, -1)
        model.eval()
        with torch.no_grad():
            score = float(model(inputs.to(self._device)).item())
        return min(max(score, 0.0), 1.0)

    def dispose(self) -> None:
        """Release the weights; the classifier cannot be trained afterwards."""
        with self._lock:
            self._model = None
            self._state = ModelState.DISPOSED
        logger.info("health classifier disposed")

    def _claim_training(self) -> ModelState | None:
        with self._lock:
            if self._state == ModelState.DISPOSED:
                raise ModelUnavailableError(self._state)
            if self._state == ModelState.TRAINING:
                logger.warning("training already in progress; ignoring request")
                return None
            previous = self._state
            self._state = ModelState.TRAINING
            self._training_runs += 1
            if self._model is None:
                if self._config.seed is not None:
                    torch.manual_seed(self._config.seed)
                self._model = HealthCNN()
            return previous

    def _run_training(
        self,
        previous: ModelState,
        on_epoch_end: EpochCallback | None,
    ) -> TrainingHistory:
        with self._lock:
            model = self._model
        if model is None:
            raise ModelUnavailableError(ModelState.DISPOSED)

        logger.info(
            "training health model: samples=%d epochs=%d batch_size=%d",
            self._config.num_samples,
            self._config.epochs,
            self._config.batch_size,
        )
        snapshot = _copy_weights(model) if previous == ModelState.READY else None
        started = time.perf_counter()
        try:
            dataset = samples_to_dataset(generate_training_samples(self._config.num_samples, self._rng))
            trainer = HealthTrainer(model=model, config=self._config)
            history = trainer.fit(
                inputs=dataset.inputs,
                labels=dataset.labels,
                on_epoch_end=on_epoch_end,
            )
        except BaseException:
            if snapshot is not None:
                model.load_state_dict(snapshot)
            with self._lock:
                if self._state == ModelState.TRAINING:
                    self._state = previous
            logger.exception("health model training failed; state restored to %s", previous.value)
            raise

        with self._lock:
            if self._state == ModelState.TRAINING:
                self._state = ModelState.READY
        logger.info(
            "health model trained in %.1fs: loss=%.4f accuracy=%.3f",
            time.perf_counter() - started,
            history.final.loss,
            history.final.accuracy,
        )
        return history


def _copy_weights(model: HealthCNN) -> dict[str, torch.Tensor]:
    return {name: tensor.detach().clone() for name, tensor in model.state_dict().items()}


def lock_confidence(score: float) -> float:
    """Map a health score to a [0.5, 1] confidence from its distance to 0.5."""
    if not 0.0 <= score <= 1.0:
        raise ValueError("score must be in [0, 1]")
    return NEUTRAL_SCORE + abs(score - NEUTRAL_SCORE)
