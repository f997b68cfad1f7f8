"""PyTorch trainer for the binary waveform health model."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import cast

import torch
from torch import nn
from torch.utils.data import DataLoader, Dataset, TensorDataset

from voltsentinel.domain.models import ModelMetrics
from voltsentinel.ml.models import HealthCNN

logger = logging.getLogger(__name__)

EpochCallback = Callable[[ModelMetrics], None]


@dataclass(frozen=True, slots=True)
class TrainerConfig:
    """Training hyperparameters for the health model."""

    num_samples: int = 2000
    epochs: int = 30
    batch_size: int = 64
    learning_rate: float = 1e-3
    device: str = "cpu"
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.num_samples <= 0:
            raise ValueError("num_samples must be > 0")
        if self.epochs <= 0:
            raise ValueError("epochs must be > 0")
        if self.batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        if self.learning_rate <= 0:
            raise ValueError("learning_rate must be > 0")


@dataclass(frozen=True, slots=True)
class TrainingHistory:
    """Epoch-wise metrics of one completed training run."""

    epochs: tuple[ModelMetrics, ...]

    @property
    def final(self) -> ModelMetrics:
        return self.epochs[-1]


class HealthTrainer:
    """Fit a HealthCNN with binary cross-entropy and Adam."""

    def __init__(self, *, model: HealthCNN, config: TrainerConfig) -> None:
        if config.seed is not None:
            torch.manual_seed(config.seed)
        self._model = model
        self._config = config
        self._device = torch.device(config.device)
        self._model.to(self._device)
        self._criterion = nn.BCELoss()
        self._optimizer = torch.optim.Adam(self._model.parameters(), lr=config.learning_rate)

    @property
    def model(self) -> HealthCNN:
        """Expose trained model instance."""
        return self._model

    def fit(
        self,
        *,
        inputs: torch.Tensor,
        labels: torch.Tensor,
        on_epoch_end: EpochCallback | None = None,
    ) -> TrainingHistory:
        """Run the epoch loop, reporting metrics after every epoch."""
        loader = _make_loader(
            inputs,
            labels,
            batch_size=self._config.batch_size,
            seed=self._config.seed,
        )

        history: list[ModelMetrics] = []
        for epoch_index in range(self._config.epochs):
            loss, accuracy = self._run_train_epoch(loader)
            metrics = ModelMetrics(loss=loss, accuracy=accuracy, epoch=epoch_index + 1)
            history.append(metrics)
            logger.debug(
                "epoch %d/%d loss=%.4f accuracy=%.3f",
                metrics.epoch,
                self._config.epochs,
                metrics.loss,
                metrics.accuracy,
            )
            if on_epoch_end is not None:
                on_epoch_end(metrics)

        return TrainingHistory(epochs=tuple(history))

    def evaluate_accuracy(self, inputs: torch.Tensor, labels: torch.Tensor) -> float:
        """Thresholded accuracy over provided tensors."""
        if labels.numel() == 0:
            raise ValueError("labels must not be empty")
        self._model.eval()
        with torch.no_grad():
            probs = self._model(inputs.to(self._device)).cpu()
        preds = (probs > 0.5).float()
        return float((preds == labels.cpu()).float().mean().item())

    def _run_train_epoch(self, loader: DataLoader[tuple[torch.Tensor, torch.Tensor]]) -> tuple[float, float]:
        self._model.train()
        loss_sum = 0.0
        correct = 0
        total = 0
        for x_batch, y_batch in loader:
            x_batch = x_batch.to(self._device)
            y_batch = y_batch.to(self._device)
            self._optimizer.zero_grad(set_to_none=True)
            probs = self._model(x_batch)
            loss = self._criterion(probs, y_batch)
            loss.backward()
            self._optimizer.step()

            batch_size = int(y_batch.shape[0])
            loss_sum += float(loss.item()) * batch_size
            correct += int(((probs.detach() > 0.5).float() == y_batch).sum().item())
            total += batch_size

        if total == 0:
            raise ValueError("empty training loader")
        return max(loss_sum / total, 0.0), correct / total


def _make_loader(
    inputs: torch.Tensor,
    labels: torch.Tensor,
    *,
    batch_size: int,
    seed: int | None,
) -> DataLoader[tuple[torch.Tensor, torch.Tensor]]:
    if inputs.ndim != 3:
        raise ValueError("inputs must have shape [batch, 1, samples]")
    if labels.ndim != 2 or labels.shape[1] != 1:
        raise ValueError("labels must have shape [batch, 1]")
    if int(inputs.shape[0]) != int(labels.shape[0]):
        raise ValueError("inputs and labels batch sizes must match")

    dataset = cast(Dataset[tuple[torch.Tensor, torch.Tensor]], TensorDataset(inputs, labels))
    generator = None
    if seed is not None:
        generator = torch.Generator()
        generator.manual_seed(seed)
    return DataLoader(dataset, batch_size=batch_size, shuffle=True, generator=generator)
