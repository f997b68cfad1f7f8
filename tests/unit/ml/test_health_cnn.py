"""Unit tests for the health CNN architecture."""

from __future__ import annotations

import pytest
import torch
from torch import nn

from voltsentinel.ml import HealthCNN


def test_forward_output_is_probability_per_window() -> None:
    model = HealthCNN()
    model.eval()
    y = model(torch.randn(8, 1, 100))
    assert y.shape == (8, 1)
    assert torch.all((y > 0) & (y < 1))


def test_layer_stack_matches_architecture() -> None:
    model = HealthCNN()
    convs = [layer for layer in model.features if isinstance(layer, nn.Conv1d)]
    assert [(conv.out_channels, conv.kernel_size[0]) for conv in convs] == [(16, 5), (32, 3)]
    pools = [layer for layer in model.features if isinstance(layer, nn.MaxPool1d)]
    assert len(pools) == 2
    linears = [layer for layer in model.classifier if isinstance(layer, nn.Linear)]
    assert [linear.out_features for linear in linears] == [64, 1]
    assert linears[0].in_features == 32 * 23
    dropouts = [layer for layer in model.classifier if isinstance(layer, nn.Dropout)]
    assert dropouts[0].p == pytest.approx(0.2)
    assert isinstance(model.classifier[-1], nn.Sigmoid)


def test_invalid_input_shape_raises() -> None:
    model = HealthCNN()
    with pytest.raises(ValueError, match="shape"):
        model(torch.randn(8, 100))
    with pytest.raises(ValueError, match="shape"):
        model(torch.randn(8, 2, 100))


def test_wrong_window_length_raises() -> None:
    model = HealthCNN()
    with pytest.raises(ValueError, match="100 samples"):
        model(torch.randn(2, 1, 64))


def test_invalid_construction_arguments() -> None:
    with pytest.raises(ValueError, match="window_samples"):
        HealthCNN(window_samples=8)
    with pytest.raises(ValueError, match="dropout"):
        HealthCNN(dropout=1.0)
