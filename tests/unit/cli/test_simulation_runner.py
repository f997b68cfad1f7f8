"""Tests for the headless simulation runner."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from voltsentinel.cli import runner


def test_main_writes_report_and_returns_zero(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    report_path = tmp_path / "out" / "report.json"
    exit_code = runner.main(
        [
            "--appliance",
            "fan",
            "--age",
            "0",
            "--age",
            "100",
            "--ticks",
            "5",
            "--num-samples",
            "128",
            "--epochs",
            "2",
            "--seed",
            "4",
            "--scan-ticks",
            "12",
            "--hint",
            "fan",
            "--output",
            str(report_path),
            "--log-level",
            "WARNING",
        ]
    )

    assert exit_code == 0
    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert report["appliance"] == "fan"
    assert [entry["age"] for entry in report["health"]] == [0.0, 100.0]
    assert all(0.0 <= entry["mean_score"] <= 1.0 for entry in report["health"])
    assert [epoch["epoch"] for epoch in report["training"]["epochs"]] == [1, 2]
    assert report["training"]["config"]["num_samples"] == 128
    assert report["scan"]["final"]["mode"] == "locked"
    assert report["scan"]["final"]["locked_id"] == "fan"
    assert [t["mode"] for t in report["scan"]["transitions"]] == ["scanning", "locked", "idle"]

    out = capsys.readouterr().out
    assert "locked_id: fan" in out
    assert "mean_health[age=100]" in out


def test_run_without_scan_has_null_scan_section(tmp_path: Path) -> None:
    args = runner.build_parser().parse_args(
        ["--ticks", "3", "--num-samples", "64", "--epochs", "1", "--output", str(tmp_path / "r.json")]
    )
    artifacts = runner.run_simulation_from_args(args)

    report = json.loads(artifacts.report_path.read_text(encoding="utf-8"))
    assert report["scan"] is None
    assert artifacts.locked_id is None
    assert set(artifacts.mean_scores) == {"0", "100"}
    assert 0.0 <= artifacts.final_accuracy <= 1.0


def test_main_returns_two_on_invalid_arguments(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = runner.main(["--ticks", "0", "--output", str(tmp_path / "r.json")])
    assert exit_code == 2
    assert "[ERROR]" in capsys.readouterr().err
    assert not (tmp_path / "r.json").exists()


def test_parser_defaults() -> None:
    args = runner.build_parser().parse_args([])
    assert args.appliance == "laptop"
    assert args.age is None
    assert (args.ticks, args.num_samples, args.epochs, args.batch_size) == (50, 2000, 30, 64)
    assert args.classifier_confidence is False
