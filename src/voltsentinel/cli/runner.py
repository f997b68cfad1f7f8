"""Headless runner: train the health model, score appliances and run a scan."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Sequence

import numpy as np

from voltsentinel.domain.models import ApplianceId, DetectionState, health_status
from voltsentinel.inference.classifier import HealthClassifier
from voltsentinel.simulation.config import SimulationConfig
from voltsentinel.simulation.driver import SimulationDriver
from voltsentinel.training.trainer import TrainerConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SimulationRunArtifacts:
    """Report path and headline numbers of one runner execution."""

    report_path: Path
    final_accuracy: float
    mean_scores: dict[str, float]
    locked_id: str | None


def build_parser() -> argparse.ArgumentParser:
    """Create CLI parser for a headless simulation run."""
    parser = argparse.ArgumentParser(
        prog="voltsentinel-sim",
        description=(
            "Train the waveform health model on synthetic data, score one appliance at "
            "several ages and optionally run a detection scan; writes a JSON run report."
        ),
    )
    parser.add_argument(
        "--appliance",
        choices=tuple(appliance.value for appliance in ApplianceId),
        default=ApplianceId.LAPTOP.value,
        help="Appliance to score.",
    )
    parser.add_argument(
        "--age",
        type=float,
        action="append",
        default=None,
        help="Appliance age on the 0..100 scale; repeat for several ages (default: 0 and 100).",
    )
    parser.add_argument("--ticks", type=int, default=50, help="Inference ticks per age.")
    parser.add_argument("--num-samples", type=int, default=2000, help="Synthetic training samples.")
    parser.add_argument("--epochs", type=int, default=30, help="Training epochs.")
    parser.add_argument("--batch-size", type=int, default=64, help="Training batch size.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for data generation and training.")
    parser.add_argument("--scan-ticks", type=int, default=0, help="Detection scan ticks to run (0 disables).")
    parser.add_argument(
        "--hint",
        choices=tuple(appliance.value for appliance in ApplianceId),
        default=None,
        help="Target hint for the detection scan; omit for a free-roam scan.",
    )
    parser.add_argument(
        "--classifier-confidence",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Derive the lock confidence from the classifier instead of the fixed reference value.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("artifacts/simulation_report.json"),
        help="Path of the JSON run report.",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="INFO",
        help="Logging verbosity.",
    )
    return parser


def run_simulation_from_args(args: argparse.Namespace) -> SimulationRunArtifacts:
    """Execute one headless run and write its report."""
    if args.ticks <= 0:
        raise ValueError("ticks must be > 0")
    if args.scan_ticks < 0:
        raise ValueError("scan_ticks must be >= 0")
    ages = tuple(args.age) if args.age else (0.0, 100.0)
    appliance = ApplianceId(args.appliance)

    trainer_config = TrainerConfig(
        num_samples=args.num_samples,
        epochs=args.epochs,
        batch_size=args.batch_size,
        seed=args.seed,
    )
    classifier = HealthClassifier(trainer_config)
    started = time.perf_counter()
    history = classifier.train_blocking()
    if history is None:
        raise RuntimeError("training did not start")
    training_seconds = time.perf_counter() - started

    driver = SimulationDriver(
        classifier,
        config=SimulationConfig(use_classifier_confidence=args.classifier_confidence, seed=args.seed),
    )
    driver.select(appliance)

    age_reports: list[dict[str, Any]] = []
    mean_scores: dict[str, float] = {}
    for age in ages:
        driver.set_age(appliance, age)
        scores = [_require_score(driver.maintenance_tick()) for _ in range(args.ticks)]
        mean_score = float(np.mean(scores))
        mean_scores[f"{driver.registry.get(appliance).age:g}"] = mean_score
        age_reports.append(
            {
                "age": driver.registry.get(appliance).age,
                "mean_score": mean_score,
                "min_score": float(np.min(scores)),
                "max_score": float(np.max(scores)),
                "status": health_status(mean_score).value,
            }
        )
        logger.info("%s at age %g: mean health %.3f", appliance.value, age, mean_score)

    transitions: list[DetectionState] = []
    final_state: DetectionState | None = None
    if args.scan_ticks > 0:
        driver.on_detection(transitions.append)
        driver.detector.start_scan(args.hint)
        for _ in range(args.scan_ticks):
            final_state = driver.scan_tick()
        driver.detector.stop_scan()

    report: dict[str, Any] = {
        "appliance": appliance.value,
        "training": {
            "config": asdict(trainer_config),
            "seconds": training_seconds,
            "epochs": [asdict(metrics) for metrics in history.epochs],
        },
        "health": age_reports,
        "scan": None
        if final_state is None
        else {
            "hint": args.hint,
            "ticks": args.scan_ticks,
            "final": _state_to_jsonable(final_state),
            "transitions": [_state_to_jsonable(state) for state in transitions],
        },
    }

    output_path = args.output.resolve()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _write_json(output_path, report)

    return SimulationRunArtifacts(
        report_path=output_path,
        final_accuracy=history.final.accuracy,
        mean_scores=mean_scores,
        locked_id=final_state.locked_id.value if final_state and final_state.locked_id else None,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        artifacts = run_simulation_from_args(args)
    except Exception as exc:
        print(f"[ERROR] simulation runner failed: {exc}", file=sys.stderr)
        return 2

    print(f"report: {artifacts.report_path}")
    print(f"final_accuracy: {artifacts.final_accuracy:.3f}")
    for age, score in artifacts.mean_scores.items():
        print(f"mean_health[age={age}]: {score:.3f}")
    if artifacts.locked_id is not None:
        print(f"locked_id: {artifacts.locked_id}")
    return 0


def _require_score(score: float | None) -> float:
    if score is None:
        raise RuntimeError("classifier is not ready")
    return score


def _state_to_jsonable(state: DetectionState) -> dict[str, Any]:
    return {
        "mode": state.mode.value,
        "locked_id": state.locked_id.value if state.locked_id else None,
        "scan_ticks": state.scan_ticks,
        "confidence": state.confidence,
    }


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")


if __name__ == "__main__":
    raise SystemExit(main())
