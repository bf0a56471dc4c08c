"""CLI: search delta × selec for the best total Shannon KFE.

Starts from ``--delta``/``--selec``, sweeps the candidate grid (by default
delta in {0, 25..75} and selec in 0.25..0.75 with step 0.01, both extended
with the starting pair) and writes:

- ``tables/optimization_summary.csv``: before/after parameters and best scores,
- ``tables/radius_metrics_before.csv`` / ``radius_metrics_after.csv``,
- ``figures/optimization_<criterion>_class<k>.png``: before/after curves,
- ``notes/optimization.md``: a short narrative of the run.

The process exits with a non-zero status when the optimizer reports failure
(fewer than two images, or the winning pair could not be confirmed).

Usage:
    python -m pattern_kfe.optimize_parameters --image-a a.png --image-b b.png
"""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .ingestion import build_training_matrix
from .pipeline.common import DEFAULT_SCORE_TOLERANCE, PipelineConfig
from .pipeline.optimizer import OptimizationResult, OptimizationSettings, ParameterOptimizer
from .reporting import (
    metrics_frame,
    optimization_summary_frame,
    plot_optimization_comparison,
    write_optimization_report,
)
from .run_pipeline import add_common_arguments, config_from_args, configure_logging

LOGGER = logging.getLogger(__name__)


def parse_args(args: Optional[Sequence[str]] = None) -> PipelineConfig:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    add_common_arguments(parser)
    parser.add_argument(
        "--delta-candidates",
        type=int,
        nargs="+",
        default=None,
        help="Explicit delta grid (default: 0 and 25..75).",
    )
    parser.add_argument(
        "--selec-candidates",
        type=float,
        nargs="+",
        default=None,
        help="Explicit selec grid (default: 0.25..0.75 step 0.01).",
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=DEFAULT_SCORE_TOLERANCE,
        help="Minimum score improvement for a candidate to replace the best one.",
    )
    parsed = parser.parse_args(args=args)
    configure_logging(parsed.log_level)

    config = config_from_args(parsed)
    config.delta_candidates = parsed.delta_candidates
    config.selec_candidates = parsed.selec_candidates
    config.score_tolerance = parsed.tolerance
    return config


def build_settings(config: PipelineConfig) -> OptimizationSettings:
    default = OptimizationSettings.create_default(config.delta, config.selec)
    deltas = config.delta_candidates if config.delta_candidates else default.delta_candidates
    selecs = config.selec_candidates if config.selec_candidates else default.selec_candidates
    return OptimizationSettings(tuple(deltas), tuple(selecs), config.score_tolerance)


def write_artifacts(result: OptimizationResult, config: PipelineConfig) -> List[Path]:
    config.table_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []

    summary = optimization_summary_frame(result)
    summary_path = config.table_dir / "optimization_summary.csv"
    summary.to_csv(summary_path, index=False)
    written.append(summary_path)

    for label, snapshot in (("before", result.original), ("after", result.optimized)):
        path = config.table_dir / f"radius_metrics_{label}.csv"
        metrics_frame(snapshot.metrics_by_class).to_csv(path, index=False)
        written.append(path)

    classes = sorted(set(result.original.metrics_by_class) | set(result.optimized.metrics_by_class))
    for class_index in classes:
        for key in ("shannon", "kullback"):
            path = config.figure_dir / f"optimization_{key}_class{class_index}.png"
            plot_optimization_comparison(result, class_index, key, path)
            written.append(path)

    note_path = config.note_dir / "optimization.md"
    write_optimization_report(result, summary, written, note_path)
    written.append(note_path)
    return written


def run(config: PipelineConfig) -> Dict[str, Any]:
    try:
        training = build_training_matrix(config.image_paths, config.feature_count, config.realization_count)
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc

    optimizer = ParameterOptimizer(training, config.delta, config.selec)
    result = optimizer.optimize(build_settings(config))
    if result is None:
        raise SystemExit(
            f"Optimization failed; parameters remain delta={optimizer.delta} selec={optimizer.selec:.2f}"
        )

    artifacts = write_artifacts(result, config)
    for path in artifacts:
        LOGGER.info("Wrote %s", path)

    return {
        "original": {"delta": result.original.delta, "selec": result.original.selec, "score": result.original.score},
        "optimized": {"delta": result.optimized.delta, "selec": result.optimized.selec, "score": result.optimized.score},
        "score_gain": result.score_gain,
        "candidates_evaluated": result.candidates_evaluated,
        "candidates_failed": result.candidates_failed,
    }


def main(args: Optional[Sequence[str]] = None) -> None:
    config = parse_args(args)
    summary = run(config)
    LOGGER.info("Optimization complete:\n%s", json.dumps(summary, indent=2))


if __name__ == "__main__":  # pragma: no cover
    main()
