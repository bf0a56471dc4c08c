"""CLI: build the classifier for two images and write its artifacts.

Runs ingestion and one full recomputation at the given ``delta``/``selec``,
then writes:

- ``tables/radius_metrics.csv``: D1/alpha/beta/D2 and both KFE scores per radius,
- ``figures/``: binary matrices, reference vectors and KFE curves per class,
- ``notes/pipeline_run.md``: parameters, separation distances and previews.

Usage:
    python -m pattern_kfe.run_pipeline --image-a class0.png --image-b class1.png
"""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from .ingestion import build_training_matrix
from .pipeline.common import (
    DEFAULT_DELTA,
    DEFAULT_FEATURE_COUNT,
    DEFAULT_REALIZATION_COUNT,
    DEFAULT_SELEC,
    PipelineConfig,
    PipelineError,
    best_score,
)
from .pipeline.core import recompute
from .reporting import metrics_frame, save_pipeline_figures, write_pipeline_report

LOGGER = logging.getLogger(__name__)


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--image-a", type=Path, required=True, help="Image of class 0.")
    parser.add_argument("--image-b", type=Path, required=True, help="Image of class 1.")
    parser.add_argument(
        "--features",
        type=int,
        default=DEFAULT_FEATURE_COUNT,
        help="Feature count N (image height after normalization).",
    )
    parser.add_argument(
        "--realizations",
        type=int,
        default=DEFAULT_REALIZATION_COUNT,
        help="Realization count n (image width after normalization).",
    )
    parser.add_argument("--delta", type=int, default=DEFAULT_DELTA, help="Tolerance half-width.")
    parser.add_argument("--selec", type=float, default=DEFAULT_SELEC, help="Selection fraction in [0, 1].")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("outputs"),
        help="Base directory for tables, figures and notes.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )


def parse_args(args: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    add_common_arguments(parser)
    return parser.parse_args(args=args)


def config_from_args(parsed: argparse.Namespace) -> PipelineConfig:
    return PipelineConfig(
        image_paths=[parsed.image_a, parsed.image_b],
        feature_count=parsed.features,
        realization_count=parsed.realizations,
        delta=parsed.delta,
        selec=parsed.selec,
        output_dir=parsed.output_dir,
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def run(config: PipelineConfig) -> Dict[str, Any]:
    try:
        training = build_training_matrix(config.image_paths, config.feature_count, config.realization_count)
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc
    try:
        result = recompute(training, config.delta, config.selec)
    except PipelineError as exc:
        raise SystemExit(f"Cannot build classifier: {exc}") from exc

    config.table_dir.mkdir(parents=True, exist_ok=True)
    table_path = config.table_dir / "radius_metrics.csv"
    metrics_frame(result.metrics_by_class).to_csv(table_path, index=False)
    LOGGER.info("Wrote radius metrics to %s", table_path)

    figures = save_pipeline_figures(result, config.figure_dir)
    LOGGER.info("Wrote %d figures under %s", len(figures), config.figure_dir)

    note_path = config.note_dir / "pipeline_run.md"
    write_pipeline_report(result, [table_path, *figures], note_path)
    LOGGER.info("Wrote run notes to %s", note_path)

    return {
        "delta": result.delta,
        "selec": result.selec,
        "separation": {str(k): v for k, v in result.max_radius_by_class.items()},
        "best_shannon": {str(k): best_score(v, "shannon") for k, v in result.metrics_by_class.items()},
        "best_kullback": {str(k): best_score(v, "kullback") for k, v in result.metrics_by_class.items()},
        "table": str(table_path),
        "notes": str(note_path),
    }


def main(args: Optional[Sequence[str]] = None) -> None:
    parsed = parse_args(args)
    configure_logging(parsed.log_level)
    summary = run(config_from_args(parsed))
    LOGGER.info("Pipeline complete:\n%s", json.dumps(summary, indent=2))


if __name__ == "__main__":  # pragma: no cover
    main()
