from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from pattern_kfe import optimize_parameters, run_pipeline
from pattern_kfe.optimize_parameters import build_settings


def _common_args(image_pair, output_dir: Path) -> list:
    path_a, path_b = image_pair
    return [
        "--image-a", str(path_a),
        "--image-b", str(path_b),
        "--features", "8",
        "--realizations", "8",
        "--output-dir", str(output_dir),
        "--log-level", "WARNING",
    ]


def test_run_pipeline_writes_artifacts(tmp_path: Path, image_pair) -> None:
    output_dir = tmp_path / "outputs"
    run_pipeline.main(_common_args(image_pair, output_dir))

    table = pd.read_csv(output_dir / "tables" / "radius_metrics.csv")
    assert set(table["class"]) == {0, 1}
    assert table["radius"].max() == 8
    assert (output_dir / "figures" / "binary_class0.png").exists()
    assert (output_dir / "figures" / "kfe_class1.png").exists()
    assert (output_dir / "notes" / "pipeline_run.md").exists()


def test_run_pipeline_summary(tmp_path: Path, image_pair) -> None:
    parsed = run_pipeline.parse_args(_common_args(image_pair, tmp_path))
    summary = run_pipeline.run(run_pipeline.config_from_args(parsed))
    assert summary["delta"] == 50
    assert summary["separation"] == {"0": 8, "1": 8}
    assert summary["best_shannon"]["0"] == pytest.approx(1.0)


def test_run_pipeline_missing_image_exits(tmp_path: Path) -> None:
    args = ["--image-a", str(tmp_path / "a.png"), "--image-b", str(tmp_path / "b.png")]
    with pytest.raises(SystemExit):
        run_pipeline.main(args)


def test_run_pipeline_invalid_selec_exits(tmp_path: Path, image_pair) -> None:
    with pytest.raises(SystemExit):
        run_pipeline.main(_common_args(image_pair, tmp_path) + ["--selec", "1.5"])


def test_optimize_parameters_writes_artifacts(tmp_path: Path, image_pair) -> None:
    output_dir = tmp_path / "outputs"
    args = _common_args(image_pair, output_dir) + [
        "--delta", "200",
        "--delta-candidates", "50",
        "--selec-candidates", "0.5",
    ]
    optimize_parameters.main(args)

    summary = pd.read_csv(output_dir / "tables" / "optimization_summary.csv", dtype=str)
    delta_row = summary[(summary["class"] == "0") & (summary["parameter"] == "delta")].iloc[0]
    assert (delta_row["before"], delta_row["after"]) == ("200", "50")
    assert (output_dir / "tables" / "radius_metrics_before.csv").exists()
    assert (output_dir / "tables" / "radius_metrics_after.csv").exists()
    assert (output_dir / "figures" / "optimization_shannon_class0.png").exists()
    assert (output_dir / "figures" / "optimization_kullback_class1.png").exists()
    assert (output_dir / "notes" / "optimization.md").exists()


def test_build_settings_defaults_and_overrides(tmp_path: Path, image_pair) -> None:
    config = optimize_parameters.parse_args(_common_args(image_pair, tmp_path))
    settings = build_settings(config)
    assert settings.delta_candidates[0] == 0
    assert 50 in settings.delta_candidates
    assert len(settings.selec_candidates) == 51

    config = optimize_parameters.parse_args(
        _common_args(image_pair, tmp_path) + ["--delta-candidates", "7", "3", "--tolerance", "0.1"]
    )
    settings = build_settings(config)
    assert settings.delta_candidates == (3, 7)
    assert settings.score_tolerance == 0.1
