"""Tables, figures, previews and notes for pipeline and optimizer runs.

Nothing here feeds back into the computation: these helpers only render
``PipelineResult`` and ``OptimizationResult`` objects so that students can
inspect the binary matrices, compare the KFE curves and keep a record of
each run under ``outputs/``.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import logging
import math

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from PIL import Image

from .pipeline.common import MetricsByClass, PipelineResult, RadiusMetric
from .pipeline.optimizer import OptimizationResult, OptimizationSnapshot

LOGGER = logging.getLogger(__name__)

SHANNON_TAG = "KFE E"
KULLBACK_TAG = "KFE K"
CRITERION_LABELS = {"shannon": "Shannon KFE", "kullback": "Kullback KFE"}
CRITERION_COLORS = {"shannon": "#1e88e5", "kullback": "#ef5350"}


# ---------------------------------------------------------------------------
# Matrix rendering
# ---------------------------------------------------------------------------

def binary_matrix_image(binary: np.ndarray, class_index: int) -> Image.Image:
    """Render one class of ``X`` as black (0) and white (1) pixels."""
    pixels = (np.asarray(binary[class_index]) > 0).astype(np.uint8) * 255
    return Image.fromarray(pixels)


def reference_vector_image(reference: np.ndarray, class_index: int, width: int, height: int) -> Image.Image:
    """Stretch a reference vector (top = first feature) into a ``width`` × ``height`` strip."""
    vector = np.asarray(reference[class_index])
    rows = np.minimum((np.arange(height) * vector.size) // height, vector.size - 1)
    column = (vector[rows] > 0).astype(np.uint8) * 255
    return Image.fromarray(np.tile(column[:, None], (1, width)))


# ---------------------------------------------------------------------------
# Text previews
# ---------------------------------------------------------------------------

def format_training_preview(training: np.ndarray, class_index: int, limit: int = 20) -> str:
    grid = np.asarray(training[class_index])
    rows, cols = grid.shape
    lines: List[str] = []
    for row in grid[:limit]:
        line = "".join(f"{int(round(v)):4d}" for v in row[:limit])
        if cols > limit:
            line += "   ..."
        lines.append(line)
    if rows > limit:
        lines.append("...")
    return "\n".join(lines) + "\n"


def format_binary_preview(result: PipelineResult, class_index: int, limit: int = 20) -> str:
    binary = result.binary[class_index]
    lines: List[str] = []
    for feature in range(min(limit, binary.shape[0])):
        bits = " ".join(str(int(b)) for b in binary[feature, :limit])
        if binary.shape[1] > limit:
            bits += " ..."
        lines.append(
            f"{bits}  | NDK={int(round(result.lower_bounds[class_index, feature]))}"
            f" VDK={int(round(result.upper_bounds[class_index, feature]))}"
            f" AVG={result.averages[class_index, feature]:.2f}"
        )
    if binary.shape[0] > limit:
        lines.append("...")
    return "\n".join(lines) + "\n"


def format_reference_vector(reference: np.ndarray, class_index: int) -> str:
    return "".join(str(int(b)) for b in reference[class_index])


# ---------------------------------------------------------------------------
# Metric tables
# ---------------------------------------------------------------------------

def best_radius(metrics: Sequence[RadiusMetric], key: str) -> Optional[int]:
    """Radius with the largest finite score for ``key`` (first one wins ties)."""
    best: Optional[Tuple[float, int]] = None
    for metric in metrics:
        value = float(getattr(metric, key))
        if math.isfinite(value) and (best is None or value > best[0]):
            best = (value, metric.radius)
    return None if best is None else best[1]


def metrics_frame(metrics_by_class: MetricsByClass) -> pd.DataFrame:
    rows = []
    for class_index in sorted(metrics_by_class):
        metrics = metrics_by_class[class_index]
        shannon_best = best_radius(metrics, "shannon")
        kullback_best = best_radius(metrics, "kullback")
        for m in metrics:
            tags = []
            if m.radius == shannon_best:
                tags.append(SHANNON_TAG)
            if m.radius == kullback_best:
                tags.append(KULLBACK_TAG)
            rows.append(
                {
                    "class": class_index,
                    "radius": m.radius,
                    "D1": m.d1,
                    "alpha": m.alpha,
                    "beta": m.beta,
                    "D2": m.d2,
                    "k1": m.k1,
                    "k2": m.k2,
                    "k3": m.k3,
                    "k4": m.k4,
                    "sample_size": m.sample_size,
                    "reliable": m.is_reliable,
                    "shannon": m.shannon,
                    "kullback": m.kullback,
                    "optimum": ", ".join(tags),
                }
            )
    columns = [
        "class", "radius", "D1", "alpha", "beta", "D2", "k1", "k2", "k3", "k4",
        "sample_size", "reliable", "shannon", "kullback", "optimum",
    ]
    return pd.DataFrame(rows, columns=columns)


def _fmt(value: Optional[float]) -> str:
    if value is None or not math.isfinite(value):
        return "-"
    return f"{value:.3f}"


def optimization_summary_frame(result: OptimizationResult) -> pd.DataFrame:
    """Per-class before/after comparison of parameters and best scores."""
    before, after = result.original, result.optimized
    rows = []
    classes = sorted(set(before.metrics_by_class) | set(after.metrics_by_class))
    for class_index in classes:
        old_metrics = before.metrics_by_class.get(class_index, ())
        new_metrics = after.metrics_by_class.get(class_index, ())
        entries = [
            ("delta", str(before.delta), str(after.delta)),
            ("selec", f"{before.selec:.2f}", f"{after.selec:.2f}"),
            ("max radius", str(len(old_metrics)), str(len(new_metrics))),
            ("best Shannon", _fmt(before.best_shannon_by_class.get(class_index)),
             _fmt(after.best_shannon_by_class.get(class_index))),
            ("best Kullback", _fmt(before.best_kullback_by_class.get(class_index)),
             _fmt(after.best_kullback_by_class.get(class_index))),
            ("Shannon radius", str(best_radius(old_metrics, "shannon") or "-"),
             str(best_radius(new_metrics, "shannon") or "-")),
            ("Kullback radius", str(best_radius(old_metrics, "kullback") or "-"),
             str(best_radius(new_metrics, "kullback") or "-")),
        ]
        for parameter, old, new in entries:
            rows.append({"class": class_index, "parameter": parameter, "before": old, "after": new})
    return pd.DataFrame(rows, columns=["class", "parameter", "before", "after"])


# ---------------------------------------------------------------------------
# Charts
# ---------------------------------------------------------------------------

def reliable_spans(metrics: Sequence[RadiusMetric]) -> List[Tuple[float, float]]:
    """Contiguous runs of reliable radii as ``(start, end)`` half-step spans."""
    spans: List[Tuple[float, float]] = []
    start: Optional[float] = None
    last_radius = 0
    for m in metrics:
        if m.is_reliable and start is None:
            start = m.radius - 0.5
        elif not m.is_reliable and start is not None:
            spans.append((start, last_radius + 0.5))
            start = None
        last_radius = m.radius
    if start is not None:
        spans.append((start, last_radius + 0.5))
    return spans


def _finite_series(metrics: Sequence[RadiusMetric], key: str) -> Tuple[List[int], List[float]]:
    radii, values = [], []
    for m in metrics:
        value = float(getattr(m, key))
        if math.isfinite(value):
            radii.append(m.radius)
            values.append(value)
    return radii, values


def plot_kfe_curves(metrics: Sequence[RadiusMetric], output_path: Path, title: str) -> None:
    plt.figure(figsize=(7, 4))
    for start, end in reliable_spans(metrics):
        plt.axvspan(start, end, color="#c8e6c9", alpha=0.5)
    for key in ("shannon", "kullback"):
        radii, values = _finite_series(metrics, key)
        if radii:
            plt.plot(radii, values, marker="o", markersize=3, label=CRITERION_LABELS[key], color=CRITERION_COLORS[key])
    plt.title(title)
    plt.xlabel("Radius")
    plt.ylabel("KFE")
    if metrics:
        plt.legend()
    plt.grid(linestyle="--", alpha=0.3)
    plt.tight_layout()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, dpi=200)
    plt.close()


def plot_optimization_comparison(
    result: OptimizationResult,
    class_index: int,
    key: str,
    output_path: Path,
) -> None:
    snapshots: Dict[str, OptimizationSnapshot] = {"Before": result.original, "After": result.optimized}
    plt.figure(figsize=(7, 4))
    for label, snapshot in snapshots.items():
        radii, values = _finite_series(snapshot.metrics_by_class.get(class_index, ()), key)
        if not radii:
            continue
        style = "--" if label == "Before" else "-"
        plt.plot(
            radii,
            values,
            linestyle=style,
            color=CRITERION_COLORS[key],
            label=f"{label} (delta={snapshot.delta}, selec={snapshot.selec:.2f})",
        )
    plt.title(f"{CRITERION_LABELS[key]} - class {class_index}")
    plt.xlabel("Radius")
    plt.ylabel("KFE")
    plt.legend(loc="lower left")
    plt.grid(linestyle="--", alpha=0.3)
    plt.tight_layout()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, dpi=200)
    plt.close()


# ---------------------------------------------------------------------------
# Artifacts and notes
# ---------------------------------------------------------------------------

def save_pipeline_figures(result: PipelineResult, figure_dir: Path) -> List[Path]:
    figure_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for class_index in range(result.class_count):
        binary_path = figure_dir / f"binary_class{class_index}.png"
        binary_matrix_image(result.binary, class_index).save(binary_path)
        reference_path = figure_dir / f"reference_class{class_index}.png"
        reference_vector_image(
            result.reference_vectors, class_index, result.realization_count, result.feature_count
        ).save(reference_path)
        curve_path = figure_dir / f"kfe_class{class_index}.png"
        plot_kfe_curves(result.metrics_by_class.get(class_index, ()), curve_path, f"KFE - class {class_index}")
        written.extend([binary_path, reference_path, curve_path])
    return written


def write_pipeline_report(result: PipelineResult, artifacts: Sequence[Path], output_path: Path) -> None:
    lines = ["# Classifier Run Notes", ""]
    lines.append("## Parameters")
    lines.append("")
    lines.append(f"- delta: {result.delta}")
    lines.append(f"- selec: {result.selec:.2f}")
    lines.append(
        f"- grid: {result.class_count} classes x {result.feature_count} features"
        f" x {result.realization_count} realizations"
    )
    lines.append("")

    lines.append("## Classes")
    lines.append("")
    for class_index in range(result.class_count):
        metrics = result.metrics_by_class.get(class_index, ())
        reliable = [m.radius for m in metrics if m.is_reliable]
        lines.append(f"### Class {class_index}")
        lines.append("")
        lines.append(f"- separation distance to nearest centroid: {result.max_radius_by_class.get(class_index, 0)}")
        lines.append(f"- reliable radii: {', '.join(map(str, reliable)) if reliable else 'none'}")
        lines.append(f"- best Shannon radius: {best_radius(metrics, 'shannon') or '-'}")
        lines.append(f"- best Kullback radius: {best_radius(metrics, 'kullback') or '-'}")
        lines.append(f"- reference vector: `{format_reference_vector(result.reference_vectors, class_index)}`")
        lines.append("")
        lines.append("Intensity preview:")
        lines.append("")
        lines.append("```")
        lines.append(format_training_preview(result.training, class_index, limit=10).rstrip("\n"))
        lines.append("```")
        lines.append("")
        lines.append("Binary matrix preview:")
        lines.append("")
        lines.append("```")
        lines.append(format_binary_preview(result, class_index, limit=10).rstrip("\n"))
        lines.append("```")
        lines.append("")

    lines.append("## Generated Artifacts")
    lines.append("")
    for path in artifacts:
        lines.append(f"- `{path}`")
    lines.append("")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text("\n".join(lines) + "\n")


def write_optimization_report(
    result: OptimizationResult,
    summary: pd.DataFrame,
    artifacts: Sequence[Path],
    output_path: Path,
) -> None:
    lines = ["# Parameter Optimization Notes", ""]
    lines.append(
        f"- delta: {result.original.delta} -> {result.optimized.delta}"
    )
    lines.append(f"- selec: {result.original.selec:.2f} -> {result.optimized.selec:.2f}")
    lines.append(f"- total Shannon score: {_fmt(result.original.score)} -> {_fmt(result.optimized.score)}")
    lines.append(
        f"- total best Kullback: {_fmt(result.original.total_best_kullback)}"
        f" -> {_fmt(result.optimized.total_best_kullback)}"
    )
    lines.append(f"- score gain: {_fmt(result.score_gain)}")
    lines.append(f"- candidates evaluated: {result.candidates_evaluated} ({result.candidates_failed} failed)")
    if result.cancelled:
        lines.append("- the sweep was cancelled before it covered the whole grid")
    lines.append("")

    lines.append("## Before / After")
    lines.append("")
    if not summary.empty:
        lines.append(summary.to_markdown(index=False))
        lines.append("")

    lines.append("## Generated Artifacts")
    lines.append("")
    for path in artifacts:
        lines.append(f"- `{path}`")
    lines.append("")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text("\n".join(lines) + "\n")
