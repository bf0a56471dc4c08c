"""Full recomputation of the classifier from a training matrix.

``recompute`` runs every stage in order and returns a fresh
``PipelineResult``. Nothing is patched incrementally: each call rebuilds the
binary matrix, centroids, code distances and scored metrics from scratch.
"""
from __future__ import annotations

import logging

import numpy as np

from .common import MetricsByClass, PipelineResult
from .metrics import compute_accuracy_metrics
from .scoring import score_metrics
from .stages import binarize, build_reference_vectors, code_distance_matrix, validate_training_matrix

LOGGER = logging.getLogger(__name__)


def recompute(training: np.ndarray, delta: int, selec: float) -> PipelineResult:
    matrix = validate_training_matrix(training)
    binary, lower, upper = binarize(matrix, delta)
    averages, reference = build_reference_vectors(binary, selec)
    distances = code_distance_matrix(binary, reference)
    raw_metrics, max_radius_by_class = compute_accuracy_metrics(distances, reference)

    metrics_by_class: MetricsByClass = {
        class_index: tuple(score_metrics(metrics)) for class_index, metrics in raw_metrics.items()
    }
    LOGGER.debug(
        "Recomputed pipeline (delta=%s, selec=%.2f): separation radii %s",
        delta,
        selec,
        max_radius_by_class,
    )
    return PipelineResult(
        delta=int(delta),
        selec=float(selec),
        training=matrix,
        binary=binary,
        lower_bounds=lower,
        upper_bounds=upper,
        averages=averages,
        reference_vectors=reference,
        code_distances=distances,
        metrics_by_class=metrics_by_class,
        max_radius_by_class=max_radius_by_class,
    )
