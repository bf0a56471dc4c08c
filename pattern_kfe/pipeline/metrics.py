"""Accuracy characteristics of the reference-vector classifier.

For every class the classifier accepts a realization when its code distance
to the class centroid does not exceed a radius. Sweeping the radius from 1 to
the distance between the class centroid and the nearest foreign centroid
yields, per radius, the four confusion fractions used by the KFE criteria:

- ``D1``: own realizations accepted (first-kind reliability),
- ``alpha``: own realizations rejected (first-kind error),
- ``beta``: foreign realizations accepted (second-kind error),
- ``D2``: foreign realizations rejected (second-kind reliability).

A radius is *reliable* only when both ``D1`` and ``D2`` reach 0.5.
"""
from __future__ import annotations

from typing import Dict, List, Tuple

import logging

import numpy as np

from .common import MetricsByClass, PipelineError, RadiusMetric, is_reliable
from .stages import hamming_distance

LOGGER = logging.getLogger(__name__)


def separation_radius(reference: np.ndarray, class_index: int) -> int:
    """Distance from a centroid to the nearest other centroid (0 when alone)."""
    others = [c for c in range(reference.shape[0]) if c != class_index]
    if not others:
        return 0
    return min(hamming_distance(reference[class_index], reference[c]) for c in others)


def class_radius_metrics(code_distances: np.ndarray, class_index: int, max_radius: int) -> List[RadiusMetric]:
    class_count = code_distances.shape[0]
    sample_size = int(code_distances.shape[2])
    own = code_distances[class_index, class_index]
    others = [c for c in range(class_count) if c != class_index]
    if others:
        foreign = np.concatenate([code_distances[class_index, c] for c in others])
    else:
        foreign = np.empty(0, dtype=code_distances.dtype)
    foreign_size = int(foreign.size)

    metrics: List[RadiusMetric] = []
    for radius in range(1, max_radius + 1):
        k1 = int(np.count_nonzero(own <= radius))
        k2 = sample_size - k1
        k3 = int(np.count_nonzero(foreign <= radius))
        k4 = foreign_size - k3

        d1 = k1 / sample_size
        alpha = k2 / sample_size
        beta = k3 / foreign_size if foreign_size else 0.0
        d2 = k4 / foreign_size if foreign_size else 0.0
        metrics.append(
            RadiusMetric(
                radius=radius,
                d1=d1,
                alpha=alpha,
                beta=beta,
                d2=d2,
                k1=k1,
                k2=k2,
                k3=k3,
                k4=k4,
                sample_size=sample_size,
                class_index=class_index,
                is_reliable=is_reliable(d1, d2),
            )
        )
    return metrics


def compute_accuracy_metrics(
    code_distances: np.ndarray,
    reference: np.ndarray,
) -> Tuple[MetricsByClass, Dict[int, int]]:
    """Return per-class radius metrics and the per-class separation radius."""
    if code_distances.ndim != 3 or code_distances.shape[0] != code_distances.shape[1]:
        raise PipelineError(f"Code distance matrix must be [m, m, n], got {code_distances.shape}")
    if reference.shape[0] != code_distances.shape[0]:
        raise PipelineError(
            f"Reference vectors cover {reference.shape[0]} classes, code distances {code_distances.shape[0]}"
        )

    metrics_by_class: MetricsByClass = {}
    max_radius_by_class: Dict[int, int] = {}
    for class_index in range(code_distances.shape[0]):
        max_radius = separation_radius(reference, class_index)
        max_radius_by_class[class_index] = max_radius
        if max_radius < 1:
            LOGGER.debug("Class %d centroid coincides with a foreign centroid; no radii to score", class_index)
            metrics_by_class[class_index] = ()
            continue
        metrics_by_class[class_index] = tuple(class_radius_metrics(code_distances, class_index, max_radius))
    return metrics_by_class, max_radius_by_class
