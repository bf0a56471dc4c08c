"""Binarization, reference vectors and code distances.

The first three pipeline stages are pure array transforms:

1) ``binarize`` admits each intensity into a tolerance band centred on the
   feature's mean over all realizations of its class.
2) ``build_reference_vectors`` keeps a feature in a class centroid when more
   than ``selec`` of the realizations admitted it.
3) ``code_distance_matrix`` measures the Hamming distance between every
   centroid and every binary realization of every class.
"""
from __future__ import annotations

from typing import Tuple

import logging

import numpy as np

from .common import PipelineError

LOGGER = logging.getLogger(__name__)


def validate_training_matrix(training: np.ndarray) -> np.ndarray:
    matrix = np.asarray(training, dtype=np.float64)
    if matrix.ndim != 3:
        raise PipelineError(
            f"Training matrix must be 3D [classes, features, realizations], got shape {matrix.shape}"
        )
    if min(matrix.shape) < 1:
        raise PipelineError(f"Training matrix has an empty axis: {matrix.shape}")
    if not np.all(np.isfinite(matrix)):
        raise PipelineError("Training matrix contains non-finite intensities")
    return matrix


def binarize(training: np.ndarray, delta: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return ``(X, NDK, VDK)`` for the given tolerance half-width."""
    if delta < 0:
        raise PipelineError(f"delta must be non-negative, got {delta}")
    matrix = validate_training_matrix(training)

    means = matrix.mean(axis=2)
    lower = means - delta
    upper = means + delta
    inside = (matrix >= lower[:, :, None]) & (matrix <= upper[:, :, None])
    binary = inside.astype(np.uint8)

    LOGGER.debug(
        "Binarized %s training matrix with delta=%s (%.1f%% ones)",
        matrix.shape,
        delta,
        100.0 * float(binary.mean()),
    )
    return binary, lower, upper


def build_reference_vectors(binary: np.ndarray, selec: float) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(AVG, xm)``; a feature at exactly ``selec`` is excluded."""
    if not 0.0 <= selec <= 1.0:
        raise PipelineError(f"selec must lie in [0, 1], got {selec}")
    if binary.ndim != 3:
        raise PipelineError(f"Binary matrix must be 3D, got shape {binary.shape}")

    averages = binary.mean(axis=2)
    reference = (averages > selec).astype(np.uint8)
    LOGGER.debug("Reference vectors (selec=%.2f): %s bits set per class", selec, reference.sum(axis=1).tolist())
    return averages, reference


def code_distance_matrix(binary: np.ndarray, reference: np.ndarray) -> np.ndarray:
    """``SK[k, c, j]``: Hamming distance from ``xm[k]`` to realization ``j`` of class ``c``."""
    if binary.ndim != 3 or reference.ndim != 2:
        raise PipelineError(
            f"Expected binary [m, N, n] and reference [m, N], got {binary.shape} and {reference.shape}"
        )
    if reference.shape != binary.shape[:2]:
        raise PipelineError(
            f"Reference vectors {reference.shape} do not match binary matrix {binary.shape[:2]}"
        )

    # [k, 1, N, 1] vs [1, c, N, n] -> count mismatches over the feature axis
    mismatches = reference[:, None, :, None] != binary[None, :, :, :]
    return mismatches.sum(axis=2).astype(np.int64)


def hamming_distance(first: np.ndarray, second: np.ndarray) -> int:
    return int(np.count_nonzero(np.asarray(first) != np.asarray(second)))
