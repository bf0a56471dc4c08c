"""Shared types for the classifier pipeline and the parameter optimizer.

This module centralizes the pieces every stage agrees on: the run
configuration, the error taxonomy, the immutable per-radius record and the
container returned by one full recomputation. Stage modules import from here
so that shapes and names stay consistent across the whole chain.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import logging
import math

import numpy as np

LOGGER = logging.getLogger(__name__)

DEFAULT_FEATURE_COUNT = 100
DEFAULT_REALIZATION_COUNT = 100
DEFAULT_DELTA = 50
DEFAULT_SELEC = 0.5
DEFAULT_SCORE_TOLERANCE = 1e-6
RELIABILITY_THRESHOLD = 0.5
MAX_INTENSITY = 255.0


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class PipelineError(ValueError):
    """Raised when a recomputation cannot run with the supplied inputs."""


class InsufficientInputError(PipelineError):
    """Raised when fewer than two training images are available."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class PipelineConfig:
    image_paths: List[Path]
    feature_count: int = DEFAULT_FEATURE_COUNT
    realization_count: int = DEFAULT_REALIZATION_COUNT
    delta: int = DEFAULT_DELTA
    selec: float = DEFAULT_SELEC
    score_tolerance: float = DEFAULT_SCORE_TOLERANCE
    delta_candidates: Optional[List[int]] = None
    selec_candidates: Optional[List[float]] = None
    output_dir: Path = Path("outputs")

    @property
    def table_dir(self) -> Path:
        return self.output_dir / "tables"

    @property
    def figure_dir(self) -> Path:
        return self.output_dir / "figures"

    @property
    def note_dir(self) -> Path:
        return self.output_dir / "notes"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

def is_reliable(d1: float, d2: float) -> bool:
    return d1 >= RELIABILITY_THRESHOLD and d2 >= RELIABILITY_THRESHOLD


@dataclass(frozen=True)
class RadiusMetric:
    """Accuracy characteristics of one class at one classification radius.

    ``k1``..``k4`` are raw counts (own hits, own misses, foreign hits,
    foreign rejections); ``d1``, ``alpha``, ``beta`` and ``d2`` are the
    matching fractions. The two KFE scores are filled in by the scorers and
    stay NaN until then.
    """

    radius: int
    d1: float
    alpha: float
    beta: float
    d2: float
    k1: int
    k2: int
    k3: int
    k4: int
    sample_size: int
    class_index: int
    is_reliable: bool
    shannon: float = math.nan
    kullback: float = math.nan


MetricsByClass = Dict[int, Tuple[RadiusMetric, ...]]


@dataclass(frozen=True)
class PipelineResult:
    """Everything one ``recompute`` call derives from the training matrix."""

    delta: int
    selec: float
    training: np.ndarray = field(repr=False)
    binary: np.ndarray = field(repr=False)
    lower_bounds: np.ndarray = field(repr=False)
    upper_bounds: np.ndarray = field(repr=False)
    averages: np.ndarray = field(repr=False)
    reference_vectors: np.ndarray = field(repr=False)
    code_distances: np.ndarray = field(repr=False)
    metrics_by_class: MetricsByClass
    max_radius_by_class: Dict[int, int]

    @property
    def class_count(self) -> int:
        return int(self.binary.shape[0])

    @property
    def feature_count(self) -> int:
        return int(self.binary.shape[1])

    @property
    def realization_count(self) -> int:
        return int(self.binary.shape[2])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def best_score(metrics: Sequence[RadiusMetric], key: str = "shannon") -> Optional[float]:
    """Return the maximum finite score among reliable radii, if any."""
    best: Optional[float] = None
    for metric in metrics:
        if not metric.is_reliable:
            continue
        value = float(getattr(metric, key))
        if not math.isfinite(value):
            continue
        if best is None or value > best:
            best = value
    return best


def best_scores_by_class(metrics_by_class: Mapping[int, Sequence[RadiusMetric]], key: str) -> Dict[int, Optional[float]]:
    return {class_index: best_score(metrics, key) for class_index, metrics in metrics_by_class.items()}


def sum_finite(values: Sequence[Optional[float]]) -> float:
    """Sum the finite values; negative infinity when there are none."""
    finite = [v for v in values if v is not None and math.isfinite(v)]
    if not finite:
        return -math.inf
    return float(sum(finite))
