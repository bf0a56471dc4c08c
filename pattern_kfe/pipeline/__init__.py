from .common import (
    DEFAULT_DELTA,
    DEFAULT_SELEC,
    InsufficientInputError,
    PipelineConfig,
    PipelineError,
    PipelineResult,
    RadiusMetric,
)
from .core import recompute
from .metrics import compute_accuracy_metrics
from .optimizer import (
    OptimizationResult,
    OptimizationSettings,
    OptimizationSnapshot,
    ParameterOptimizer,
    optimize,
)
from .scoring import kullback_scores, shannon_score
from .stages import binarize, build_reference_vectors, code_distance_matrix

__all__ = [
    "DEFAULT_DELTA",
    "DEFAULT_SELEC",
    "InsufficientInputError",
    "PipelineConfig",
    "PipelineError",
    "PipelineResult",
    "RadiusMetric",
    "recompute",
    "compute_accuracy_metrics",
    "OptimizationResult",
    "OptimizationSettings",
    "OptimizationSnapshot",
    "ParameterOptimizer",
    "optimize",
    "kullback_scores",
    "shannon_score",
    "binarize",
    "build_reference_vectors",
    "code_distance_matrix",
]
