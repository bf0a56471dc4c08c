"""Grid search over the tolerance width and the selection fraction.

The optimizer treats the whole pipeline as a scoring function of two
parameters. A candidate's score is the sum, over classes, of the best Shannon
KFE found among that class's reliable radii. Candidates are visited in
ascending ``delta`` then ascending ``selec`` order and replace the incumbent
only on a strict improvement beyond ``score_tolerance``, so ties keep the
earlier candidate.

Each candidate is evaluated through the pure ``recompute`` function with its
parameters passed explicitly. The optimizer's live parameters change only
when the winning pair is applied; if that confirming run fails they are
rolled back to the original pair, so a caller never observes an intermediate
candidate.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Optional, Tuple

import logging
import math
import threading

import numpy as np

from .common import (
    DEFAULT_DELTA,
    DEFAULT_SCORE_TOLERANCE,
    DEFAULT_SELEC,
    MAX_INTENSITY,
    MetricsByClass,
    InsufficientInputError,
    PipelineError,
    PipelineResult,
    best_scores_by_class,
    sum_finite,
)
from .core import recompute

LOGGER = logging.getLogger(__name__)

PipelineFn = Callable[[np.ndarray, int, float], PipelineResult]

SELEC_MATCH_TOLERANCE = 1e-9


# ---------------------------------------------------------------------------
# Settings and snapshots
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OptimizationSettings:
    delta_candidates: Tuple[int, ...]
    selec_candidates: Tuple[float, ...]
    score_tolerance: float = DEFAULT_SCORE_TOLERANCE

    def __post_init__(self) -> None:
        object.__setattr__(self, "delta_candidates", tuple(sorted({int(v) for v in self.delta_candidates})))
        object.__setattr__(self, "selec_candidates", tuple(sorted({float(v) for v in self.selec_candidates})))

    @classmethod
    def create_default(cls, current_delta: int, current_selec: float) -> "OptimizationSettings":
        deltas = {0, *range(25, 76)}
        deltas.add(int(min(max(current_delta, 0), MAX_INTENSITY)))
        selecs = {pct / 100.0 for pct in range(25, 76)}
        selecs.add(round(min(max(current_selec, 0.0), 1.0), 2))
        return cls(tuple(deltas), tuple(selecs))

    def including(self, delta: int, selec: float) -> "OptimizationSettings":
        """Return settings whose grids also contain the given pair."""
        return OptimizationSettings(
            self.delta_candidates + (int(delta),),
            self.selec_candidates + (float(selec),),
            self.score_tolerance,
        )

    @property
    def candidate_count(self) -> int:
        return len(self.delta_candidates) * len(self.selec_candidates)


def total_score(metrics_by_class: MetricsByClass) -> float:
    return sum_finite(list(best_scores_by_class(metrics_by_class, "shannon").values()))


@dataclass(frozen=True)
class OptimizationSnapshot:
    """Scored metrics captured for one fixed parameter pair.

    The metric records are frozen dataclasses held in tuples, so a snapshot
    cannot alias the state of a later recomputation.
    """

    delta: int
    selec: float
    metrics_by_class: MetricsByClass
    best_shannon_by_class: Dict[int, Optional[float]]
    best_kullback_by_class: Dict[int, Optional[float]]

    @classmethod
    def capture(cls, result: PipelineResult) -> "OptimizationSnapshot":
        metrics = {k: tuple(v) for k, v in result.metrics_by_class.items()}
        return cls(
            delta=result.delta,
            selec=result.selec,
            metrics_by_class=metrics,
            best_shannon_by_class=best_scores_by_class(metrics, "shannon"),
            best_kullback_by_class=best_scores_by_class(metrics, "kullback"),
        )

    @property
    def score(self) -> float:
        return sum_finite(list(self.best_shannon_by_class.values()))

    @property
    def total_best_kullback(self) -> float:
        return sum_finite(list(self.best_kullback_by_class.values()))


@dataclass(frozen=True)
class OptimizationResult:
    original: OptimizationSnapshot
    optimized: OptimizationSnapshot
    candidates_evaluated: int = 0
    candidates_failed: int = 0
    cancelled: bool = field(default=False)

    @property
    def score_gain(self) -> float:
        before, after = self.original.score, self.optimized.score
        if not (math.isfinite(before) and math.isfinite(after)):
            return math.nan
        return after - before


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

class ParameterOptimizer:
    """Owns the live ``delta``/``selec`` pair and the latest pipeline result."""

    def __init__(
        self,
        training: Optional[np.ndarray],
        delta: int = DEFAULT_DELTA,
        selec: float = DEFAULT_SELEC,
        pipeline: PipelineFn = recompute,
    ) -> None:
        self.training = training
        self.delta = int(delta)
        self.selec = float(selec)
        self.pipeline = pipeline
        self.current: Optional[PipelineResult] = None

    @property
    def image_count(self) -> int:
        if self.training is None:
            return 0
        return int(np.shape(self.training)[0])

    def check_input(self) -> None:
        if self.image_count < 2:
            raise InsufficientInputError(f"Optimization needs two training images, got {self.image_count}")

    def _evaluate(self, delta: int, selec: float) -> Optional[PipelineResult]:
        try:
            return self.pipeline(self.training, delta, selec)
        except PipelineError as exc:
            LOGGER.debug("Pipeline failed for delta=%s selec=%.2f: %s", delta, selec, exc)
            return None
        except Exception:
            LOGGER.warning("Unexpected pipeline error for delta=%s selec=%.2f", delta, selec, exc_info=True)
            return None

    def run_pipeline(self) -> Optional[PipelineResult]:
        """Recompute at the live parameters; ``None`` when the run fails."""
        result = self._evaluate(self.delta, self.selec)
        if result is not None:
            self.current = result
        return result

    def _apply(self, delta: int, selec: float, original: OptimizationSnapshot) -> Optional[OptimizationSnapshot]:
        self.delta, self.selec = delta, selec
        applied: Optional[PipelineResult] = None
        try:
            applied = self.run_pipeline()
        finally:
            if applied is None:
                LOGGER.warning(
                    "Confirming run failed for delta=%s selec=%.2f; restoring delta=%s selec=%.2f",
                    delta,
                    selec,
                    original.delta,
                    original.selec,
                )
                self.delta, self.selec = original.delta, original.selec
                if self.run_pipeline() is None:
                    LOGGER.error("Recompute at the restored parameters failed as well")
        if applied is None:
            return None
        return OptimizationSnapshot.capture(applied)

    def _candidates(self, settings: OptimizationSettings) -> Iterable[Tuple[int, float]]:
        for delta in settings.delta_candidates:
            for selec in settings.selec_candidates:
                yield delta, selec

    def optimize(
        self,
        settings: Optional[OptimizationSettings] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Optional[OptimizationResult]:
        try:
            self.check_input()
        except InsufficientInputError as exc:
            LOGGER.warning("%s", exc)
            return None

        original_result = self.run_pipeline()
        if original_result is None:
            LOGGER.warning("Pipeline cannot run at delta=%s selec=%.2f; nothing to optimize", self.delta, self.selec)
            return None

        if settings is None:
            settings = OptimizationSettings.create_default(self.delta, self.selec)
        settings = settings.including(self.delta, self.selec)

        original = OptimizationSnapshot.capture(original_result)
        best_score = original.score
        best_delta, best_selec = original.delta, original.selec
        LOGGER.info(
            "Starting sweep over %d candidates from delta=%s selec=%.2f (score %.4f)",
            settings.candidate_count,
            best_delta,
            best_selec,
            best_score,
        )

        evaluated = failed = 0
        cancelled = False
        for delta, selec in self._candidates(settings):
            if cancel_event is not None and cancel_event.is_set():
                LOGGER.info("Sweep cancelled after %d candidates", evaluated)
                cancelled = True
                break
            if delta == best_delta and abs(selec - best_selec) < SELEC_MATCH_TOLERANCE:
                continue

            candidate = self._evaluate(delta, selec)
            evaluated += 1
            if candidate is None:
                failed += 1
                continue

            score = total_score(candidate.metrics_by_class)
            if score > best_score + settings.score_tolerance:
                LOGGER.info("New best delta=%s selec=%.2f score %.4f (was %.4f)", delta, selec, score, best_score)
                best_score, best_delta, best_selec = score, delta, selec

        optimized = self._apply(best_delta, best_selec, original)
        if optimized is None:
            return None

        result = OptimizationResult(
            original=original,
            optimized=optimized,
            candidates_evaluated=evaluated,
            candidates_failed=failed,
            cancelled=cancelled,
        )
        LOGGER.info(
            "Optimization finished: delta %s -> %s, selec %.2f -> %.2f, gain %.4f",
            original.delta,
            optimized.delta,
            original.selec,
            optimized.selec,
            result.score_gain,
        )
        return result


def optimize(
    training: Optional[np.ndarray],
    current_delta: int,
    current_selec: float,
    settings: Optional[OptimizationSettings] = None,
    cancel_event: Optional[threading.Event] = None,
    pipeline: PipelineFn = recompute,
) -> Optional[OptimizationResult]:
    """Run one optimization; ``None`` signals insufficient input or a failed apply."""
    optimizer = ParameterOptimizer(training, current_delta, current_selec, pipeline=pipeline)
    return optimizer.optimize(settings, cancel_event=cancel_event)
