"""Information-theoretic functional efficiency criteria (KFE).

Two scores summarize how well a radius separates the classes:

- Shannon: a normalized mutual-information style score in ``(-inf, 1]``;
  it depends only on the four fractions of one radius.
- Kullback: a log-ratio of correct to erroneous decisions weighted by the
  share of correct ones. Degenerate radii (no errors, or a non-finite
  result) carry forward the last finite score of the same class, so the
  score is a left fold over the radii in increasing order.
"""
from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence

import math

from .common import RadiusMetric

ERROR_EPSILON = 1e-12
KULLBACK_OFFSET = 0.01


def probability_term(value: float, denominator: float) -> float:
    if denominator <= 0:
        return 0.0
    ratio = value / denominator
    if ratio <= 0:
        return 0.0
    ratio = min(ratio, 1.0)
    return ratio * math.log2(ratio)


def shannon_score(metric: RadiusMetric) -> float:
    alpha_d2 = metric.alpha + metric.d2
    d1_beta = metric.d1 + metric.beta
    return 1.0 + 0.5 * (
        probability_term(metric.alpha, alpha_d2)
        + probability_term(metric.d2, alpha_d2)
        + probability_term(metric.d1, d1_beta)
        + probability_term(metric.beta, d1_beta)
    )


def kullback_value(metric: RadiusMetric, fallback: float) -> float:
    errors = float(metric.k2 + metric.k3)
    if errors <= ERROR_EPSILON:
        return fallback
    sample_size = float(metric.sample_size)
    numerator = 2.0 * sample_size + KULLBACK_OFFSET - errors
    if numerator <= 0:
        return 0.0
    ratio = numerator / errors
    if ratio <= 0:
        return 0.0
    value = math.log2(ratio) * (sample_size - errors) / sample_size
    return value if math.isfinite(value) else fallback


def kullback_scores(metrics: Sequence[RadiusMetric]) -> List[float]:
    """Score radii in order, carrying the last finite value forward."""
    scores: List[float] = []
    last_good: Optional[float] = None
    for metric in metrics:
        fallback = last_good if last_good is not None else 0.0
        value = kullback_value(metric, fallback)
        scores.append(value)
        if math.isfinite(value):
            last_good = value
    return scores


def score_metrics(metrics: Sequence[RadiusMetric]) -> List[RadiusMetric]:
    """Return copies of one class's metrics with both KFE scores attached."""
    ordered = sorted(metrics, key=lambda m: m.radius)
    kullback = kullback_scores(ordered)
    return [
        replace(metric, shannon=shannon_score(metric), kullback=k_value)
        for metric, k_value in zip(ordered, kullback)
    ]
