"""Tests for the Shannon and Kullback efficiency criteria."""

from __future__ import annotations

import math

import pytest

from pattern_kfe.pipeline import RadiusMetric, kullback_scores, shannon_score
from pattern_kfe.pipeline.scoring import kullback_value, probability_term, score_metrics


def make_metric(radius: int, k1: int, k3: int, sample_size: int = 10) -> RadiusMetric:
    k2 = sample_size - k1
    k4 = sample_size - k3
    d1, alpha = k1 / sample_size, k2 / sample_size
    beta, d2 = k3 / sample_size, k4 / sample_size
    return RadiusMetric(
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
        class_index=0,
        is_reliable=d1 >= 0.5 and d2 >= 0.5,
    )


def test_probability_term_degenerate_inputs() -> None:
    assert probability_term(0.3, 0.0) == 0.0
    assert probability_term(0.0, 1.0) == 0.0
    assert probability_term(-0.1, 1.0) == 0.0
    assert probability_term(2.0, 1.0) == 0.0
    assert probability_term(0.5, 1.0) == pytest.approx(-0.5)


def test_shannon_all_zero_metric_is_exactly_one() -> None:
    metric = RadiusMetric(1, 0.0, 0.0, 0.0, 0.0, 0, 0, 0, 0, 0, 0, False)
    assert shannon_score(metric) == 1.0


def test_shannon_perfect_separation_is_one() -> None:
    assert shannon_score(make_metric(1, k1=10, k3=0)) == pytest.approx(1.0)


def test_shannon_is_bounded_above() -> None:
    for k1 in range(0, 11):
        for k3 in range(0, 11):
            assert shannon_score(make_metric(1, k1=k1, k3=k3)) <= 1.0 + 1e-12


def test_shannon_chance_level_is_zero() -> None:
    assert shannon_score(make_metric(1, k1=5, k3=5)) == pytest.approx(0.0)


def test_kullback_formula() -> None:
    metric = make_metric(1, k1=8, k3=1)
    errors = 2 + 1
    expected = math.log2((2 * 10 + 0.01 - errors) / errors) * (10 - errors) / 10
    assert kullback_value(metric, fallback=42.0) == pytest.approx(expected)


def test_kullback_non_positive_numerator_scores_zero() -> None:
    metric = make_metric(1, k1=0, k3=10, sample_size=10)
    metric = RadiusMetric(**{**metric.__dict__, "k2": 15, "k3": 15})
    assert kullback_value(metric, fallback=3.0) == 0.0


def test_kullback_fallback_chain() -> None:
    no_errors = make_metric(1, k1=10, k3=0)
    with_errors = make_metric(2, k1=10, k3=2)
    again_no_errors = make_metric(3, k1=10, k3=0)

    scores = kullback_scores([no_errors, with_errors, again_no_errors])
    assert scores[0] == 0.0
    assert scores[1] == pytest.approx(kullback_value(with_errors, fallback=123.0))
    assert math.isfinite(scores[1]) and scores[1] != 0.0
    assert scores[2] == scores[1]


def test_kullback_state_is_per_sequence() -> None:
    first = kullback_scores([make_metric(1, k1=9, k3=0)])
    second = kullback_scores([make_metric(1, k1=10, k3=0)])
    assert second == [0.0]
    assert first[0] != 0.0


def test_score_metrics_orders_by_radius_and_keeps_records_immutable() -> None:
    metrics = [make_metric(2, k1=10, k3=2), make_metric(1, k1=10, k3=0)]
    scored = score_metrics(metrics)
    assert [m.radius for m in scored] == [1, 2]
    assert all(math.isnan(m.shannon) for m in metrics)
    assert scored[0].kullback == 0.0
    assert scored[1].shannon == pytest.approx(shannon_score(metrics[0]))
