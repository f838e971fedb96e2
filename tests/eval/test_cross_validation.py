import math

import pytest

from songrec.dataset import Dataset
from songrec.eval.cross_validation import (
    AlgorithmSummary,
    best_setting,
    cross_validate,
    knn_grid,
    sweep,
    user_cf_grid,
)
from songrec.models.registry import ModelParams, build_model


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def dataset():
    return Dataset({
        "u0": {"s1": 1, "s2": 2, "s3": 1},
        "u1": {"s1": 1, "s3": 1},
        "u2": {"s2": 1, "s3": 4, "s4": 1},
        "u3": {"s1": 2, "s4": 1, "s5": 1},
        "u4": {"s1": 1, "s5": 1},
        "u5": {"s1": 3, "s2": 1, "s5": 1},
    })


@pytest.fixture
def params():
    return ModelParams(n_recommendations=2, n_neighbours=3, n_estimators=2)


def failing_factory(name, params):
    if name == "broken":
        raise RuntimeError("boom")
    return build_model(name, params)


# ── cross_validate ────────────────────────────────────────────────────────────

def test_every_algorithm_runs_every_fold(dataset, params):
    # act
    summaries = cross_validate(
        dataset, ["top_n_popular", "item_cf"], params=params, n_folds=3, n_runs=2
    )

    # assert
    assert list(summaries) == ["top_n_popular", "item_cf"]
    for summary in summaries.values():
        assert summary.n_runs == 2
        assert summary.n_failed == 0
        assert [r.run_id for r in summary.runs] == [0, 1]
        assert 0.0 <= summary.min_accuracy <= summary.mean_accuracy <= summary.max_accuracy <= 100.0


def test_failing_algorithm_does_not_stop_the_others(dataset, params):
    # act
    summaries = cross_validate(
        dataset,
        ["broken", "top_n_popular"],
        params=params,
        n_folds=3,
        n_runs=3,
        model_factory=failing_factory,
    )

    # assert
    assert summaries["broken"].n_runs == 0
    assert summaries["broken"].n_failed == 3
    assert math.isnan(summaries["broken"].mean_accuracy)
    assert summaries["top_n_popular"].n_runs == 3


def test_runs_are_reproducible(dataset, params):
    first = cross_validate(dataset, ["bagging_user_cf"], params=params, n_folds=2, n_runs=2)
    second = cross_validate(dataset, ["bagging_user_cf"], params=params, n_folds=2, n_runs=2)

    accuracies = [r.accuracy for r in first["bagging_user_cf"].runs]
    assert accuracies == [r.accuracy for r in second["bagging_user_cf"].runs]


# ── Sweeps ────────────────────────────────────────────────────────────────────

def test_knn_grid_varies_only_neighbours(params):
    grid = knn_grid(params, [1, 5, 10])

    assert [p.n_neighbours for p in grid] == [1, 5, 10]
    assert all(p.n_recommendations == 2 for p in grid)


def test_user_cf_grid_is_a_full_product(params):
    grid = user_cf_grid(params, [0.2, 0.8], [1, 2, 8])

    assert len(grid) == 6
    assert (grid[0].weight_coefficient, grid[0].normalization_coefficient) == (0.2, 1.0)
    assert (grid[-1].weight_coefficient, grid[-1].normalization_coefficient) == (0.8, 8.0)


def test_sweep_and_best_setting(dataset, params):
    # act
    outcomes = sweep(dataset, "knn", knn_grid(params, [1, 3]), n_folds=3, n_runs=1)
    best = best_setting(outcomes)

    # assert
    assert [p.n_neighbours for p, _ in outcomes] == [1, 3]
    assert best is not None
    assert best[1].mean_accuracy == max(s.mean_accuracy for _, s in outcomes)


def test_best_setting_ignores_failed_settings(params):
    failed = AlgorithmSummary(algorithm="knn", runs=(), n_failed=1)
    assert best_setting([(params, failed)]) is None
