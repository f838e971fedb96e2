from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from songrec.data.folds import FoldPartitioner
from songrec.dataset import Dataset
from songrec.eval.eval import RunResult, evaluate
from songrec.models.base import Recommender
from songrec.models.registry import ModelParams, build_model

logger = logging.getLogger(__name__)

ModelFactory = Callable[[str, ModelParams], Recommender]


@dataclass(frozen=True, kw_only=True)
class AlgorithmSummary:
    algorithm: str
    runs: Tuple[RunResult, ...]
    n_failed: int

    @property
    def n_runs(self) -> int:
        return len(self.runs)

    def _accuracies(self) -> np.ndarray:
        return np.array([r.accuracy for r in self.runs], dtype=np.float64)

    @property
    def mean_accuracy(self) -> float:
        return float(self._accuracies().mean()) if self.runs else float("nan")

    @property
    def min_accuracy(self) -> float:
        return float(self._accuracies().min()) if self.runs else float("nan")

    @property
    def max_accuracy(self) -> float:
        return float(self._accuracies().max()) if self.runs else float("nan")

    @property
    def mean_elapsed(self) -> float:
        return float(np.mean([r.elapsed for r in self.runs])) if self.runs else float("nan")


def cross_validate(
    dataset: Dataset,
    algorithms: Sequence[str],
    params: ModelParams | None = None,
    n_folds: int = 10,
    n_runs: int = 5,
    model_factory: ModelFactory = build_model,
) -> Dict[str, AlgorithmSummary]:
    """Run every algorithm on ``n_runs`` cross-validation splits.

    Parameters
    ----------
    dataset : Dataset
        Full dataset; partitioned once into ``n_folds`` user folds.
    algorithms : sequence of str
        Registry names of the algorithms to compare.
    params : ModelParams | None
        Hyperparameters shared by all algorithms.
    n_folds : int
        Number of cross-validation folds.
    n_runs : int
        Number of runs; run ``i`` tests on fold ``i % n_folds``.
    model_factory : callable
        Builds a fresh model from a registry name and params.

    Returns
    -------
    dict[str, AlgorithmSummary]
        Per-algorithm results, in the order of ``algorithms``.

    Notes
    -----
    An exception raised while running one algorithm is logged and only drops
    that algorithm's run; the other algorithms and runs proceed.
    """
    params = params or ModelParams()
    partitioner = FoldPartitioner(dataset, n_folds)

    results: Dict[str, List[RunResult]] = {name: [] for name in algorithms}
    failures: Dict[str, int] = {name: 0 for name in algorithms}

    for run_id in tqdm(range(n_runs), desc="runs", leave=False):
        split = partitioner.split(run_id)

        for name in algorithms:
            logger.info("Running '%s' recommendation algorithm for run %d", name, run_id)
            try:
                model = model_factory(name, params)
                results[name].append(evaluate(model, split, algorithm=name, run_id=run_id))
            except Exception:
                logger.exception("Algorithm '%s' failed on run %d", name, run_id)
                failures[name] += 1

    return {
        name: AlgorithmSummary(algorithm=name, runs=tuple(results[name]), n_failed=failures[name])
        for name in algorithms
    }


def sweep(
    dataset: Dataset,
    algorithm: str,
    grid: Iterable[ModelParams],
    n_folds: int = 10,
    n_runs: int = 5,
) -> List[Tuple[ModelParams, AlgorithmSummary]]:
    """Cross-validate one algorithm for every hyperparameter setting of ``grid``."""
    outcomes = []
    for params in tqdm(list(grid), desc=f"{algorithm} sweep"):
        summary = cross_validate(
            dataset, [algorithm], params=params, n_folds=n_folds, n_runs=n_runs
        )[algorithm]
        outcomes.append((params, summary))
    return outcomes


def best_setting(
    outcomes: Sequence[Tuple[ModelParams, AlgorithmSummary]],
) -> Tuple[ModelParams, AlgorithmSummary] | None:
    """Setting with the highest mean accuracy; settings without a successful run are ignored."""
    valid = [o for o in outcomes if o[1].n_runs > 0]
    if not valid:
        return None
    return max(valid, key=lambda o: o[1].mean_accuracy)


def knn_grid(base: ModelParams, neighbours: Iterable[int]) -> List[ModelParams]:
    return [replace(base, n_neighbours=int(k)) for k in neighbours]


def user_cf_grid(
    base: ModelParams,
    weight_coefficients: Iterable[float],
    normalization_coefficients: Iterable[float],
) -> List[ModelParams]:
    normalization_coefficients = list(normalization_coefficients)
    return [
        replace(base, weight_coefficient=float(w), normalization_coefficient=float(g))
        for w in weight_coefficients
        for g in normalization_coefficients
    ]
