"""Hyperparameter sweeps for the neighbourhood recommenders.

Usage examples
--------------
Accuracy as the KNN neighbour count varies:
    python -m songrec.run_sweeps knn --dataset data/msd_sample.csv --neighbours 1,10,20,40,80

Weight / normalization coefficients of user-based collaborative filtering:
    python -m songrec.run_sweeps user_cf --dataset data/msd_sample.csv \
        --weights 0.2,0.4,0.6,0.8 --normalizations 1,2,3,5,6,8
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import List

from songrec.errors import ConfigurationError, DataSourceError
from songrec.eval.cross_validation import best_setting, knn_grid, sweep, user_cf_grid
from songrec.models.registry import K_NEAREST_NEIGHBOURS, USER_BASED_CF, ModelParams
from songrec.run_experiments import RunConfig, build_source, setup_logging

logger = logging.getLogger(__name__)


def _csv_of(kind):
    def parse(value: str):
        try:
            return [kind(v.strip()) for v in value.split(",") if v.strip()]
        except ValueError as exc:
            raise argparse.ArgumentTypeError(str(exc)) from exc

    return parse


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sweep recommender hyperparameters.")
    parser.add_argument("experiment", choices=["knn", "user_cf"])
    parser.add_argument("--dataset", type=str, required=True)
    parser.add_argument("--source", type=str, default="file", choices=["file", "sqlite"])
    parser.add_argument("--database", type=str, default=None)
    parser.add_argument("--n-recommendations", type=int, default=10)
    parser.add_argument("--folds", type=int, default=10)
    parser.add_argument("--runs", type=int, default=5)
    parser.add_argument(
        "--neighbours",
        type=_csv_of(int),
        default=[1, 2, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
    )
    parser.add_argument("--weights", type=_csv_of(float), default=[0.2, 0.4, 0.6, 0.8])
    parser.add_argument(
        "--normalizations",
        type=_csv_of(float),
        default=[1.0, 2.0, 3.0, 5.0, 6.0, 8.0],
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    config = RunConfig(
        dataset=args.dataset,
        source=args.source,
        database=args.database,
        n_folds=args.folds,
        n_runs=args.runs,
    )
    base = ModelParams(n_recommendations=args.n_recommendations)

    if args.experiment == "knn":
        algorithm = K_NEAREST_NEIGHBOURS
        grid = knn_grid(base, args.neighbours)
    else:
        algorithm = USER_BASED_CF
        grid = user_cf_grid(base, args.weights, args.normalizations)

    start = time.perf_counter()
    try:
        dataset = build_source(config).load(config.dataset)
        outcomes = sweep(dataset, algorithm, grid, n_folds=config.n_folds, n_runs=config.n_runs)
    except (DataSourceError, ConfigurationError) as exc:
        logger.error("%s", exc)
        return 1

    for params, summary in outcomes:
        logger.info(
            "%s => {min=%.2f, avg=%.2f, max=%.2f}",
            _describe(algorithm, params),
            summary.min_accuracy,
            summary.mean_accuracy,
            summary.max_accuracy,
        )

    best = best_setting(outcomes)
    if best is None:
        logger.error("Every setting failed")
        return 1
    logger.info("Best setting: %s (avg=%.2f)", _describe(algorithm, best[0]), best[1].mean_accuracy)
    logger.info("Time to run the experiment: %.1f seconds", time.perf_counter() - start)
    return 0


def _describe(algorithm: str, params: ModelParams) -> str:
    if algorithm == K_NEAREST_NEIGHBOURS:
        return f"K={params.n_neighbours}"
    return f"weight={params.weight_coefficient}, normalization={params.normalization_coefficient}"


if __name__ == "__main__":
    sys.exit(main())
