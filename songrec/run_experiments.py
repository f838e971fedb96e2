"""Compare song recommenders with repeated user-fold cross-validation.

Usage examples
--------------
Popularity baseline against collaborative filtering on a CSV file:
    python -m songrec.run_experiments --dataset data/msd_sample.csv \
        --algorithms top_n_popular,user_cf,item_cf

Everything, from a SQLite table:
    python -m songrec.run_experiments --source sqlite --database data/msd.db \
        --dataset msd_test --algorithms all --runs 5 --folds 10

Bagged KNN with 40 neighbours:
    python -m songrec.run_experiments --dataset data/msd_sample.csv \
        --algorithms knn,bagging_knn --knn-neighbours 40 --bagging-estimators 5
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import List

from songrec.data.readers import DataSource, FileReader, SqliteReader
from songrec.errors import ConfigurationError, DataSourceError
from songrec.eval.cross_validation import cross_validate
from songrec.models.registry import ModelParams, available_algorithms, display_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class RunConfig:
    dataset: str
    source: str = "file"
    database: str | None = None
    n_folds: int = 10
    n_runs: int = 5
    algorithms: tuple[str, ...] = ("top_n_popular",)
    params: ModelParams = ModelParams()


def parse_algorithms(value: str) -> tuple[str, ...]:
    if value.strip() == "all":
        return tuple(available_algorithms())

    names = tuple(v.strip() for v in value.split(",") if v.strip())
    unknown = [n for n in names if n not in available_algorithms()]
    if unknown:
        raise argparse.ArgumentTypeError(
            f"unknown algorithms: {', '.join(unknown)} "
            f"(choose from {', '.join(available_algorithms())} or 'all')"
        )
    if not names:
        raise argparse.ArgumentTypeError("at least one algorithm is required")
    return names


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Cross-validate song recommendation algorithms on implicit play counts.",
    )

    parser.add_argument(
        "--dataset",
        type=str,
        required=True,
        help="CSV file path (file source) or table name (sqlite source).",
    )
    parser.add_argument("--source", type=str, default="file", choices=["file", "sqlite"])
    parser.add_argument(
        "--database",
        type=str,
        default=None,
        help="SQLite database path; required with --source sqlite.",
    )
    parser.add_argument(
        "--n-recommendations",
        type=int,
        default=10,
        help="Number of songs recommended per user.",
    )
    parser.add_argument("--folds", type=int, default=10, help="Number of cross-validation folds.")
    parser.add_argument("--runs", type=int, default=5, help="Number of repeated runs.")
    parser.add_argument(
        "--algorithms",
        type=parse_algorithms,
        default=("top_n_popular",),
        help="Comma-separated algorithm names, or 'all'.",
    )
    parser.add_argument(
        "--knn-neighbours",
        type=int,
        default=80,
        help="Number of nearest neighbours for knn.",
    )
    parser.add_argument(
        "--cf-weight",
        type=float,
        default=0.8,
        help="Weight coefficient (alpha) of user-based collaborative filtering.",
    )
    parser.add_argument(
        "--cf-normalization",
        type=float,
        default=8.0,
        help="Normalization coefficient (gamma) of user-based collaborative filtering.",
    )
    parser.add_argument(
        "--bagging-estimators",
        type=int,
        default=5,
        help="Number of bootstrap learners in bagging ensembles.",
    )
    parser.add_argument("--random-state", type=int, default=42)
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> RunConfig:
    return RunConfig(
        dataset=args.dataset,
        source=args.source,
        database=args.database,
        n_folds=args.folds,
        n_runs=args.runs,
        algorithms=tuple(args.algorithms),
        params=ModelParams(
            n_recommendations=args.n_recommendations,
            n_neighbours=args.knn_neighbours,
            weight_coefficient=args.cf_weight,
            normalization_coefficient=args.cf_normalization,
            n_estimators=args.bagging_estimators,
            random_state=args.random_state,
        ),
    )


def build_source(config: RunConfig) -> DataSource:
    if config.source == "file":
        return FileReader()
    if config.source == "sqlite":
        if not config.database:
            raise ConfigurationError("--database is required with --source sqlite")
        return SqliteReader(config.database)
    raise ConfigurationError(f"Unknown source: {config.source}")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.captureWarnings(True)


def run(config: RunConfig) -> int:
    logger.info(
        "Dataset: %s, song recommendations per user: %d, cross validation folds: %d, runs: %d",
        config.dataset,
        config.params.n_recommendations,
        config.n_folds,
        config.n_runs,
    )

    dataset = build_source(config).load(config.dataset)
    logger.info("Full dataset summary is %s", dataset.stats())

    summaries = cross_validate(
        dataset,
        config.algorithms,
        params=config.params,
        n_folds=config.n_folds,
        n_runs=config.n_runs,
    )

    logger.info(
        "=== Accuracy for recommending top %d songs with %d-fold cross validation ===",
        config.params.n_recommendations,
        config.n_folds,
    )
    for name, summary in summaries.items():
        if summary.n_runs == 0:
            logger.error("%s: all %d runs failed", display_name(name), summary.n_failed)
            continue
        logger.info(
            "%s: mean=%.2f %% min=%.2f %% max=%.2f %% time=%.2fs (runs=%d, failed=%d)",
            display_name(name),
            summary.mean_accuracy,
            summary.min_accuracy,
            summary.max_accuracy,
            summary.mean_elapsed,
            summary.n_runs,
            summary.n_failed,
        )
    return 0


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        return run(build_config(args))
    except (DataSourceError, ConfigurationError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
