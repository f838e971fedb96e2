import logging
import time
from dataclasses import dataclass

import numpy as np

from songrec.data.folds import FoldSplit
from songrec.dataset import Dataset
from songrec.errors import ConfigurationError
from songrec.eval.metrics.accuracy import hit_ratio
from songrec.models.base import RecommendationMap, Recommender

logger = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class AccuracyReport:
    accuracy: float
    n_users: int
    n_users_with_hits: int
    n_users_without_hidden: int
    avg_list_size: float


@dataclass(frozen=True, kw_only=True)
class RunResult:
    algorithm: str
    run_id: int
    accuracy: float
    elapsed: float


def accuracy_report(recommendations: RecommendationMap, hidden: Dataset) -> AccuracyReport:
    """Score recommendations against the hidden half of the test fold.

    Parameters
    ----------
    recommendations : dict[str, tuple[str, ...]]
        Recommended song ids per user.
    hidden : Dataset
        Held-out listening history used as ground truth.

    Returns
    -------
    AccuracyReport
        Mean per-user hit ratio as a percentage, plus user accounting.

    Notes
    -----
    Users with no hidden history (absent from ``hidden`` or with an empty
    entry) are not skipped: they count with an accuracy of 0.
    """
    if not recommendations:
        raise ConfigurationError("no recommendations to score")

    per_user = []
    list_sizes = []
    n_without_hidden = 0
    for user_id, songs in recommendations.items():
        hidden_songs = hidden.songs_for_user(user_id)
        if not hidden_songs:
            n_without_hidden += 1

        accuracy = hit_ratio(songs, hidden_songs)
        logger.debug("Accuracy for user %s is %.4f", user_id, accuracy)
        per_user.append(accuracy)
        list_sizes.append(len(songs))

    if n_without_hidden:
        logger.warning(
            "%d/%d users have no hidden history and score 0",
            n_without_hidden,
            len(recommendations),
        )

    scores = np.asarray(per_user, dtype=np.float64)
    return AccuracyReport(
        accuracy=float(scores.mean() * 100.0),
        n_users=len(per_user),
        n_users_with_hits=int(np.count_nonzero(scores)),
        n_users_without_hidden=n_without_hidden,
        avg_list_size=float(np.mean(list_sizes)),
    )


def accuracy_score(recommendations: RecommendationMap, hidden: Dataset) -> float:
    """Mean per-user hit ratio of ``recommendations`` against ``hidden``, in percent."""
    return accuracy_report(recommendations, hidden).accuracy


def evaluate(model: Recommender, split: FoldSplit, algorithm: str, run_id: int = 0) -> RunResult:
    """Fit ``model`` on the train part of ``split`` and score it on the test fold."""
    start = time.perf_counter()

    model.fit(split.train)
    recommendations = model.recommend(split.visible)
    report = accuracy_report(recommendations, split.hidden)

    elapsed = time.perf_counter() - start
    logger.info(
        "Accuracy of '%s' for run %d is %.2f %% (%d users, %.2fs)",
        algorithm,
        run_id,
        report.accuracy,
        report.n_users,
        elapsed,
    )
    return RunResult(algorithm=algorithm, run_id=run_id, accuracy=report.accuracy, elapsed=elapsed)
