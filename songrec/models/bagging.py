"""Bootstrap aggregation over any recommender.

Each base learner is fitted on a resample of the train observations drawn
with replacement; at recommendation time every learner votes once for each
song it proposes to a user, and songs are ranked by their number of votes.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Callable, Dict, List

import numpy as np
import pandas as pd

from songrec.dataset import SONG_COL, USER_COL, Dataset
from songrec.errors import ConfigurationError, warn_integrity
from songrec.models.base import RecommendationMap, Recommender

logger = logging.getLogger(__name__)


def draw_observations(dataset: Dataset, rng: np.random.Generator) -> pd.DataFrame:
    """Draw ``dataset.n_observations`` (user, song, play count) rows with replacement."""
    frame = dataset.to_frame()
    return frame.sample(n=len(frame), replace=True, random_state=rng).reset_index(drop=True)


def bootstrap_resample(dataset: Dataset, rng: np.random.Generator) -> Dataset:
    """Bootstrap resample of ``dataset``.

    Repeated draws of the same (user, song) pair collapse into one entry that
    keeps the first drawn play count; the song index is rebuilt from the
    resampled history.
    """
    sample = draw_observations(dataset, rng)
    n_unique = int((~sample.duplicated(subset=[USER_COL, SONG_COL])).sum())
    logger.debug(
        "Drew %d observations, %d distinct (user, song) pairs", len(sample), n_unique
    )
    return Dataset.from_frame(sample, keep="first")


class BaggingEnsemble(Recommender):
    """Bagging ensemble of independently trained base recommenders.

    Parameters
    ----------
    base_factory : Callable[[], Recommender]
        Builds a fresh, unfitted base learner.
    n_recommendations : int
        Number of songs to recommend per user.
    n_estimators : int
        Number of bootstrap resamples / base learners.
    random_state : int
        Seed of the resampling generator.
    """

    def __init__(
        self,
        base_factory: Callable[[], Recommender],
        n_recommendations: int = 10,
        n_estimators: int = 5,
        random_state: int = 42,
    ) -> None:
        super().__init__(n_recommendations=n_recommendations)
        if int(n_estimators) < 1:
            raise ConfigurationError(f"n_estimators must be >= 1, got {n_estimators}")
        self.base_factory = base_factory
        self.n_estimators = int(n_estimators)
        self.random_state = int(random_state)
        self.estimators_: List[Recommender] = []

    def get_params(self) -> Dict[str, object]:
        return {
            **super().get_params(),
            "n_estimators": self.n_estimators,
            "random_state": self.random_state,
        }

    def _fit(self, train: Dataset) -> None:
        rng = np.random.default_rng(self.random_state)

        self.estimators_ = []
        for i in range(self.n_estimators):
            sample = bootstrap_resample(train, rng)
            model = self.base_factory()
            logger.info(
                "Fitting base learner %d/%d %r on resample (%s)",
                i + 1,
                self.n_estimators,
                model,
                sample.stats(),
            )
            self.estimators_.append(model.fit(sample))

    def _recommend(self, query: Dataset) -> RecommendationMap:
        train = self.train_
        votes: Dict[str, Counter] = {user_id: Counter() for user_id in query.users}

        for model in self.estimators_:
            for user_id, songs in model.recommend(query).items():
                counter = votes.setdefault(user_id, Counter())
                for song_id in songs:
                    if song_id not in train.song_index and song_id not in query.song_index:
                        message = (
                            f"Dropping song {song_id!r} proposed for user {user_id!r}: "
                            "unknown to the ensemble's train and query sets"
                        )
                        logger.warning("%s", message)
                        warn_integrity(message)
                        continue
                    counter[song_id] += 1

        return {user_id: self._rank(counter.items()) for user_id, counter in votes.items()}
