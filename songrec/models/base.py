from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Tuple

from songrec.dataset import Dataset
from songrec.errors import ConfigurationError, UnfittedModelError
from songrec.topn import ScoredItem, TopNAccumulator, backfill

logger = logging.getLogger(__name__)

RecommendationMap = Dict[str, Tuple[str, ...]]


class Recommender(ABC):
    """Base class for song recommenders.

    A recommender is fitted on a train Dataset and then recommends
    ``n_recommendations`` songs for every user of a query Dataset. Every
    returned list is back-filled from the train set's global popularity
    ranking, so users get exactly ``n_recommendations`` songs whenever the
    train set holds at least that many distinct songs.

    Parameters
    ----------
    n_recommendations : int
        Number of songs to recommend per user.
    """

    def __init__(self, n_recommendations: int = 10) -> None:
        if int(n_recommendations) < 1:
            raise ConfigurationError(
                f"n_recommendations must be >= 1, got {n_recommendations}"
            )
        self.n_recommendations = int(n_recommendations)
        self.train_: Dataset | None = None
        self.popular_songs_: Tuple[str, ...] = ()

    @property
    def is_fitted(self) -> bool:
        return self.train_ is not None

    def fit(self, train: Dataset) -> "Recommender":
        """Fit the model on a train dataset.

        Parameters
        ----------
        train : Dataset
            Training listening history.

        Returns
        -------
        Recommender
            The fitted model.
        """
        self.train_ = train
        self.popular_songs_ = train.popularity_ranking()
        self._fit(train)
        return self

    def recommend(self, query: Dataset) -> RecommendationMap:
        """Produce top-N song ids for every user of ``query``.

        Parameters
        ----------
        query : Dataset
            Visible listening history of the users to recommend for.

        Returns
        -------
        dict[str, tuple[str, ...]]
            Mapping from user id to song ids, best first.
        """
        if self.train_ is None:
            raise UnfittedModelError(
                f"{self.__class__.__name__} is not fitted. Call fit(...) first."
            )
        if query.n_users == 0:
            return {}
        return self._recommend(query)

    def _fit(self, train: Dataset) -> None:
        """Model-specific fitting; the default keeps only the train reference."""

    @abstractmethod
    def _recommend(self, query: Dataset) -> RecommendationMap:
        raise NotImplementedError

    def _finalize(self, ranked: Iterable[ScoredItem]) -> Tuple[str, ...]:
        return backfill(
            [entry.key for entry in ranked],
            self.n_recommendations,
            self.popular_songs_,
        )

    def _rank(self, scores: Iterable[Tuple[str, float]]) -> Tuple[str, ...]:
        top = TopNAccumulator(self.n_recommendations)
        top.push_many(scores)
        return self._finalize(top.drain())

    def get_params(self) -> Dict[str, object]:
        return {"n_recommendations": self.n_recommendations}

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in self.get_params().items())
        return f"{self.__class__.__name__}({params})"
