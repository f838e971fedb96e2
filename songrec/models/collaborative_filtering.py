from __future__ import annotations

import logging
from typing import Dict, List

import numpy as np
from scipy import sparse

from songrec.dataset import Dataset
from songrec.errors import ConfigurationError
from songrec.models.base import RecommendationMap, Recommender
from songrec.models.similarity import SetSimilarity, interaction_matrix

logger = logging.getLogger(__name__)


def _row_scores(matrix: sparse.csr_matrix, row: int, vocabulary: List[str], seen) -> Dict[str, float]:
    start, end = matrix.indptr[row], matrix.indptr[row + 1]
    scores: Dict[str, float] = {}
    for col, value in zip(matrix.indices[start:end], matrix.data[start:end]):
        song_id = vocabulary[col]
        if value > 0 and song_id not in seen:
            scores[song_id] = float(value)
    return scores


class UserBasedCF(Recommender):
    """Memory-based user-user collaborative filtering.

    Users who listened to similar songs in the past tend to listen to similar
    songs in the future. Every query user is compared with every train user
    through the overlap of their song sets:

        sim(u, v) = |S_u & S_v| / (|S_u| ** alpha * |S_v| ** (1 - alpha))

    and an unheard train song is weighted by the sum of ``sim(u, v) ** gamma``
    over the train users ``v`` who played it.

    Parameters
    ----------
    n_recommendations : int
        Number of songs to recommend per user.
    weight_coefficient : float
        ``alpha`` above, in [0, 1]. Larger values penalize query users with
        long histories less than train users with long histories.
    normalization_coefficient : float
        ``gamma`` above. Sharpens the contribution of the most similar users.
    """

    def __init__(
        self,
        n_recommendations: int = 10,
        weight_coefficient: float = 0.8,
        normalization_coefficient: float = 8.0,
    ) -> None:
        super().__init__(n_recommendations=n_recommendations)
        self.weight_coefficient = float(weight_coefficient)
        self.normalization_coefficient = float(normalization_coefficient)
        if self.normalization_coefficient <= 0:
            raise ConfigurationError(
                f"normalization_coefficient must be > 0, got {normalization_coefficient}"
            )
        self._similarity = SetSimilarity(alpha=self.weight_coefficient)

    def get_params(self) -> Dict[str, object]:
        return {
            **super().get_params(),
            "weight_coefficient": self.weight_coefficient,
            "normalization_coefficient": self.normalization_coefficient,
        }

    def _recommend(self, query: Dataset) -> RecommendationMap:
        train = self.train_
        logger.info("TRAIN users: %d, TEST users: %d", train.n_users, query.n_users)

        vocabulary = sorted(set(train.song_index) | set(query.song_index))
        song_to_idx = {song_id: i for i, song_id in enumerate(vocabulary)}

        train_users = train.users
        query_users = query.users
        train_matrix = interaction_matrix(train, train_users, song_to_idx)
        query_matrix = interaction_matrix(query, query_users, song_to_idx)

        sim = self._similarity.pairwise(query_matrix, train_matrix)
        logger.info(
            "User similarity matrix => rows: %d, columns: %d, non-zero: %d",
            int(np.count_nonzero(sim.getnnz(axis=1))),
            int(np.count_nonzero(sim.getnnz(axis=0))),
            sim.nnz,
        )

        song_weights = (sim.power(self.normalization_coefficient) @ train_matrix).tocsr()
        train_songs = train.song_index.keys()

        recommendations: RecommendationMap = {}
        for row, user_id in enumerate(query_users):
            seen = query.songs_for_user(user_id)

            if sum(1 for song_id in seen if song_id in train_songs) == len(train_songs):
                logger.debug("No songs to evaluate for test user %s", user_id)
                recommendations[user_id] = self._finalize([])
                continue

            scores = _row_scores(song_weights, row, vocabulary, seen)
            recommendations[user_id] = self._rank(scores.items())

        return recommendations


class ItemBasedCF(Recommender):
    """Memory-based item-item collaborative filtering.

    Songs that are often listened together are recommended together. Song
    similarity is the cosine-normalized overlap of their train listener sets;
    an unheard train song is weighted by the sum of its similarities to the
    songs the query user has played.
    """

    def __init__(self, n_recommendations: int = 10) -> None:
        super().__init__(n_recommendations=n_recommendations)
        self._similarity = SetSimilarity(alpha=0.5)

    def _recommend(self, query: Dataset) -> RecommendationMap:
        train = self.train_
        logger.info("TRAIN songs: %d, TEST songs: %d", train.n_songs, query.n_songs)

        vocabulary = train.songs
        song_to_idx = {song_id: i for i, song_id in enumerate(vocabulary)}

        query_users = query.users
        train_matrix = interaction_matrix(train, train.users, song_to_idx)
        query_matrix = interaction_matrix(query, query_users, song_to_idx)

        # only songs some query user has played need a similarity row
        played = np.unique(query_matrix.indices)
        song_listeners = train_matrix.T.tocsr()
        item_sim = self._similarity.pairwise(song_listeners[played], song_listeners)
        logger.info("Song similarity matrix => rows: %d, non-zero: %d", len(played), item_sim.nnz)

        song_weights = (query_matrix[:, played] @ item_sim).tocsr()

        recommendations: RecommendationMap = {}
        for row, user_id in enumerate(query_users):
            seen = query.songs_for_user(user_id)
            scores = _row_scores(song_weights, row, vocabulary, seen)
            recommendations[user_id] = self._rank(scores.items())

        return recommendations
