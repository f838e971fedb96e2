from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict

from songrec.dataset import Dataset
from songrec.errors import ConfigurationError
from songrec.models.base import RecommendationMap, Recommender
from songrec.models.similarity import cosine_similarity_rows, interaction_matrix
from songrec.topn import TopNAccumulator

logger = logging.getLogger(__name__)


class KNN(Recommender):
    """k-nearest-neighbour recommender over play-count vectors.

    Each user is a play-count vector over the union of train and query songs.
    For a query user the ``n_neighbours`` train users with the highest
    positive cosine similarity are kept, and every song a neighbour played
    gains ``1 + similarity``. Songs already in the query user's history are
    not recommended.

    Parameters
    ----------
    n_recommendations : int
        Number of songs to recommend per user.
    n_neighbours : int
        Number of nearest train users to aggregate.
    """

    def __init__(self, n_recommendations: int = 10, n_neighbours: int = 80) -> None:
        super().__init__(n_recommendations=n_recommendations)
        if int(n_neighbours) < 1:
            raise ConfigurationError(f"n_neighbours must be >= 1, got {n_neighbours}")
        self.n_neighbours = int(n_neighbours)

    def get_params(self) -> Dict[str, object]:
        return {**super().get_params(), "n_neighbours": self.n_neighbours}

    def _recommend(self, query: Dataset) -> RecommendationMap:
        train = self.train_

        vocabulary = sorted(set(train.song_index) | set(query.song_index))
        song_to_idx = {song_id: i for i, song_id in enumerate(vocabulary)}

        # train vectors are built once per call, not once per query user
        train_users = train.users
        query_users = query.users
        train_vectors = interaction_matrix(train, train_users, song_to_idx, binary=False)
        query_vectors = interaction_matrix(query, query_users, song_to_idx, binary=False)

        sim = cosine_similarity_rows(query_vectors, train_vectors)
        logger.info(
            "KNN with %d neighbours over %d train users, %d query users",
            self.n_neighbours,
            len(train_users),
            len(query_users),
        )

        recommendations: RecommendationMap = {}
        for row, user_id in enumerate(query_users):
            start, end = sim.indptr[row], sim.indptr[row + 1]
            neighbours = TopNAccumulator(self.n_neighbours)
            for col, value in zip(sim.indices[start:end], sim.data[start:end]):
                if value > 0:
                    neighbours.push(train_users[col], float(value))

            seen = query.songs_for_user(user_id)
            scores: Dict[str, float] = defaultdict(float)
            for neighbour in neighbours.drain():
                for song_id in train.songs_for_user(neighbour.key):
                    if song_id not in seen:
                        scores[song_id] += 1.0 + neighbour.score

            recommendations[user_id] = self._rank(scores.items())

        return recommendations
