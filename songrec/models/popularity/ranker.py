from __future__ import annotations

import logging
from typing import Tuple

from songrec.dataset import Dataset
from songrec.models.base import RecommendationMap, Recommender
from songrec.topn import ScoredItem

logger = logging.getLogger(__name__)


class TopNPopular(Recommender):
    """Recommend the same N most-listened songs of the train set to every user.

    Popularity is the number of distinct listeners of a song. This is the
    baseline the other recommenders are compared against.
    """

    def __init__(self, n_recommendations: int = 10) -> None:
        super().__init__(n_recommendations=n_recommendations)
        self.top_songs_: Tuple[str, ...] = ()

    def _fit(self, train: Dataset) -> None:
        ranked = [
            ScoredItem(key=song_id, score=len(train.users_for_song(song_id)))
            for song_id in train.most_popular(self.n_recommendations)
        ]
        for entry in ranked:
            logger.debug("Song %s with user count %d", entry.key, entry.score)

        self.top_songs_ = self._finalize(ranked)

    def _recommend(self, query: Dataset) -> RecommendationMap:
        # one shared immutable tuple for every user
        return {user_id: self.top_songs_ for user_id in query.users}
