from __future__ import annotations

import logging

import numpy as np
from scipy import sparse

from songrec.dataset import Dataset
from songrec.models.base import RecommendationMap, Recommender
from songrec.models.similarity import interaction_matrix

logger = logging.getLogger(__name__)


class NaiveBayes(Recommender):
    """Naive Bayes scoring of unheard songs from co-listening counts.

    For a query user with played songs ``P`` and a candidate train song ``c``,
    the log-likelihood is

        sum over p in P of log(co_listeners(p, c) / listeners(p))

    counted on the train set, assuming the played songs are independent given
    ``c``. Played songs unknown to the train set are ignored. Only candidates
    with a finite, strictly negative log-likelihood are ranked, by that
    log-likelihood (the order of ``exp(log-likelihood)``); the rest of the list
    is back-filled with popular songs.
    """

    def _fit(self, train: Dataset) -> None:
        self.vocabulary_ = train.songs
        self.song_to_idx_ = {song_id: i for i, song_id in enumerate(self.vocabulary_)}

        listeners = interaction_matrix(train, train.users, self.song_to_idx_)
        # co_listeners[p, c] = number of train users who played both p and c
        self.co_listeners_ = (listeners.T @ listeners).tocsr()
        self.co_listeners_.eliminate_zeros()
        self.listeners_ = np.maximum(np.asarray(listeners.sum(axis=0)).ravel(), 1.0)
        logger.info(
            "Co-listening matrix over %d songs with %d non-zero pairs",
            len(self.vocabulary_),
            self.co_listeners_.nnz,
        )

    def _log_likelihood(self, played: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        rows = self.co_listeners_[played]
        n_played = len(played)

        # a candidate with zero co-listeners for any played song has probability 0
        support = np.asarray(rows.getnnz(axis=0)).ravel()
        candidates = np.flatnonzero(support == n_played)

        # each term is log(co / listeners) <= 0, exactly 0 when every listener of p played c
        log_rows = sparse.csr_matrix(rows, copy=True)
        row_listeners = np.repeat(self.listeners_[played], np.diff(log_rows.indptr))
        log_rows.data = np.log(log_rows.data / row_listeners)
        return candidates, np.asarray(log_rows[:, candidates].sum(axis=0)).ravel()

    def _recommend(self, query: Dataset) -> RecommendationMap:
        recommendations: RecommendationMap = {}

        for user_id in query.users:
            seen = query.songs_for_user(user_id)
            played = np.array(
                sorted(self.song_to_idx_[s] for s in seen if s in self.song_to_idx_),
                dtype=np.int64,
            )
            if played.size == 0:
                recommendations[user_id] = self._finalize([])
                continue

            candidates, log_probs = self._log_likelihood(played)
            # ranked on the log scale; exp underflows for long histories
            scores = [
                (self.vocabulary_[idx], float(log_p))
                for idx, log_p in zip(candidates, log_probs)
                if log_p < 0 and self.vocabulary_[idx] not in seen
            ]
            recommendations[user_id] = self._rank(scores)

        return recommendations
