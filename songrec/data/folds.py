"""User-stratified cross-validation folds.

The full dataset is cut into ``k`` folds of whole users. For one run a single
fold is the test fold: each of its users' histories is halved into a visible
part (evidence given to the recommender) and a hidden part (ground truth),
while the remaining folds are merged into the training set.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Sequence

from songrec.dataset import Dataset
from songrec.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class FoldSplit:
    train: Dataset
    visible: Dataset
    hidden: Dataset
    test_index: int


def partition(dataset: Dataset, k: int) -> List[Dataset]:
    """Split ``dataset`` into ``k`` user-disjoint folds.

    Parameters
    ----------
    dataset : Dataset
        Full dataset.
    k : int
        Number of folds, ``1 <= k <= dataset.n_users``.

    Returns
    -------
    list[Dataset]
        Folds of ``floor(n_users / k)`` users each, taken in lexicographic user
        order; the last fold also absorbs the remainder. Each fold's song index
        only covers its own users.
    """
    n_users = dataset.n_users
    if k < 1 or k > n_users:
        raise ConfigurationError(
            f"number of folds must be in [1, {n_users}] for this dataset, got {k}"
        )

    users = dataset.users
    fold_size = n_users // k
    history = dataset.listening_history

    folds: List[Dataset] = []
    for fold_id in range(k):
        start = fold_id * fold_size
        end = n_users if fold_id == k - 1 else start + fold_size
        folds.append(Dataset({user_id: history[user_id] for user_id in users[start:end]}))

    logger.debug("Partitioned %d users into %d folds of size %d", n_users, k, fold_size)
    return folds


def split_visible_hidden(fold: Dataset) -> tuple[Dataset, Dataset]:
    """Halve each user's history: the first ``ceil(n/2)`` songs (sorted by id) are visible."""
    visible: Dict[str, Dict[str, int]] = {}
    hidden: Dict[str, Dict[str, int]] = {}

    for user_id, songs in fold.listening_history.items():
        ordered = sorted(songs)
        cut = math.ceil(len(ordered) / 2)
        visible[user_id] = {song_id: songs[song_id] for song_id in ordered[:cut]}
        hidden[user_id] = {song_id: songs[song_id] for song_id in ordered[cut:]}

    return Dataset(visible), Dataset(hidden)


def select_test(folds: Sequence[Dataset], test_index: int) -> FoldSplit:
    """Use fold ``test_index`` as the test fold and merge the others into train."""
    if not 0 <= test_index < len(folds):
        raise ConfigurationError(
            f"test_index must be in [0, {len(folds)}), got {test_index}"
        )

    train = Dataset.merge(fold for i, fold in enumerate(folds) if i != test_index)
    visible, hidden = split_visible_hidden(folds[test_index])
    return FoldSplit(train=train, visible=visible, hidden=hidden, test_index=test_index)


class FoldPartitioner:
    """Holds the folds of one full dataset and hands out train/visible/hidden splits.

    Parameters
    ----------
    dataset : Dataset
        Full dataset to partition.
    n_folds : int
        Number of cross-validation folds.
    """

    def __init__(self, dataset: Dataset, n_folds: int) -> None:
        self.full_dataset = dataset
        self.n_folds = int(n_folds)
        self.folds = partition(dataset, self.n_folds)

    def split(self, run_id: int) -> FoldSplit:
        """Split for a run; the test fold rotates with ``run_id``."""
        fold_split = select_test(self.folds, run_id % self.n_folds)

        logger.info("Train dataset summary for run %d is %s", run_id, fold_split.train.stats())
        logger.info("Test visible dataset summary for run %d is %s", run_id, fold_split.visible.stats())
        logger.info("Test hidden dataset summary for run %d is %s", run_id, fold_split.hidden.stats())
        return fold_split
