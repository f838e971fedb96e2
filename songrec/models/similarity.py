from __future__ import annotations

from typing import AbstractSet, Dict, Sequence

import numpy as np
from scipy import sparse

from songrec.dataset import Dataset
from songrec.errors import ConfigurationError


def _check_alpha(alpha: float) -> float:
    alpha = float(alpha)
    if not 0.0 <= alpha <= 1.0:
        raise ConfigurationError(f"alpha must be in [0, 1], got {alpha}")
    return alpha


def similarity(set_a: AbstractSet, set_b: AbstractSet, alpha: float = 0.5) -> float:
    """Set similarity ``|A & B| / (|A| ** alpha * |B| ** (1 - alpha))``.

    Returns 0.0 for empty or disjoint inputs.
    """
    return SetSimilarity(alpha).score(len(set_a & set_b), len(set_a), len(set_b))


def interaction_matrix(
    dataset: Dataset,
    user_ids: Sequence[str],
    song_to_idx: Dict[str, int],
    binary: bool = True,
) -> sparse.csr_matrix:
    """Sparse users x songs matrix over a fixed song vocabulary.

    Songs missing from ``song_to_idx`` are ignored. Cells hold 1.0 when
    ``binary`` is set, the play count otherwise.
    """
    rows, cols, data = [], [], []
    history = dataset.listening_history
    for row, user_id in enumerate(user_ids):
        for song_id, plays in history.get(user_id, {}).items():
            col = song_to_idx.get(song_id)
            if col is None:
                continue
            rows.append(row)
            cols.append(col)
            data.append(1.0 if binary else float(plays))

    return sparse.csr_matrix(
        (np.asarray(data, dtype=np.float64), (np.asarray(rows, dtype=np.int64), np.asarray(cols, dtype=np.int64))),
        shape=(len(user_ids), len(song_to_idx)),
        dtype=np.float64,
    )


class SetSimilarity:
    """Pairwise set similarity between the rows of two binary sparse matrices.

    Each row is a set over a shared column vocabulary. Only row pairs with a
    non-empty intersection are materialized.

    Parameters
    ----------
    alpha : float
        Weight of the left set size in the normalization, in [0, 1].
        0.5 gives cosine normalization on set sizes.
    """

    def __init__(self, alpha: float = 0.5) -> None:
        self.alpha = _check_alpha(alpha)

    def score(self, common: int, size_a: int, size_b: int) -> float:
        if common <= 0 or size_a <= 0 or size_b <= 0:
            return 0.0
        return common / (size_a ** self.alpha * size_b ** (1.0 - self.alpha))

    def pairwise(self, left: sparse.spmatrix, right: sparse.spmatrix) -> sparse.csr_matrix:
        """Similarity of every row of ``left`` to every row of ``right``.

        Returns
        -------
        sparse.csr_matrix
            Shape ``(left.shape[0], right.shape[0])``; zero entries are not
            stored.
        """
        left = sparse.csr_matrix(left, dtype=np.float64)
        right = sparse.csr_matrix(right, dtype=np.float64)

        common = (left @ right.T).tocoo()
        if common.nnz == 0:
            return sparse.csr_matrix(common.shape, dtype=np.float64)

        left_sizes = np.asarray(left.getnnz(axis=1), dtype=np.float64)
        right_sizes = np.asarray(right.getnnz(axis=1), dtype=np.float64)

        denom = left_sizes[common.row] ** self.alpha * right_sizes[common.col] ** (1.0 - self.alpha)
        data = common.data / denom

        sim = sparse.csr_matrix((data, (common.row, common.col)), shape=common.shape, dtype=np.float64)
        sim.eliminate_zeros()
        return sim


def cosine_similarity_rows(left: sparse.spmatrix, right: sparse.spmatrix) -> sparse.csr_matrix:
    """Cosine similarity between the rows of two (weighted) sparse matrices."""
    left = sparse.csr_matrix(left, dtype=np.float64)
    right = sparse.csr_matrix(right, dtype=np.float64)

    def _normalize(m: sparse.csr_matrix) -> sparse.csr_matrix:
        norms = np.sqrt(np.asarray(m.power(2).sum(axis=1)).ravel())
        norms[norms == 0] = 1.0
        return sparse.diags(1.0 / norms) @ m

    sim = (_normalize(left) @ _normalize(right).T).tocsr()
    sim.eliminate_zeros()
    return sim
