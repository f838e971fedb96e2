from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Literal, Mapping, Tuple

import numpy as np
import pandas as pd

from songrec.errors import ConfigurationError
from songrec.topn import TopNAccumulator

logger = logging.getLogger(__name__)

USER_COL = "UserID"
SONG_COL = "SongID"
PLAYS_COL = "PlayCount"
COLUMNS = [USER_COL, SONG_COL, PLAYS_COL]

ListeningHistory = Dict[str, Dict[str, int]]


def _validate_plays(user_id: object, song_id: object, plays: object) -> int:
    if isinstance(plays, (int, np.integer)) and not isinstance(plays, bool) and plays > 0:
        return int(plays)
    raise ConfigurationError(
        f"play count for ({user_id}, {song_id}) must be a positive integer, got {plays!r}"
    )


class Dataset:
    """Sparse user -> song -> play-count matrix with a derived song index.

    A Dataset is a value object: the listening history is copied on
    construction and the song index is derived from it. Callers must treat
    every mapping returned by a Dataset as read-only and build a new Dataset
    instead of patching one.

    Parameters
    ----------
    listening_history : Mapping[str, Mapping[str, int]]
        Mapping from user id to a mapping from song id to positive play count.
        A user may map to an empty mapping.
    """

    __slots__ = ("_history", "_song_index", "_popularity")

    def __init__(self, listening_history: Mapping[str, Mapping[str, int]] | None = None) -> None:
        history: ListeningHistory = {}
        for user_id, songs in (listening_history or {}).items():
            user_songs: Dict[str, int] = {}
            for song_id, plays in songs.items():
                user_songs[str(song_id)] = _validate_plays(user_id, song_id, plays)
            history[str(user_id)] = user_songs

        self._history = history
        self._song_index = self._build_song_index(history)
        self._popularity: Tuple[str, ...] | None = None

    @staticmethod
    def _build_song_index(history: ListeningHistory) -> Dict[str, Tuple[str, ...]]:
        listeners: Dict[str, List[str]] = {}
        for user_id in sorted(history):
            for song_id in history[user_id]:
                listeners.setdefault(song_id, []).append(user_id)
        return {song_id: tuple(users) for song_id, users in listeners.items()}

    # ── Construction ────────────────────────────────────────────────────────

    @classmethod
    def from_records(
        cls,
        records: Iterable[Tuple[str, str, int]],
        keep: Literal["first", "last"] = "first",
    ) -> "Dataset":
        """Build a Dataset from (user, song, play count) tuples.

        Parameters
        ----------
        records : iterable of (str, str, int)
            Raw observations.
        keep : {"first", "last"}
            Which play count wins when a (user, song) pair repeats.

        Returns
        -------
        Dataset
        """
        if keep not in ("first", "last"):
            raise ConfigurationError(f"Unknown keep policy: {keep}")

        history: ListeningHistory = {}
        for user_id, song_id, plays in records:
            user_songs = history.setdefault(str(user_id), {})
            if keep == "first" and str(song_id) in user_songs:
                continue
            user_songs[str(song_id)] = plays
        return cls(history)

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        keep: Literal["first", "last"] = "first",
    ) -> "Dataset":
        """Build a Dataset from a frame with ``UserID``, ``SongID``, ``PlayCount`` columns."""
        missing = [c for c in COLUMNS if c not in frame.columns]
        if missing:
            raise ConfigurationError(f"frame is missing columns: {missing}")

        if frame.empty:
            return cls({})

        work = frame[COLUMNS].drop_duplicates(subset=[USER_COL, SONG_COL], keep=keep)

        # integral floats such as 3.0 are accepted; 2.5, NaN and text are not
        plays = pd.to_numeric(work[PLAYS_COL], errors="coerce")
        bad = plays.isna() | (plays % 1 != 0) | (plays <= 0)
        if bad.any():
            first = int(np.flatnonzero(bad.to_numpy())[0])
            raise ConfigurationError(
                f"play count for ({work[USER_COL].iloc[first]}, {work[SONG_COL].iloc[first]}) "
                f"must be a positive integer, got {work[PLAYS_COL].iloc[first]!r}"
            )

        return cls.from_records(
            zip(
                work[USER_COL].astype(str),
                work[SONG_COL].astype(str),
                plays.astype(np.int64).tolist(),
            )
        )

    @classmethod
    def merge(cls, datasets: Iterable["Dataset"]) -> "Dataset":
        """Union of several datasets; the first occurrence of a (user, song) pair wins.

        The song index of the result is re-derived, so a song's listeners are
        the set-union of its listeners across the inputs.
        """
        history: ListeningHistory = {}
        for dataset in datasets:
            for user_id, songs in dataset._history.items():
                user_songs = history.setdefault(user_id, {})
                for song_id, plays in songs.items():
                    user_songs.setdefault(song_id, plays)
        return cls(history)

    def to_frame(self) -> pd.DataFrame:
        """Flatten into one row per (user, song) observation."""
        rows = [
            (user_id, song_id, plays)
            for user_id, songs in self._history.items()
            for song_id, plays in songs.items()
        ]
        frame = pd.DataFrame(rows, columns=COLUMNS)
        frame[PLAYS_COL] = frame[PLAYS_COL].astype(np.int64)
        return frame

    # ── Accessors ───────────────────────────────────────────────────────────

    @property
    def listening_history(self) -> Mapping[str, Mapping[str, int]]:
        return self._history

    @property
    def song_index(self) -> Mapping[str, Tuple[str, ...]]:
        return self._song_index

    @property
    def users(self) -> List[str]:
        return sorted(self._history)

    @property
    def songs(self) -> List[str]:
        return sorted(self._song_index)

    @property
    def n_users(self) -> int:
        return len(self._history)

    @property
    def n_songs(self) -> int:
        return len(self._song_index)

    @property
    def n_observations(self) -> int:
        return sum(len(songs) for songs in self._history.values())

    def songs_for_user(self, user_id: str) -> Mapping[str, int]:
        return self._history.get(user_id, {})

    def users_for_song(self, song_id: str) -> Tuple[str, ...]:
        return self._song_index.get(song_id, ())

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._history

    def __len__(self) -> int:
        return len(self._history)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dataset):
            return NotImplemented
        return self._history == other._history

    def __repr__(self) -> str:
        return f"Dataset({self.stats()})"

    def stats(self) -> str:
        return f"Users: {self.n_users}\tSongs: {self.n_songs}\tObservations: {self.n_observations}"

    # ── Popularity ──────────────────────────────────────────────────────────

    def popularity_ranking(self) -> Tuple[str, ...]:
        """All songs ordered by number of distinct listeners (descending), ties by id."""
        if self._popularity is None:
            self._popularity = tuple(
                sorted(self._song_index, key=lambda s: (-len(self._song_index[s]), s))
            )
        return self._popularity

    def most_popular(self, n: int) -> Tuple[str, ...]:
        """The ``n`` songs with the most distinct listeners."""
        if n < 1:
            raise ConfigurationError(f"n must be >= 1, got {n}")
        logger.debug("Calculating the %d most popular songs in the dataset", n)

        top = TopNAccumulator(n)
        for song_id, listeners in self._song_index.items():
            top.push(song_id, len(listeners))
        return tuple(entry.key for entry in top.drain())
