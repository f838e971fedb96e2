"""Load listening records into a :class:`~songrec.dataset.Dataset`.

Two sources are supported: flat files with one ``user,song,play_count`` row
per line and no header, and tables in a SQLite database with ``user_id``,
``song_id`` and ``play_count`` columns.
"""

from __future__ import annotations

import logging
import re
import sqlite3
import time
from contextlib import closing
from pathlib import Path
from typing import Protocol

import numpy as np
import pandas as pd

from songrec.dataset import COLUMNS, PLAYS_COL, SONG_COL, USER_COL, Dataset
from songrec.errors import ConfigurationError, DataSourceError

logger = logging.getLogger(__name__)

DB_COLUMNS = ["user_id", "song_id", "play_count"]

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class DataSource(Protocol):
    def load(self, identifier: str) -> Dataset:
        ...


def _frame_to_dataset(frame: pd.DataFrame, origin: str) -> Dataset:
    if frame[COLUMNS].isna().any().any():
        raise DataSourceError(f"{origin}: rows with missing fields")

    plays = pd.to_numeric(frame[PLAYS_COL], errors="coerce")
    bad = plays.isna() | (plays <= 0) | (plays != np.floor(plays))
    if bad.any():
        first = int(np.flatnonzero(bad.to_numpy())[0])
        raise DataSourceError(
            f"{origin}: play count must be a positive integer (row {first + 1}: "
            f"{frame[PLAYS_COL].iloc[first]!r})"
        )

    work = frame.assign(**{
        USER_COL: frame[USER_COL].astype(str),
        SONG_COL: frame[SONG_COL].astype(str),
        PLAYS_COL: plays.astype(np.int64),
    })
    try:
        dataset = Dataset.from_frame(work, keep="last")
    except ConfigurationError as exc:
        raise DataSourceError(f"{origin}: {exc}") from exc

    logger.info("Found %d users, %d songs in %s", dataset.n_users, dataset.n_songs, origin)
    return dataset


class FileReader:
    """Read comma-separated ``user,song,play_count`` rows without a header.

    Parameters
    ----------
    data_dir : str | Path | None
        Directory against which relative identifiers are resolved. When
        ``None``, identifiers are used as given.
    """

    def __init__(self, data_dir: str | Path | None = None) -> None:
        self.data_dir = Path(data_dir) if data_dir is not None else None

    def resolve(self, identifier: str) -> Path:
        path = Path(identifier)
        if self.data_dir is not None and not path.is_absolute():
            path = self.data_dir / path
        return path

    def load(self, identifier: str) -> Dataset:
        path = self.resolve(identifier)
        if not path.is_file():
            raise DataSourceError(f"No such dataset file: {path}")

        try:
            frame = pd.read_csv(
                path,
                header=None,
                dtype=str,
                skipinitialspace=True,
                skip_blank_lines=True,
                on_bad_lines="error",
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, OSError) as exc:
            raise DataSourceError(f"Failed to read {path}: {exc}") from exc

        if frame.shape[1] != len(COLUMNS):
            raise DataSourceError(
                f"{path}: expected {len(COLUMNS)} fields per line, found {frame.shape[1]}"
            )
        frame.columns = COLUMNS
        for col in (USER_COL, SONG_COL):
            frame[col] = frame[col].str.strip()
        return _frame_to_dataset(frame, str(path))


class SqliteReader:
    """Read listening records from a table of a SQLite database.

    Parameters
    ----------
    database : str | Path
        Path of the SQLite database file.
    """

    def __init__(self, database: str | Path) -> None:
        self.database = Path(database)

    def load(self, identifier: str) -> Dataset:
        if not _TABLE_NAME.match(identifier):
            raise ConfigurationError(f"Invalid table name: {identifier!r}")
        if not self.database.is_file():
            raise DataSourceError(f"No such database: {self.database}")

        query = (
            f"SELECT {', '.join(DB_COLUMNS)} FROM {identifier} "
            f"ORDER BY {DB_COLUMNS[0]}"
        )
        logger.info("Querying %s: %s", self.database, query)

        start = time.perf_counter()
        try:
            with closing(sqlite3.connect(self.database)) as conn:
                frame = pd.read_sql_query(query, conn)
        except (sqlite3.Error, pd.errors.DatabaseError) as exc:
            raise DataSourceError(f"Failed to query {identifier}: {exc}") from exc
        logger.info("Executed query in %.2f seconds", time.perf_counter() - start)

        frame.columns = COLUMNS
        return _frame_to_dataset(frame, f"{self.database}:{identifier}")
