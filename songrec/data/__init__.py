from .folds import FoldPartitioner, FoldSplit, partition, select_test, split_visible_hidden
from .readers import DataSource, FileReader, SqliteReader

__all__ = [
    "FoldPartitioner",
    "FoldSplit",
    "partition",
    "select_test",
    "split_visible_hidden",
    "DataSource",
    "FileReader",
    "SqliteReader",
]
