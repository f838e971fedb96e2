from songrec.dataset import Dataset
from songrec.errors import (
    ConfigurationError,
    DataSourceError,
    IntegrityWarning,
    SongRecError,
    UnfittedModelError,
)

__version__ = "0.1.0"

__all__ = [
    "Dataset",
    "SongRecError",
    "ConfigurationError",
    "UnfittedModelError",
    "DataSourceError",
    "IntegrityWarning",
]
