import warnings


class SongRecError(Exception):
    """Base class for all songrec errors."""


class ConfigurationError(SongRecError, ValueError):
    """Invalid parameters, hyperparameters or call order."""


class UnfittedModelError(ConfigurationError):
    """Raised when ``recommend`` is called before ``fit``."""


class DataSourceError(SongRecError, RuntimeError):
    """Listening records could not be loaded."""


class IntegrityWarning(UserWarning):
    """Non-fatal inconsistency; the offending item is dropped."""


def warn_integrity(message: str) -> None:
    warnings.warn(message, IntegrityWarning, stacklevel=3)
