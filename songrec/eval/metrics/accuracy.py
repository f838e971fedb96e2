from typing import AbstractSet, Mapping, Sequence

from songrec.errors import ConfigurationError


def hit_ratio(recommended: Sequence[str], hidden_songs: Mapping[str, int] | AbstractSet[str]) -> float:
    """Fraction of recommended songs present in the user's hidden history.

    Parameters
    ----------
    recommended : sequence of str
        Recommended song ids for one user.
    hidden_songs : mapping or set of str
        Songs the user actually played in the hidden half. Empty when the
        user has no hidden history.

    Returns
    -------
    float
        Hit ratio in [0, 1].
    """
    if len(recommended) == 0:
        raise ConfigurationError("cannot score an empty recommendation list")
    hits = sum(1 for song_id in recommended if song_id in hidden_songs)
    return hits / len(recommended)
