import pytest

from songrec.dataset import Dataset
from songrec.errors import ConfigurationError
from songrec.models import KNN


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def train():
    # popularity ranking: a, b, c, d
    return Dataset({
        "t1": {"a": 2, "b": 1},
        "t2": {"a": 1, "c": 3},
        "t3": {"d": 1},
    })


@pytest.fixture
def query():
    return Dataset({"q1": {"a": 1}})


def test_single_neighbour_is_the_closest_user(train, query):
    """cos(q1, t1) = 2 / sqrt(5) beats cos(q1, t2) = 1 / sqrt(10)."""
    # act
    recs = KNN(n_recommendations=2, n_neighbours=1).fit(train).recommend(query)

    # assert
    # only b comes from t1; the list is back-filled with the most popular song
    assert recs["q1"] == ("b", "a")


def test_more_neighbours_add_their_songs(train, query):
    recs = KNN(n_recommendations=2, n_neighbours=2).fit(train).recommend(query)
    assert recs["q1"] == ("b", "c")


def test_users_without_similarity_are_not_neighbours(train, query):
    recs = KNN(n_recommendations=3, n_neighbours=80).fit(train).recommend(query)
    # t3 shares nothing with q1, so d only appears through back-fill
    assert recs["q1"] == ("b", "c", "a")


def test_songs_shared_by_neighbours_accumulate(train):
    query = Dataset({"q1": {"b": 1, "c": 1}})

    recs = KNN(n_recommendations=1, n_neighbours=2).fit(train).recommend(query)

    # a is played by both neighbours
    assert recs["q1"] == ("a",)


def test_returns_exactly_n_distinct_songs(train):
    query = Dataset({"q1": {"a": 1}, "q2": {"z": 4}, "q3": {"d": 2}})

    recs = KNN(n_recommendations=4, n_neighbours=2).fit(train).recommend(query)

    assert set(recs) == {"q1", "q2", "q3"}
    for songs in recs.values():
        assert len(songs) == 4
        assert len(set(songs)) == 4


@pytest.mark.parametrize("k", [0, -3])
def test_rejects_non_positive_neighbour_count(k):
    with pytest.raises(ConfigurationError):
        KNN(n_neighbours=k)
