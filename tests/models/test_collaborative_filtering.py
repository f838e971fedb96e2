import pytest

from songrec.dataset import Dataset
from songrec.errors import ConfigurationError
from songrec.models import ItemBasedCF, UserBasedCF


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def train():
    # popularity ranking: a (2 listeners), then b, c, d, e
    return Dataset({
        "t1": {"a": 1, "b": 1, "c": 1},
        "t2": {"a": 1, "d": 1},
        "t3": {"e": 1},
    })


@pytest.fixture
def query():
    return Dataset({
        "q1": {"a": 1, "b": 1},
        "q2": {"a": 1, "b": 1, "c": 1, "d": 1, "e": 1},
        "q3": {"z": 1},
    })


# ── UserBasedCF ───────────────────────────────────────────────────────────────

def test_user_cf_ranks_by_similar_users(train, query):
    """q1 shares two songs with t1 and one with t2, and none with t3."""
    # act
    recs = UserBasedCF(n_recommendations=3).fit(train).recommend(query)

    # assert
    # c (via t1) outranks d (via t2); e has no similar listener, so "a" back-fills
    assert recs["q1"] == ("c", "d", "a")


@pytest.mark.parametrize("gamma", [1.0, 2.0, 8.0])
def test_user_cf_order_is_stable_across_normalization(train, query, gamma):
    model = UserBasedCF(n_recommendations=2, weight_coefficient=0.5, normalization_coefficient=gamma)
    recs = model.fit(train).recommend(query)
    assert recs["q1"] == ("c", "d")


def test_user_cf_falls_back_to_popularity_when_everything_was_played(train, query):
    recs = UserBasedCF(n_recommendations=3).fit(train).recommend(query)
    assert recs["q2"] == ("a", "b", "c")


def test_user_cf_user_without_overlap_gets_popular_songs(train, query):
    recs = UserBasedCF(n_recommendations=3).fit(train).recommend(query)
    assert recs["q3"] == ("a", "b", "c")


def test_user_cf_returns_exactly_n_distinct_songs(train, query):
    recs = UserBasedCF(n_recommendations=4).fit(train).recommend(query)

    for songs in recs.values():
        assert len(songs) == 4
        assert len(set(songs)) == 4


def test_user_cf_rejects_non_positive_normalization():
    with pytest.raises(ConfigurationError):
        UserBasedCF(normalization_coefficient=0.0)


def test_user_cf_rejects_weight_outside_unit_interval():
    with pytest.raises(ConfigurationError):
        UserBasedCF(weight_coefficient=1.2)


# ── ItemBasedCF ───────────────────────────────────────────────────────────────

def test_item_cf_sums_similarity_to_played_songs(train, query):
    """c is close to both a and b, d only to a."""
    # act
    recs = ItemBasedCF(n_recommendations=3).fit(train).recommend(query)

    # assert
    assert recs["q1"] == ("c", "d", "a")


def test_item_cf_ignores_songs_unknown_to_train(train, query):
    recs = ItemBasedCF(n_recommendations=3).fit(train).recommend(query)
    assert recs["q3"] == ("a", "b", "c")


def test_item_cf_excludes_the_played_song(train):
    query = Dataset({"q1": {"c": 1}})

    recs = ItemBasedCF(n_recommendations=2).fit(train).recommend(query)

    # b shares its only listener with c; a has a second listener
    assert recs["q1"] == ("b", "a")


def test_item_cf_returns_exactly_n_distinct_songs(train, query):
    recs = ItemBasedCF(n_recommendations=5).fit(train).recommend(query)

    for songs in recs.values():
        assert len(songs) == 5
        assert len(set(songs)) == 5
