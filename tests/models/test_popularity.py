import pytest

from songrec.dataset import Dataset
from songrec.errors import ConfigurationError, UnfittedModelError
from songrec.models import TopNPopular


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def train():
    # listeners: s1 -> 3, s2 -> 5, s3 -> 1
    return Dataset({
        "u1": {"s1": 1, "s2": 1, "s3": 9},
        "u2": {"s1": 1, "s2": 1},
        "u3": {"s1": 1, "s2": 1},
        "u4": {"s2": 1},
        "u5": {"s2": 1},
    })


@pytest.fixture
def query():
    return Dataset({"q1": {"s9": 1}, "q2": {"s1": 1}})


def test_recommends_songs_with_most_listeners(train, query):
    # act
    recs = TopNPopular(n_recommendations=2).fit(train).recommend(query)

    # assert
    assert recs == {"q1": ("s2", "s1"), "q2": ("s2", "s1")}


def test_all_users_share_one_list(train, query):
    recs = TopNPopular(n_recommendations=2).fit(train).recommend(query)
    assert recs["q1"] is recs["q2"]


def test_short_list_when_train_has_fewer_songs(train, query):
    recs = TopNPopular(n_recommendations=5).fit(train).recommend(query)
    assert recs["q1"] == ("s2", "s1", "s3")


def test_list_goes_through_popularity_backfill(train, query, monkeypatch):
    # arrange
    finalized = []
    original = TopNPopular._finalize

    def spy(self, ranked):
        result = original(self, ranked)
        finalized.append(result)
        return result

    monkeypatch.setattr(TopNPopular, "_finalize", spy)

    # act
    recs = TopNPopular(n_recommendations=2).fit(train).recommend(query)

    # assert
    assert finalized == [("s2", "s1")]
    assert recs["q1"] is finalized[0]


def test_empty_query_gives_empty_map(train):
    assert TopNPopular().fit(train).recommend(Dataset({})) == {}


def test_recommend_before_fit_raises(query):
    with pytest.raises(UnfittedModelError):
        TopNPopular().recommend(query)


def test_rejects_non_positive_n():
    with pytest.raises(ConfigurationError):
        TopNPopular(n_recommendations=0)


def test_repr_shows_params():
    assert repr(TopNPopular(n_recommendations=3)) == "TopNPopular(n_recommendations=3)"
