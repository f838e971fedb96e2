import numpy as np
import pytest

from songrec.errors import ConfigurationError
from songrec.topn import TopNAccumulator, backfill


def test_never_exceeds_capacity():
    # arrange
    top = TopNAccumulator(3)

    # act
    for i in range(10):
        top.push(f"s{i}", float(i))

    # assert
    assert len(top) == 3
    assert [e.key for e in top.drain()] == ["s9", "s8", "s7"]


def test_matches_full_sort_on_random_input():
    """Draining equals sorting everything by (score desc, key asc) and truncating."""
    rng = np.random.default_rng(7)

    for _ in range(25):
        # arrange
        capacity = int(rng.integers(1, 10))
        n_items = int(rng.integers(0, 40))
        # small integer scores so ties are frequent
        items = [(f"s{i:02d}", float(rng.integers(0, 6))) for i in range(n_items)]
        order = rng.permutation(n_items)

        # act
        top = TopNAccumulator(capacity)
        for i in order:
            top.push(*items[i])
        drained = [(e.key, e.score) for e in top.drain()]

        # assert
        expected = sorted(items, key=lambda kv: (-kv[1], kv[0]))[:capacity]
        assert drained == expected


def test_full_accumulator_replaces_only_when_strictly_better():
    # arrange
    top = TopNAccumulator(1)
    top.push("b", 1.0)

    # act
    rejected = top.push("c", 1.0)
    accepted = top.push("a", 1.0)

    # assert
    assert rejected is False
    assert accepted is True
    assert top.peek_min().key == "a"


def test_tie_break_is_independent_of_push_order():
    forward = TopNAccumulator(2)
    forward.push_many([("x", 1.0), ("y", 1.0), ("z", 1.0)])

    backward = TopNAccumulator(2)
    backward.push_many([("z", 1.0), ("y", 1.0), ("x", 1.0)])

    assert forward.drain() == backward.drain()


def test_drain_empties_accumulator():
    top = TopNAccumulator(2)
    top.push("a", 1.0)

    assert len(top.drain()) == 1
    assert len(top) == 0
    assert top.peek_min() is None


@pytest.mark.parametrize("capacity", [0, -1])
def test_rejects_invalid_capacity(capacity):
    with pytest.raises(ConfigurationError):
        TopNAccumulator(capacity)


# ── Backfill ──────────────────────────────────────────────────────────────────

def test_backfill_skips_duplicates():
    assert backfill(("s1",), 3, ["s2", "s1", "s3", "s4"]) == ("s1", "s2", "s3")


def test_backfill_stops_when_fallback_runs_out():
    assert backfill([], 5, ["a", "b"]) == ("a", "b")


def test_backfill_truncates_long_partial():
    assert backfill(["a", "b", "c"], 2, ["d"]) == ("a", "b")
