# tests/test_ranker.py
import math

import pytest

from ciffkit.ranker import Ranker, atire_bm25, idf


def test_idf_values():
    assert idf(2, 4) == pytest.approx(math.log(2))
    assert idf(4, 4) == 0.0


def test_idf_rejects_zero_df():
    with pytest.raises(ValueError):
        idf(0, 10)


def test_atire_bm25_formula():
    k1, b, avgdl = 0.9, 0.4, 2.0
    w = math.log(2)
    # doclength == avgdl -> length norm is 1
    assert atire_bm25(1, 2, w, k1, b, avgdl) == pytest.approx(w * 1.9 / 1.9)
    assert atire_bm25(3, 2, w, k1, b, avgdl) == pytest.approx(w * 5.7 / 3.9)
    # longer doc scores lower for the same tf
    assert atire_bm25(3, 10, w, k1, b, avgdl) < atire_bm25(3, 2, w, k1, b, avgdl)


def test_score_is_deterministic():
    r = Ranker(num_docs=1000, avg_doclength=57.3)
    w = r.idf(17)
    a = [r.score(tf, dl, w) for tf, dl in [(1, 20), (4, 80), (9, 57)]]
    b = [r.score(tf, dl, w) for tf, dl in [(1, 20), (4, 80), (9, 57)]]
    assert a == b


def test_score_monotonic_in_tf():
    r = Ranker(num_docs=100, avg_doclength=10.0, k1=0.9, b=0.4)
    w = r.idf(5)
    scores = [r.score(tf, 10, w) for tf in range(1, 50)]
    assert scores == sorted(scores)
    # saturation: never exceeds idf * (k1 + 1)
    assert max(scores) < w * 1.9


def test_ranker_rejects_empty_collection():
    with pytest.raises(ValueError):
        Ranker(num_docs=0, avg_doclength=1.0)
    with pytest.raises(ValueError):
        Ranker(num_docs=5, avg_doclength=0.0)


def test_ranker_rejects_non_finite_avgdl():
    with pytest.raises(ValueError):
        Ranker(num_docs=5, avg_doclength=float("nan"))
    with pytest.raises(ValueError):
        Ranker(num_docs=5, avg_doclength=float("inf"))
