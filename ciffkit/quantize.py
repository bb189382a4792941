# ciffkit/quantize.py
"""
Uniform quantization of BM25 impact scores.

Rewrites every posting's tf with an integer impact so a downstream engine can
do impact-ordered retrieval without floating point scoring.

Two passes over the whole collection:
  1) range discovery: score every posting, keep the global min / max
  2) quantization:    re-score every posting and map it linearly into
                      `bits` bits using that global range

The range is global, so it cannot be computed one list at a time. It lives
in an explicit ScoreRange that is created per call and returned to the
caller; nothing is kept at module level between calls.
"""

from __future__ import annotations

import math
import sys
import warnings
from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple

from ciffkit.errors import DegenerateRangeWarning, SchemaError
from ciffkit.paths import B, BITS, EPSILON, K1, ROUNDING
from ciffkit.ranker import Ranker
from ciffkit.records import CiffIndex, Posting

ROUNDINGS = ("floor", "round")


@dataclass(frozen=True)
class QuantizationPolicy:
    """
    How scores map onto integers.

    reserve_zero=True  -> scale = 2**bits - 2, offset = 1, impacts start at 1
                          (0 stays free to mean "no posting")
    reserve_zero=False -> scale = 2**bits,     offset = 0, full [0, 2**bits)

    epsilon is added to the range width in the denominator. With reserve_zero
    and epsilon=0 the top scoring posting lands exactly on 2**bits - 1; any
    epsilon > 0 pulls it one step below. The full range clamps the top score
    to 2**bits - 1.

    rounding="floor" truncates the scaled score, rounding="round" rounds it
    half up. Both are clamped the same way.
    """
    bits: int = BITS
    reserve_zero: bool = True
    epsilon: float = EPSILON
    rounding: str = ROUNDING

    def __post_init__(self):
        if not 2 <= self.bits <= 31:
            raise ValueError(f"bits must be in [2, 31], got {self.bits}")
        if self.epsilon < 0 or not math.isfinite(self.epsilon):
            raise ValueError(f"epsilon must be a finite value >= 0, got {self.epsilon}")
        if self.rounding not in ROUNDINGS:
            raise ValueError(f"rounding must be one of {ROUNDINGS}, got {self.rounding!r}")

    @property
    def scale(self) -> int:
        return (1 << self.bits) - 2 if self.reserve_zero else (1 << self.bits)

    @property
    def offset(self) -> int:
        return 1 if self.reserve_zero else 0

    @property
    def upper(self) -> int:
        """Largest value ever emitted."""
        return (1 << self.bits) - 1


class ScoreRange:
    """Running min / max over observed scores. Merging two ranges is associative."""

    __slots__ = ("smallest", "largest", "count")

    def __init__(self):
        self.smallest = sys.float_info.max
        self.largest = -math.inf
        self.count = 0

    def observe(self, score: float) -> None:
        if not math.isfinite(score):
            raise ValueError(f"cannot observe non-finite score {score!r}")
        if score < self.smallest:
            self.smallest = score
        if score > self.largest:
            self.largest = score
        self.count += 1

    def merge(self, other: "ScoreRange") -> "ScoreRange":
        out = ScoreRange()
        out.smallest = min(self.smallest, other.smallest)
        out.largest = max(self.largest, other.largest)
        out.count = self.count + other.count
        return out

    @property
    def width(self) -> float:
        if self.count == 0:
            return 0.0
        return self.largest - self.smallest

    @property
    def is_degenerate(self) -> bool:
        return self.width == 0.0

    def __repr__(self):
        return f"ScoreRange(smallest={self.smallest!r}, largest={self.largest!r}, count={self.count})"


def quantize_score(score: float, score_range: ScoreRange, policy: QuantizationPolicy) -> int:
    """
    offset + floor(scale * (score - smallest) / (width + epsilon)), clamped to
    [offset, upper]. With policy.rounding == "round" the scaled value is
    rounded half up instead of floored. A zero-width range maps everything
    to `offset`.
    """
    denom = score_range.width + policy.epsilon
    if score_range.count == 0 or denom <= 0.0:
        return policy.offset
    x = policy.scale * ((score - score_range.smallest) / denom)
    if policy.rounding == "round":
        x += 0.5
    q = policy.offset + math.floor(x)
    if q < policy.offset:
        return policy.offset
    if q > policy.upper:
        return policy.upper
    return q


def iter_scores(index: CiffIndex, ranker: Ranker) -> Iterator[Tuple[Posting, float]]:
    """Yield (posting, bm25 score) for every posting in the collection."""
    for plist in index.postings_lists:
        if not plist.postings:
            continue
        w = ranker.idf(plist.df)
        for p in plist.postings:
            yield p, ranker.score(p.tf, index.doc_length(p.docid), w)


def score_range(scored: Iterable[Tuple[Posting, float]]) -> ScoreRange:
    """Pass 1: global min / max over (posting, score) pairs."""
    rng = ScoreRange()
    for p, s in scored:
        if not math.isfinite(s):
            raise SchemaError(f"BM25 score for docid {p.docid} is {s!r}; collection stats are unusable")
        rng.observe(s)
    return rng


def quantize_index(index: CiffIndex, k1: float = K1, b: float = B,
                   policy: QuantizationPolicy = QuantizationPolicy()) -> ScoreRange:
    """
    Replace each posting's tf with its quantized BM25 impact, in place.
    Returns the ScoreRange found in pass 1.
    """
    if index.num_postings == 0:
        return ScoreRange()
    h = index.header
    if h.num_docs <= 0 or not math.isfinite(h.average_doclength) or h.average_doclength <= 0:
        raise SchemaError(
            f"cannot score postings: header has num_docs={h.num_docs}, "
            f"average_doclength={h.average_doclength}"
        )
    ranker = Ranker(h.num_docs, h.average_doclength, k1=k1, b=b)

    rng = score_range(iter_scores(index, ranker))
    if rng.count and rng.is_degenerate:
        warnings.warn(
            f"all {rng.count} postings score {rng.smallest!r}; every impact becomes {policy.offset}",
            DegenerateRangeWarning,
            stacklevel=2,
        )

    # pass 2: scores are recomputed, not cached from pass 1
    for p, s in iter_scores(index, ranker):
        p.tf = quantize_score(s, rng, policy)
    return rng
