# ciffkit/dgap.py
"""
Docid gap (d-gap) coding for CIFF postings lists.

On disk every postings list is delta-coded:
    gaps[0] = docids[0]               (first docid is absolute)
    gaps[i] = docids[i] - docids[i-1]

In memory we always work with absolute docids. The conversion is NOT
idempotent: decoding an already-absolute list silently corrupts it, so each
direction must run exactly once per frame read/written.
"""

from __future__ import annotations

from typing import List, Sequence

from ciffkit.errors import CountMismatch, OrderingError
from ciffkit.records import PostingsList


def from_gaps(gaps: Sequence[int]) -> List[int]:
    """d-gaps -> absolute docids."""
    docids: List[int] = []
    prev = 0
    for g in gaps:
        prev = prev + g
        docids.append(prev)
    return docids


def to_gaps(docids: Sequence[int]) -> List[int]:
    """
    Absolute docids -> d-gaps.
    Docids must be non-negative and strictly increasing.
    """
    gaps: List[int] = []
    prev = None
    for d in docids:
        if prev is None:
            if d < 0:
                raise OrderingError(f"negative first docid {d}")
            gaps.append(d)
        else:
            gap = d - prev
            if gap <= 0:
                raise OrderingError(f"non-increasing docids: {prev} followed by {d}")
            gaps.append(gap)
        prev = d
    return gaps


def _check_df(plist: PostingsList) -> None:
    if plist.df != len(plist.postings):
        raise CountMismatch(
            f"term '{plist.term}': df={plist.df} but {len(plist.postings)} postings"
        )


def decode_postings(plist: PostingsList) -> PostingsList:
    """
    Convert a freshly read list from d-gaps to absolute docids, in place.
    Every gap after the first must be positive; the list is left untouched
    if one is not.
    """
    _check_df(plist)
    gaps = plist.docids
    for i, g in enumerate(gaps[1:], start=1):
        if g <= 0:
            raise OrderingError(
                f"term '{plist.term}': gap {g} at posting {i}, docids must be strictly increasing"
            )
    for p, d in zip(plist.postings, from_gaps(gaps)):
        p.docid = d
    return plist


def encode_postings(plist: PostingsList) -> PostingsList:
    """
    Convert absolute docids to d-gaps, in place, right before serialization.
    The list is validated first and left untouched if it is rejected.
    """
    _check_df(plist)
    try:
        gaps = to_gaps(plist.docids)
    except OrderingError as e:
        raise OrderingError(f"term '{plist.term}': {e.message}") from e
    for p, g in zip(plist.postings, gaps):
        p.docid = g
    return plist
