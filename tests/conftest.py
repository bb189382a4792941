# tests/conftest.py
import pytest

from ciffkit.ciffio import write_index
from ciffkit.records import CiffIndex, DocRecord, Header, Posting, PostingsList


def make_index(lists, doclengths, avgdl=None):
    """
    Build a small CiffIndex with absolute docids.
      lists:      [(term, [(docid, tf), ...]), ...]
      doclengths: [len_doc0, len_doc1, ...]
    """
    postings_lists = []
    for term, pairs in lists:
        postings = [Posting(d, tf) for d, tf in pairs]
        postings_lists.append(PostingsList(term, len(postings), sum(tf for _, tf in pairs), postings))
    doc_records = [DocRecord(i, f"doc-{i}", n) for i, n in enumerate(doclengths)]
    if avgdl is None:
        avgdl = sum(doclengths) / len(doclengths) if doclengths else 0.0
    header = Header(
        version=1,
        num_postings_lists=len(postings_lists),
        num_docs=len(doc_records),
        total_postings_lists=len(postings_lists),
        total_docs=len(doc_records),
        total_terms_in_collection=sum(doclengths),
        average_doclength=avgdl,
        description="toy",
    )
    return CiffIndex(header, postings_lists, doc_records)


@pytest.fixture
def cat_index():
    """The two-document 'cat' collection: df=2, docids [0, 1], tfs [1, 3]."""
    return make_index([("cat", [(0, 1), (1, 3)])], [2, 2], avgdl=2.0)


@pytest.fixture
def toy_index():
    """Four docs, two terms; scores are not all equal."""
    return make_index(
        [
            ("cat", [(0, 1), (1, 3)]),
            ("dog", [(2, 2)]),
        ],
        [2, 2, 2, 2],
        avgdl=2.0,
    )


@pytest.fixture
def toy_ciff(tmp_path, toy_index):
    p = tmp_path / "toy.ciff"
    write_index(toy_index, str(p), verbose=False)
    return p
