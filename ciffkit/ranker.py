# ciffkit/ranker.py
import math

from ciffkit.paths import B, K1


def idf(df, num_docs):
    """ln(N / df). A term with df == 0 cannot appear in a valid collection."""
    if df <= 0:
        raise ValueError(f"document frequency must be positive, got {df}")
    return math.log(num_docs / df)


def atire_bm25(tf, doclength, idf, k1=K1, b=B, avg_doclength=1.0):
    """
    ATIRE BM25 term weight:

        idf * ((k1 + 1) * tf) / (k1 * (1 - b + b * dl / avgdl) + tf)

    Pure function of its inputs; same floats in, same float out.
    """
    top = (k1 + 1.0) * tf
    return idf * (top / (k1 * (1.0 - b + b * (doclength / avg_doclength)) + tf))


class Ranker:
    """
    ATIRE BM25 scorer bound to one collection's stats.

    Requirements / assumptions:
    - num_docs is the number of documents in the collection (header.num_docs)
    - avg_doclength comes from the header, not recomputed from doc records
    - k1 controls tf saturation, b controls length normalization
    """

    __slots__ = ("num_docs", "avg_doclength", "k1", "b")

    def __init__(self, num_docs, avg_doclength, k1=K1, b=B):
        if num_docs <= 0:
            raise ValueError("num_docs must be positive; BM25 requires document stats.")
        if not math.isfinite(avg_doclength) or avg_doclength <= 0:
            raise ValueError("average document length must be positive and finite.")
        self.num_docs = num_docs
        self.avg_doclength = avg_doclength
        self.k1 = k1
        self.b = b

    def idf(self, df):
        return idf(df, self.num_docs)

    def score(self, tf, doclength, idf):
        return atire_bm25(tf, doclength, idf, self.k1, self.b, self.avg_doclength)
