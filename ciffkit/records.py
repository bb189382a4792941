# ciffkit/records.py
"""
In-memory CIFF records and their protobuf wire mapping.

    Header        collection-level counts and stats (first frame of a file)
    PostingsList  one term: df, cf and its postings [(docid, tf), ...]
    DocRecord     docid -> (collection_docid, doclength)
    CiffIndex     the whole collection, owned by whichever pipeline stage holds it

Docids inside a PostingsList are d-gaps right after `from_bytes()` and must be
converted with `ciffkit.dgap.decode_postings()` before use. `ciffkit.ciffio`
does that for you.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from google.protobuf.message import DecodeError

from ciffkit.errors import DocidError, SchemaError
from ciffkit.schema import DocRecordMessage, HeaderMessage, PostingMessage, PostingsListMessage


def _parse(message_cls, payload: bytes, kind: str):
    msg = message_cls()
    try:
        msg.ParseFromString(payload)
    except (DecodeError, UnicodeDecodeError) as e:
        raise SchemaError(f"{kind}: {e}") from e
    # unknown fields survive a parse; discarding them must not change the serialized size
    size = len(msg.SerializeToString())
    msg.DiscardUnknownFields()
    if len(msg.SerializeToString()) != size:
        raise SchemaError(f"{kind}: payload carries unrecognized field tags")
    return msg


def _serialize(build, kind: str) -> bytes:
    try:
        return build().SerializeToString()
    except (ValueError, TypeError) as e:
        # protobuf rejects ints that do not fit the declared int32/int64 field
        raise SchemaError(f"{kind}: {e}") from e


def _check_non_negative(kind: str, **values) -> None:
    for name, v in values.items():
        if v < 0:
            raise SchemaError(f"{kind}: field '{name}' must be non-negative, got {v}")


@dataclass
class Header:
    version: int = 1
    num_postings_lists: int = 0
    num_docs: int = 0
    total_postings_lists: int = 0
    total_docs: int = 0
    total_terms_in_collection: int = 0
    average_doclength: float = 0.0
    description: str = ""

    @classmethod
    def from_bytes(cls, payload: bytes) -> "Header":
        m = _parse(HeaderMessage, payload, "Header")
        _check_non_negative(
            "Header",
            num_postings_lists=m.num_postings_lists,
            num_docs=m.num_docs,
            total_postings_lists=m.total_postings_lists,
            total_docs=m.total_docs,
            total_terms_in_collection=m.total_terms_in_collection,
        )
        return cls(
            version=m.version,
            num_postings_lists=m.num_postings_lists,
            num_docs=m.num_docs,
            total_postings_lists=m.total_postings_lists,
            total_docs=m.total_docs,
            total_terms_in_collection=m.total_terms_in_collection,
            average_doclength=m.average_doclength,
            description=m.description,
        )

    def to_bytes(self) -> bytes:
        return _serialize(lambda: HeaderMessage(
            version=self.version,
            num_postings_lists=self.num_postings_lists,
            num_docs=self.num_docs,
            total_postings_lists=self.total_postings_lists,
            total_docs=self.total_docs,
            total_terms_in_collection=self.total_terms_in_collection,
            average_doclength=self.average_doclength,
            description=self.description,
        ), "Header")


@dataclass
class Posting:
    docid: int
    tf: int


@dataclass
class PostingsList:
    term: str
    df: int
    cf: int
    postings: List[Posting] = field(default_factory=list)

    @classmethod
    def from_bytes(cls, payload: bytes) -> "PostingsList":
        m = _parse(PostingsListMessage, payload, "PostingsList")
        _check_non_negative("PostingsList", df=m.df, cf=m.cf)
        postings = []
        for p in m.postings:
            if p.docid < 0 or p.tf < 0:
                raise SchemaError(
                    f"PostingsList '{m.term}': negative posting ({p.docid}, {p.tf})"
                )
            postings.append(Posting(p.docid, p.tf))
        return cls(term=m.term, df=m.df, cf=m.cf, postings=postings)

    def to_bytes(self) -> bytes:
        return _serialize(lambda: PostingsListMessage(
            term=self.term,
            df=self.df,
            cf=self.cf,
            postings=[PostingMessage(docid=p.docid, tf=p.tf) for p in self.postings],
        ), "PostingsList")

    @property
    def docids(self) -> List[int]:
        return [p.docid for p in self.postings]

    @property
    def tfs(self) -> List[int]:
        return [p.tf for p in self.postings]


@dataclass
class DocRecord:
    docid: int
    collection_docid: str
    doclength: int

    @classmethod
    def from_bytes(cls, payload: bytes) -> "DocRecord":
        m = _parse(DocRecordMessage, payload, "DocRecord")
        _check_non_negative("DocRecord", docid=m.docid, doclength=m.doclength)
        return cls(docid=m.docid, collection_docid=m.collection_docid, doclength=m.doclength)

    def to_bytes(self) -> bytes:
        return _serialize(lambda: DocRecordMessage(
            docid=self.docid,
            collection_docid=self.collection_docid,
            doclength=self.doclength,
        ), "DocRecord")


@dataclass
class CiffIndex:
    """
    A fully materialized collection. Postings hold *absolute* docids.

    doc_records is positional: doc_records[d] describes docid d.
    """
    header: Header
    postings_lists: List[PostingsList] = field(default_factory=list)
    doc_records: List[DocRecord] = field(default_factory=list)

    def doc_length(self, docid: int) -> int:
        if docid < 0 or docid >= len(self.doc_records):
            raise DocidError(
                f"posting references docid {docid}, but only {len(self.doc_records)} doc records exist"
            )
        return self.doc_records[docid].doclength

    @property
    def num_postings(self) -> int:
        return sum(len(pl.postings) for pl in self.postings_lists)
