# ciffkit/ciffio.py
"""
Read and write whole CIFF files.

File layout (a flat concatenation of varint-framed protobuf messages):

    Header
    PostingsList  x header.num_postings_lists   (docids as d-gaps)
    DocRecord     x header.num_docs

read_index() materializes the full collection with *absolute* docids.
write_index() delta-codes a copy of every postings list on the way out, so
the caller's CiffIndex is still absolute afterwards.

Every error raised here is tagged with the stage ("header", "postings",
"docrecords"), the record index within that stage and the byte offset of
the frame, so the CLI can say exactly where a file went bad.
"""

from __future__ import annotations

import os
import sys
from contextlib import contextmanager
from typing import BinaryIO, Union

from ciffkit.dgap import decode_postings, encode_postings
from ciffkit.errors import CiffError, CountMismatch, SchemaError
from ciffkit.msgio import MessageReader, MessageWriter
from ciffkit.paths import PROGRESS_STEPS
from ciffkit.records import CiffIndex, DocRecord, Header, Posting, PostingsList

Source = Union[str, "os.PathLike[str]", BinaryIO]


@contextmanager
def _open_source(source: Source):
    if isinstance(source, (str, os.PathLike)):
        with open(source, "rb", buffering=1024 * 1024) as f:
            yield f
    else:
        yield source


def _read_record(reader: MessageReader, cls, stage: str, index: int, declared: int):
    start = reader.offset
    try:
        payload = reader.read()
        if payload is None:
            raise CountMismatch(
                f"stream ends after {index} of {declared} expected {stage} records",
                offset=start,
            )
        return cls.from_bytes(payload)
    except CiffError as e:
        raise e.at(stage=stage, index=index, offset=start)


def _progress_step(total: int) -> int:
    return max(1, total // PROGRESS_STEPS)


def read_index(source: Source, verbose: bool = True) -> CiffIndex:
    """
    Read a complete CIFF file into memory.

    Raises:
        FramingError   truncated / malformed frame
        SchemaError    payload does not match the CIFF schema, or a doc record
                       is out of docid order
        CountMismatch  header counts or a list's df disagree with the data
        OrderingError  a postings list has a zero or negative d-gap
    """
    with _open_source(source) as f:
        reader = MessageReader(f)

        if verbose:
            print("[reader] reading header", file=sys.stderr)
        header = _read_record(reader, Header, "header", 0, 1)

        n_lists = header.num_postings_lists
        if verbose:
            print(f"[reader] reading {n_lists:,} postings lists", file=sys.stderr)
        step = _progress_step(n_lists)
        postings_lists = []
        for i in range(n_lists):
            if verbose and i % step == 0:
                print(f"[reader] postings list {i:,}/{n_lists:,}", file=sys.stderr)
            start = reader.offset
            plist = _read_record(reader, PostingsList, "postings", i, n_lists)
            try:
                decode_postings(plist)
            except CiffError as e:
                raise e.at(stage="postings", index=i, offset=start)
            postings_lists.append(plist)

        if verbose:
            print(f"[reader] reading {header.num_docs:,} doc records", file=sys.stderr)
        doc_records = []
        for i in range(header.num_docs):
            start = reader.offset
            rec = _read_record(reader, DocRecord, "docrecords", i, header.num_docs)
            # lookups are positional, so record i must describe docid i
            if rec.docid != i:
                raise SchemaError(
                    f"doc record at position {i} has docid {rec.docid}",
                    stage="docrecords", index=i, offset=start,
                )
            doc_records.append(rec)

        start = reader.offset
        if reader.read() is not None:
            raise CountMismatch(
                f"unexpected data after the {header.num_docs} declared doc records",
                stage="docrecords", index=header.num_docs, offset=start,
            )

    if verbose:
        print(f"[reader] DONE  lists={n_lists:,}  docs={header.num_docs:,}  bytes={reader.offset:,}",
              file=sys.stderr)
    return CiffIndex(header=header, postings_lists=postings_lists, doc_records=doc_records)


def _check_counts(index: CiffIndex) -> None:
    h = index.header
    if h.num_postings_lists != len(index.postings_lists):
        raise CountMismatch(
            f"header declares {h.num_postings_lists} postings lists, index holds {len(index.postings_lists)}",
            stage="write",
        )
    if h.num_docs != len(index.doc_records):
        raise CountMismatch(
            f"header declares {h.num_docs} doc records, index holds {len(index.doc_records)}",
            stage="write",
        )


def _write_stream(index: CiffIndex, f: BinaryIO, verbose: bool) -> int:
    writer = MessageWriter(f)
    writer.write(index.header.to_bytes())

    n_lists = len(index.postings_lists)
    step = _progress_step(n_lists)
    for i, plist in enumerate(index.postings_lists):
        if verbose and i % step == 0:
            print(f"[writer] postings list {i:,}/{n_lists:,}", file=sys.stderr)
        out = PostingsList(plist.term, plist.df, plist.cf,
                           [Posting(p.docid, p.tf) for p in plist.postings])
        try:
            writer.write(encode_postings(out).to_bytes())
        except CiffError as e:
            raise e.at(stage="postings", index=i, offset=writer.offset)

    for i, rec in enumerate(index.doc_records):
        try:
            writer.write(rec.to_bytes())
        except CiffError as e:
            raise e.at(stage="docrecords", index=i, offset=writer.offset)
    return writer.offset


def write_index(index: CiffIndex, target: Source, verbose: bool = True) -> int:
    """
    Serialize a CiffIndex (absolute docids) as a CIFF file. Returns bytes written.

    A path target is written to `<path>.tmp` and renamed into place only after
    the last record is out, so a failed write never leaves a partial file.
    """
    _check_counts(index)
    if not isinstance(target, (str, os.PathLike)):
        return _write_stream(index, target, verbose)

    path = os.fspath(target)
    tmp = path + ".tmp"
    try:
        with open(tmp, "wb", buffering=1024 * 1024) as f:
            size = _write_stream(index, f, verbose)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise
    if verbose:
        print(f"[writer] wrote {size:,} bytes to {path}", file=sys.stderr)
    return size
