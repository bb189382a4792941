# ciffkit/dump.py
"""
Human-readable text dumps of a CiffIndex.

    output.header      Key: value, one per line
    output.dict        one term per line, file order
    output.postings    term df cf (docid, tf) ... with absolute docids
    output.docRecords  docid collection_docid doclength
"""

from __future__ import annotations

import os
import sys
from typing import Iterable, Iterator, List

from ciffkit.paths import DICT_FILE, DOCRECORDS_FILE, HEADER_FILE, POSTINGS_FILE
from ciffkit.records import DocRecord, Header, PostingsList

POSTINGS_TITLE = "term df cf (docid, tf) ... (docid, tf)"
DOCRECORDS_TITLE = "docid collection_docid doclength"


def render_header(header: Header) -> Iterator[str]:
    yield f"Version: {header.version}"
    yield f"NumPostingsLists: {header.num_postings_lists}"
    yield f"NumDocs: {header.num_docs}"
    yield f"TotalPostingsLists: {header.total_postings_lists}"
    yield f"TotalDocs: {header.total_docs}"
    yield f"TotalTermsInCollection: {header.total_terms_in_collection}"
    yield f"AverageDocLength: {header.average_doclength}"
    yield f"Description: {header.description}"


def render_dictionary(postings_lists: Iterable[PostingsList]) -> Iterator[str]:
    for plist in postings_lists:
        yield plist.term


def render_postings(postings_lists: Iterable[PostingsList]) -> Iterator[str]:
    yield POSTINGS_TITLE
    yield "-" * len(POSTINGS_TITLE)
    for plist in postings_lists:
        pairs = "".join(f"({p.docid}, {p.tf}) " for p in plist.postings)
        yield f"{plist.term} {plist.df} {plist.cf} {pairs}"


def render_doc_records(doc_records: Iterable[DocRecord]) -> Iterator[str]:
    yield DOCRECORDS_TITLE
    yield "-" * len(DOCRECORDS_TITLE)
    for rec in doc_records:
        yield f"{rec.docid} {rec.collection_docid} {rec.doclength}"


def write_lines(path: str, lines: Iterable[str], verbose: bool = True) -> int:
    n = 0
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        for line in lines:
            f.write(line)
            f.write("\n")
            n += 1
    if verbose:
        print(f"[dump] wrote {n:,} lines to {path}", file=sys.stderr)
    return n


def write_header(header: Header, outdir: str, verbose: bool = True) -> str:
    path = os.path.join(outdir, HEADER_FILE)
    write_lines(path, render_header(header), verbose)
    return path


def write_dictionary(postings_lists: List[PostingsList], outdir: str, verbose: bool = True) -> str:
    path = os.path.join(outdir, DICT_FILE)
    write_lines(path, render_dictionary(postings_lists), verbose)
    return path


def write_postings(postings_lists: List[PostingsList], outdir: str, verbose: bool = True) -> str:
    path = os.path.join(outdir, POSTINGS_FILE)
    write_lines(path, render_postings(postings_lists), verbose)
    return path


def write_doc_records(doc_records: List[DocRecord], outdir: str, verbose: bool = True) -> str:
    path = os.path.join(outdir, DOCRECORDS_FILE)
    write_lines(path, render_doc_records(doc_records), verbose)
    return path
