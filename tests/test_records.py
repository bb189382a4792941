# tests/test_records.py
"""
Wire compatibility with the public CIFF protobuf schema.
Expected bytes below are hand-assembled protobuf (tag = field_number << 3 | wire_type).
"""
import struct

import pytest

from ciffkit.errors import DocidError, SchemaError
from ciffkit.records import CiffIndex, DocRecord, Header, Posting, PostingsList


def test_postings_list_bytes():
    plist = PostingsList("cat", 2, 4, [Posting(0, 1), Posting(1, 3)])
    expected = (
        b"\x0a\x03cat"          # term
        b"\x10\x02"             # df
        b"\x18\x04"             # cf
        b"\x22\x02\x10\x01"     # posting {docid: 0 (default, omitted), tf: 1}
        b"\x22\x04\x08\x01\x10\x03"  # posting {docid: 1, tf: 3}
    )
    assert plist.to_bytes() == expected
    assert PostingsList.from_bytes(expected) == plist


def test_doc_record_bytes():
    rec = DocRecord(0, "d0", 2)
    expected = b"\x12\x02d0\x18\x02"
    assert rec.to_bytes() == expected
    assert DocRecord.from_bytes(expected) == rec


def test_header_bytes():
    h = Header(version=1, num_postings_lists=1, num_docs=2, total_postings_lists=1,
               total_docs=2, total_terms_in_collection=4, average_doclength=2.0,
               description="")
    expected = (
        b"\x08\x01\x10\x01\x18\x02\x20\x01\x28\x02\x30\x04"
        b"\x39" + struct.pack("<d", 2.0)
    )
    assert h.to_bytes() == expected
    assert Header.from_bytes(expected) == h


def test_header_roundtrip_with_description():
    h = Header(1, 3, 10, 3, 10, 57, 5.7, "Anserini robust04 (lucene export, ünïcode)")
    assert Header.from_bytes(h.to_bytes()) == h


def test_empty_payload_is_all_defaults():
    assert DocRecord.from_bytes(b"") == DocRecord(0, "", 0)
    assert PostingsList.from_bytes(b"") == PostingsList("", 0, 0, [])


def test_unknown_field_rejected():
    # field 9, varint
    with pytest.raises(SchemaError):
        DocRecord.from_bytes(b"\x12\x02d0\x48\x01")


def test_unknown_field_inside_posting_rejected():
    payload = b"\x0a\x01t\x10\x01\x22\x04\x10\x01\x48\x07"
    with pytest.raises(SchemaError):
        PostingsList.from_bytes(payload)


def test_invalid_utf8_rejected():
    with pytest.raises(SchemaError):
        DocRecord.from_bytes(b"\x12\x02\xff\xfe")


def test_malformed_payload_rejected():
    # term claims 5 bytes, only 2 follow
    with pytest.raises(SchemaError):
        PostingsList.from_bytes(b"\x0a\x05ab")


def test_negative_values_rejected():
    minus_one = b"\xff" * 9 + b"\x01"
    with pytest.raises(SchemaError):
        DocRecord.from_bytes(b"\x08" + minus_one)
    with pytest.raises(SchemaError):
        PostingsList.from_bytes(b"\x10" + minus_one)
    with pytest.raises(SchemaError):
        Header.from_bytes(b"\x18" + minus_one)


def test_value_wider_than_field_rejected_on_encode():
    with pytest.raises(SchemaError):
        DocRecord(2**31, "x", 1).to_bytes()
    with pytest.raises(SchemaError):
        PostingsList("t", 1, 1, [Posting(0, 2**31)]).to_bytes()


def test_doc_length_lookup():
    idx = CiffIndex(Header(), [], [DocRecord(0, "a", 5), DocRecord(1, "b", 7)])
    assert idx.doc_length(1) == 7
    with pytest.raises(DocidError):
        idx.doc_length(2)
    with pytest.raises(DocidError):
        idx.doc_length(-1)
