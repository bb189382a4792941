# ciffkit/schema.py
"""
Protobuf message classes for the CIFF schema.

The descriptors are assembled at import time instead of shipping a protoc
generated `_pb2` module. Field numbers and types mirror the public
`CommonIndexFileFormat.proto` (package io.osirrc.ciff):

    message Header {
      int32  version = 1;
      int32  num_postings_lists = 2;
      int32  num_docs = 3;
      int32  total_postings_lists = 4;
      int32  total_docs = 5;
      int64  total_terms_in_collection = 6;
      double average_doclength = 7;
      string description = 8;
    }
    message Posting      { int32 docid = 1; int32 tf = 2; }
    message PostingsList { string term = 1; int64 df = 2; int64 cf = 3; repeated Posting postings = 4; }
    message DocRecord    { int32 docid = 1; string collection_docid = 2; int32 doclength = 3; }
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

PACKAGE = "io.osirrc.ciff"

_F = descriptor_pb2.FieldDescriptorProto

# message name -> [(field name, number, type, label, type_name)]
_MESSAGES = {
    "Header": [
        ("version", 1, _F.TYPE_INT32),
        ("num_postings_lists", 2, _F.TYPE_INT32),
        ("num_docs", 3, _F.TYPE_INT32),
        ("total_postings_lists", 4, _F.TYPE_INT32),
        ("total_docs", 5, _F.TYPE_INT32),
        ("total_terms_in_collection", 6, _F.TYPE_INT64),
        ("average_doclength", 7, _F.TYPE_DOUBLE),
        ("description", 8, _F.TYPE_STRING),
    ],
    "Posting": [
        ("docid", 1, _F.TYPE_INT32),
        ("tf", 2, _F.TYPE_INT32),
    ],
    "PostingsList": [
        ("term", 1, _F.TYPE_STRING),
        ("df", 2, _F.TYPE_INT64),
        ("cf", 3, _F.TYPE_INT64),
        ("postings", 4, _F.TYPE_MESSAGE, _F.LABEL_REPEATED, f".{PACKAGE}.Posting"),
    ],
    "DocRecord": [
        ("docid", 1, _F.TYPE_INT32),
        ("collection_docid", 2, _F.TYPE_STRING),
        ("doclength", 3, _F.TYPE_INT32),
    ],
}


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    fdp = descriptor_pb2.FileDescriptorProto(
        name="ciffkit/CommonIndexFileFormat.proto",
        package=PACKAGE,
        syntax="proto3",
    )
    for msg_name, fields in _MESSAGES.items():
        msg = fdp.message_type.add(name=msg_name)
        for spec in fields:
            name, number, ftype = spec[:3]
            label = spec[3] if len(spec) > 3 else _F.LABEL_OPTIONAL
            field = msg.field.add(name=name, number=number, type=ftype, label=label)
            if len(spec) > 4:
                field.type_name = spec[4]
    return fdp


# private pool so we never collide with another copy of the schema in the default pool
_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_build_file().SerializeToString())


def _message_class(name: str):
    return message_factory.GetMessageClass(_POOL.FindMessageTypeByName(f"{PACKAGE}.{name}"))


HeaderMessage = _message_class("Header")
PostingMessage = _message_class("Posting")
PostingsListMessage = _message_class("PostingsList")
DocRecordMessage = _message_class("DocRecord")
