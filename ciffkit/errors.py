# ciffkit/errors.py
"""
Error taxonomy for reading, transforming and writing CIFF files.

Every error carries optional location info so the command line can print a
single diagnostic that names the failing stage and the record index / byte
offset where reading stopped:

    [ciffkit] error during postings (record 41, offset 10233): ...

All of these are fatal for a run. There is no skip-and-continue mode.
"""

from __future__ import annotations

from typing import Optional


class CiffError(Exception):
    """Base class for all CIFF processing errors."""

    def __init__(self, message: str, *, stage: Optional[str] = None,
                 index: Optional[int] = None, offset: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.index = index
        self.offset = offset

    def at(self, *, stage: Optional[str] = None, index: Optional[int] = None,
           offset: Optional[int] = None) -> "CiffError":
        """Fill in location fields that are still unknown; returns self for `raise err.at(...)`."""
        if self.stage is None:
            self.stage = stage
        if self.index is None:
            self.index = index
        if self.offset is None:
            self.offset = offset
        return self

    def __str__(self) -> str:
        where = []
        if self.index is not None:
            where.append(f"record {self.index}")
        if self.offset is not None:
            where.append(f"offset {self.offset}")
        if where:
            return f"{self.message} ({', '.join(where)})"
        return self.message


class FramingError(CiffError, EOFError):
    """Truncated or malformed varint length prefix, or a short payload read."""


class SchemaError(CiffError, ValueError):
    """Payload does not decode against the expected record schema."""


class CountMismatch(CiffError, ValueError):
    """A declared count disagrees with the number of records actually present."""


class OrderingError(CiffError, ValueError):
    """Postings are not sorted by strictly ascending docid."""


class DocidError(CiffError, IndexError):
    """A posting references a docid that has no doc record."""


class DegenerateRangeWarning(UserWarning):
    """Every posting produced the same score; the quantization range has zero width."""
