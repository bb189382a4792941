# ciffkit/msgio.py
"""
Varint length-delimited message framing.

A CIFF file is a plain concatenation of frames:

    [varint len][payload bytes] [varint len][payload bytes] ...

The length prefix is an unsigned LEB128 varint, the same encoding protobuf
uses for length-delimited fields (`writeDelimitedTo` / `parseDelimitedFrom`
in the Java runtime):

  - 7 payload bits per byte, least-significant group first
  - MSB (0x80) set on every byte *except* the last one
  - at most 10 bytes for a 64-bit value

Readers never read past the declared payload, so the next frame on the stream
stays intact.
"""

from __future__ import annotations

from typing import BinaryIO, Iterator, List, Optional, Tuple

from ciffkit.errors import FramingError

MAX_VARINT_BYTES = 10  # ceil(64 / 7)
_U64_MAX = (1 << 64) - 1
_READ_CHUNK = 1 << 20


def encode_varint(x: int) -> bytes:
    """Encode a non-negative integer (< 2**64) as an unsigned LEB128 varint."""
    if x < 0:
        raise ValueError(f"varint must be non-negative, got {x}")
    if x > _U64_MAX:
        raise ValueError(f"varint does not fit in 64 bits: {x}")
    out = bytearray()
    while True:
        byte = x & 0x7F
        x >>= 7
        if x:
            out.append(byte | 0x80)  # more bytes follow
        else:
            out.append(byte)
            return bytes(out)


def decode_varint(data: bytes, pos: int = 0) -> Tuple[int, int]:
    """
    Decode one varint from `data` starting at `pos`.
    Returns (value, next_pos). Raises FramingError if the buffer ends mid-varint.
    """
    result = 0
    shift = 0
    for i in range(pos, min(len(data), pos + MAX_VARINT_BYTES)):
        b = data[i]
        result |= (b & 0x7F) << shift
        if not b & 0x80:
            if result > _U64_MAX:
                raise FramingError(f"varint overflows 64 bits at byte {pos}", offset=pos)
            return result, i + 1
        shift += 7
    if len(data) - pos >= MAX_VARINT_BYTES:
        raise FramingError(f"varint longer than {MAX_VARINT_BYTES} bytes", offset=pos)
    raise FramingError("buffer ends inside a varint", offset=pos)


def read_varint(stream: BinaryIO) -> Optional[Tuple[int, int]]:
    """
    Read one varint from a binary stream, one byte at a time.

    Returns (value, nbytes) or None if the stream is already at EOF.
    Raises FramingError on EOF in the middle of the varint.
    """
    result = 0
    shift = 0
    for i in range(MAX_VARINT_BYTES):
        b = stream.read(1)
        if not b:
            if i == 0:
                return None  # clean EOF on a frame boundary
            raise FramingError("stream ends inside a varint length prefix")
        byte = b[0]
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            if result > _U64_MAX:
                raise FramingError("varint length prefix overflows 64 bits")
            return result, i + 1
        shift += 7
    raise FramingError(f"varint length prefix longer than {MAX_VARINT_BYTES} bytes")


def _read_exact(stream: BinaryIO, n: int) -> bytes:
    # raw streams may return short reads before EOF; read in bounded chunks
    chunks: List[bytes] = []
    remaining = n
    while remaining > 0:
        chunk = stream.read(min(remaining, _READ_CHUNK))
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def read_message(stream: BinaryIO) -> Optional[bytes]:
    """
    Read one length-delimited payload.
    Returns None at a clean EOF between frames.
    """
    return MessageReader(stream).read()


def write_message(stream: BinaryIO, payload: bytes) -> int:
    """Write varint(len(payload)) followed by payload. Returns bytes written."""
    prefix = encode_varint(len(payload))
    stream.write(prefix)
    stream.write(payload)
    return len(prefix) + len(payload)


class MessageReader:
    """
    Iterate payloads from a framed stream.

    Tracks:
      - offset: byte offset where the *next* frame starts
      - count:  number of frames read so far
    FramingErrors raised while iterating are tagged with the byte offset of the
    frame that failed; callers add the record index.
    """

    __slots__ = ("stream", "offset", "count")

    def __init__(self, stream: BinaryIO, offset: int = 0):
        self.stream = stream
        self.offset = offset
        self.count = 0

    def read(self) -> Optional[bytes]:
        start = self.offset
        try:
            hit = read_varint(self.stream)
            if hit is None:
                return None
            size, nbytes = hit
            payload = _read_exact(self.stream, size)
        except FramingError as e:
            raise e.at(offset=start)
        if len(payload) != size:
            raise FramingError(
                f"truncated message: declared {size} bytes, got {len(payload)}",
                offset=start,
            )
        self.offset = start + nbytes + size
        self.count += 1
        return payload

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        payload = self.read()
        if payload is None:
            raise StopIteration
        return payload


class MessageWriter:
    """Write framed payloads; tracks the running byte offset and frame count."""

    __slots__ = ("stream", "offset", "count")

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.offset = 0
        self.count = 0

    def write(self, payload: bytes) -> int:
        n = write_message(self.stream, payload)
        self.offset += n
        self.count += 1
        return n
