"""Wire-format lexer — varint primitives and the field Scanner.

A protobuf message on the wire is a flat sequence of fields.  Each field is

    key    varint, (tag << 3) | wire_type
    value  depends on wire_type:
             VARINT   one more varint
             FIXED64  8 raw bytes
             BYTES    varint byte count, then that many bytes
             FIXED32  4 raw bytes

Nothing in the encoding says whether a BYTES value is a string or an
embedded message.  The scanner only lexes one frame; callers decide whether
to descend.
"""

from __future__ import annotations

from typing import Iterator, List, NamedTuple, Optional, Tuple

from ._constants import (
    INT64_MAX,
    INT64_MIN,
    MAX_VARINT_LEN,
    UINT64_MAX,
    WireType,
)
from ._errors import (
    ERR_BAD_VARINT,
    ERR_SHORT_VALUE,
    ERR_WIRE_TYPE,
    ScanError,
)

Span = Tuple[int, int]


# ── Varint primitives ────────────────────────────────────────
# Little-endian base-128: low 7 bits first, high bit set on every byte
# except the last.

def read_uvarint(buf, off: int = 0) -> Tuple[int, int]:
    """Decode an unsigned varint at buf[off].  Returns (value, end offset).

    Raises ScanError(ERR_BAD_VARINT) at `off` if the varint runs past the
    end of buf or does not fit in 64 bits.
    """
    result = 0
    shift = 0
    n = len(buf)
    for i in range(MAX_VARINT_LEN):
        p = off + i
        if p >= n:
            raise ScanError(ERR_BAD_VARINT, off)
        b = buf[p]
        if b < 0x80:
            if i == MAX_VARINT_LEN - 1 and b > 1:
                raise ScanError(ERR_BAD_VARINT, off, "varint overflows 64 bits")
            return result | (b << shift), p + 1
        result |= (b & 0x7F) << shift
        shift += 7
    raise ScanError(ERR_BAD_VARINT, off, "varint overflows 64 bits")


def encode_uvarint(value: int) -> bytes:
    """Encode an unsigned 64-bit integer as a varint."""
    if value < 0 or value > UINT64_MAX:
        raise ValueError("varint value out of uint64 range: {}".format(value))
    out = bytearray()
    while value > 0x7F:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def zigzag_encode(value: int) -> int:
    """Map a signed int64 to uint64: 0, -1, 1, -2 ... → 0, 1, 2, 3 ..."""
    if value < INT64_MIN or value > INT64_MAX:
        raise ValueError("zigzag value out of int64 range: {}".format(value))
    # Python's >> is arithmetic, so value >> 63 is 0 or -1.
    return ((value << 1) ^ (value >> 63)) & UINT64_MAX


def zigzag_decode(n: int) -> int:
    return (n >> 1) ^ -(n & 1)


# ── Scanner ──────────────────────────────────────────────────

class WireField(NamedTuple):
    """One lexed field.  Spans are (start, end) offsets into the buffer."""

    tag: int
    wire_type: WireType
    span: Span        # key + length prefix + value
    value_span: Span  # value only


class Scanner:
    """Lexes the fields of one wire-format frame, one per call to next().

    next() returns True when a field was lexed and False at the exact end
    of the buffer.  Malformed input raises ScanError, which is also kept in
    `err` until the next call.  Field accessors are valid until the next
    advance.

    The scanner reads but never modifies buf.  Callers must not modify it
    while scanning either.
    """

    def __init__(self, buf) -> None:
        self._src = buf
        self.pos = 0   # start of the current field (its key)
        self.dpos = 0  # start of the current value
        self.end = 0   # end of the current field
        self.tag = 0
        self.wire_type: Optional[WireType] = None
        self.err: Optional[ScanError] = None

    def next(self) -> bool:
        self.pos = self.dpos = self.end
        self.tag, self.wire_type, self.err = 0, None, None

        if self.pos >= len(self._src):
            return False
        try:
            self._lex()
        except ScanError as exc:
            self.err = exc
            raise
        return True

    def _lex(self) -> None:
        # Cursor state is only updated once the whole field has lexed, so
        # pos <= dpos <= end holds after a failure too.
        src = self._src
        key, dpos = read_uvarint(src, self.pos)
        code = key & 7

        if code == WireType.VARINT:
            _, end = read_uvarint(src, dpos)

        elif code == WireType.FIXED64:
            if dpos + 8 > len(src):
                raise ScanError(ERR_SHORT_VALUE, dpos)
            end = dpos + 8

        elif code == WireType.BYTES:
            size, dpos = read_uvarint(src, dpos)
            if dpos + size > len(src):
                raise ScanError(ERR_SHORT_VALUE, dpos)
            end = dpos + size

        elif code == WireType.FIXED32:
            if dpos + 4 > len(src):
                raise ScanError(ERR_SHORT_VALUE, dpos)
            end = dpos + 4

        else:
            raise ScanError(ERR_WIRE_TYPE, self.pos,
                            "invalid wire type: {}".format(code))

        self.tag = key >> 3
        self.wire_type = WireType(code)
        self.dpos, self.end = dpos, end

    def field(self) -> bytes:
        """The complete current field: key, any length prefix, and value."""
        return bytes(self._src[self.pos:self.end])

    def value(self) -> bytes:
        """The current field value without key or length prefix."""
        return bytes(self._src[self.dpos:self.end])

    def field_span(self) -> Span:
        return self.pos, self.end

    def value_span(self) -> Span:
        return self.dpos, self.end

    def current(self) -> WireField:
        return WireField(self.tag, self.wire_type,
                         (self.pos, self.end), (self.dpos, self.end))

    def __iter__(self) -> Iterator[WireField]:
        while self.next():
            yield self.current()


def scan_fields(buf) -> List[WireField]:
    """Lex a whole frame.  Raises ScanError if any part of it is malformed."""
    return list(Scanner(buf))
