"""Encoder — a forward builder for wire-format messages.

Each add_* method appends one field.  By default a field whose value is the
zero value of its type (False, 0, 0.0, b"", an empty message) is omitted,
matching what generated protobuf code emits for proto3 scalars.  Set
keep_zeroes=True to emit them anyway.

    enc = Encoder()
    enc.add_uint64(1, 42)
    enc.add_message(2, lambda m: m.add_bytes(1, b"leaf"))
    with enc.message(3) as m:
        m.add_int64(1, -5)
    data = enc.encoding()
"""

from __future__ import annotations

import struct
from typing import Any, BinaryIO, Callable, Optional

from ._constants import (
    INT64_MAX,
    INT64_MIN,
    MAX_TAG,
    UINT64_MAX,
    WireType,
)
from ._errors import ERR_NO_PARENT, ERR_RANGE, EncoderError
from ._scanner import encode_uvarint, zigzag_encode


class Encoder:
    """Accumulates fields into a byte buffer until written out or reset."""

    def __init__(self, keep_zeroes: bool = False) -> None:
        self._buf = bytearray()
        self.keep_zeroes = keep_zeroes

    # ── Scalars ──────────────────────────────────────────────

    def add_bool(self, tag: int, value: bool) -> None:
        """Boolean field (varint 0 or 1)."""
        if value:
            self._write_field(WireType.VARINT, tag, b"\x01")
        elif self.keep_zeroes:
            self._write_field(WireType.VARINT, tag, b"\x00")

    def add_uint64(self, tag: int, value: int) -> None:
        """Unsigned integer field (plain varint)."""
        if value < 0 or value > UINT64_MAX:
            raise EncoderError(ERR_RANGE, "uint64 out of range: {}".format(value))
        if value != 0 or self.keep_zeroes:
            self._write_varint_field(tag, value)

    def add_int64(self, tag: int, value: int) -> None:
        """Signed integer field (zigzag varint, as sint64)."""
        if value < INT64_MIN or value > INT64_MAX:
            raise EncoderError(ERR_RANGE, "int64 out of range: {}".format(value))
        if value != 0 or self.keep_zeroes:
            self._write_varint_field(tag, zigzag_encode(value))

    def add_float32(self, tag: int, value: float) -> None:
        """Single-precision field (fixed32, little-endian IEEE-754 bits)."""
        if value != 0 or self.keep_zeroes:
            try:
                data = struct.pack("<f", value)
            except OverflowError:
                raise EncoderError(ERR_RANGE, "float32 out of range: {}".format(value))
            self._write_field(WireType.FIXED32, tag, data)

    def add_float64(self, tag: int, value: float) -> None:
        """Double-precision field (fixed64, little-endian IEEE-754 bits)."""
        if value != 0 or self.keep_zeroes:
            self._write_field(WireType.FIXED64, tag, struct.pack("<d", value))

    def add_bytes(self, tag: int, value: bytes) -> None:
        """Arbitrary byte string field (length-delimited)."""
        if len(value) != 0 or self.keep_zeroes:
            self._write_bytes_field(tag, value)

    # ── Messages ─────────────────────────────────────────────

    def add_message(self, tag: int, fill: Callable[["Encoder"], Any]) -> None:
        """Call fill with an empty encoder for a message field with the given
        tag.  When fill returns, its encoding is added as a field.
        """
        child = Encoder(keep_zeroes=self.keep_zeroes)
        fill(child)
        if len(child._buf) != 0 or self.keep_zeroes:
            self._write_bytes_field(tag, child._buf)

    def message(self, tag: int) -> "Message":
        """Start a submessage for tag.  Finish it with Message.done(), or use
        it as a context manager.
        """
        return Message(tag, parent=self)

    # ── Output ───────────────────────────────────────────────

    def write_to(self, sink: BinaryIO) -> int:
        """Write the encoding to sink and reset.  Returns the byte count."""
        n = len(self._buf)
        sink.write(bytes(self._buf))
        self._buf.clear()
        return n

    def reset(self) -> None:
        """Discard everything written so far."""
        self._buf.clear()

    def encoding(self) -> bytes:
        """Current encoded bytes.  The encoder keeps its contents."""
        return bytes(self._buf)

    def __len__(self) -> int:
        return len(self._buf)

    # ── Field writers ────────────────────────────────────────

    def _write_key(self, wire_type: int, tag: int) -> None:
        if tag < 0 or tag > MAX_TAG:
            raise EncoderError(ERR_RANGE, "tag out of range: {}".format(tag))
        self._buf += encode_uvarint((tag << 3) | wire_type)

    def _write_field(self, wire_type: int, tag: int, data: bytes) -> None:
        self._write_key(wire_type, tag)
        self._buf += data

    def _write_bytes_field(self, tag: int, data) -> None:
        self._write_key(WireType.BYTES, tag)
        self._buf += encode_uvarint(len(data))
        self._buf += data

    def _write_varint_field(self, tag: int, value: int) -> None:
        self._write_key(WireType.VARINT, tag)
        self._buf += encode_uvarint(value)


class Message(Encoder):
    """An Encoder for one submessage of a parent encoder.

    done() adds the accumulated fields to the parent as a length-delimited
    field, under the same zero-value rule as Encoder.add_message.  A Message
    can be finished once; finishing it again, or finishing one created
    without a parent, raises EncoderError.
    """

    def __init__(self, tag: int, parent: Optional[Encoder] = None) -> None:
        super().__init__(keep_zeroes=parent.keep_zeroes if parent else False)
        self.tag = tag
        self.parent = parent

    def done(self) -> None:
        if self.parent is None:
            raise EncoderError(ERR_NO_PARENT, "message has no parent field")
        # An empty submessage is a zero value: written only when the parent
        # keeps zeroes, same as add_message.
        if len(self._buf) != 0 or self.parent.keep_zeroes:
            self.parent._write_bytes_field(self.tag, self._buf)
        self.parent = None

    def __enter__(self) -> "Message":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # An exception inside the block abandons the submessage.
        if exc_type is None:
            self.done()
