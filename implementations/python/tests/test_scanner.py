"""Tests for the wire-format lexer and the varint/zigzag primitives."""

from __future__ import annotations

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from wirecanon import (
    ERR_BAD_VARINT,
    ERR_SHORT_VALUE,
    ERR_WIRE_TYPE,
    ScanError,
    Scanner,
    WireField,
    WireType,
    encode_uvarint,
    read_uvarint,
    scan_fields,
    zigzag_decode,
    zigzag_encode,
)


# ── Varints ───────────────────────────────────────────────────

class TestVarint(unittest.TestCase):
    CASES = [
        (0, b"\x00"),
        (1, b"\x01"),
        (127, b"\x7f"),
        (128, b"\x80\x01"),
        (300, b"\xac\x02"),
        (2**64 - 1, b"\xff" * 9 + b"\x01"),
    ]

    def test_encode(self):
        for value, wire in self.CASES:
            with self.subTest(value=value):
                self.assertEqual(encode_uvarint(value), wire)

    def test_decode(self):
        for value, wire in self.CASES:
            with self.subTest(value=value):
                self.assertEqual(read_uvarint(wire), (value, len(wire)))

    def test_decode_at_offset(self):
        self.assertEqual(read_uvarint(b"\x00\x00\xac\x02\x00", 2), (300, 4))

    def test_encode_out_of_range(self):
        for value in [-1, 2**64]:
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    encode_uvarint(value)

    def test_unterminated(self):
        with self.assertRaises(ScanError) as ctx:
            read_uvarint(b"\x08\x80\x80", 1)
        self.assertEqual(ctx.exception.code, ERR_BAD_VARINT)
        self.assertEqual(ctx.exception.offset, 1)

    def test_overflow_tenth_byte(self):
        with self.assertRaises(ScanError) as ctx:
            read_uvarint(b"\xff" * 9 + b"\x02")
        self.assertEqual(ctx.exception.code, ERR_BAD_VARINT)

    def test_overflow_eleven_bytes(self):
        with self.assertRaises(ScanError) as ctx:
            read_uvarint(b"\x80" * 10 + b"\x00")
        self.assertEqual(ctx.exception.code, ERR_BAD_VARINT)

    def test_non_minimal_accepted(self):
        """Padded varints are valid on the wire; they decode to the same value."""
        self.assertEqual(read_uvarint(b"\x81\x00"), (1, 2))


class TestZigzag(unittest.TestCase):
    PAIRS = [(0, 0), (-1, 1), (1, 2), (-2, 3), (2, 4), (100, 200),
             (2**63 - 1, 2**64 - 2), (-(2**63), 2**64 - 1)]

    def test_encode(self):
        for signed, unsigned in self.PAIRS:
            with self.subTest(signed=signed):
                self.assertEqual(zigzag_encode(signed), unsigned)

    def test_decode(self):
        for signed, unsigned in self.PAIRS:
            with self.subTest(unsigned=unsigned):
                self.assertEqual(zigzag_decode(unsigned), signed)

    def test_out_of_range(self):
        with self.assertRaises(ValueError):
            zigzag_encode(2**63)


# ── Scanner ───────────────────────────────────────────────────

class TestScanner(unittest.TestCase):
    MSG = (b"\x08\x96\x01"                          # tag 1 varint 150
           b"\x11" + b"\x01" * 8 +                   # tag 2 fixed64
           b"\x1a\x03abc"                            # tag 3 bytes
           b"\x25\x00\x00\x80\x3f")                  # tag 4 fixed32

    def test_fields(self):
        fields = scan_fields(self.MSG)
        self.assertEqual(fields, [
            WireField(1, WireType.VARINT, (0, 3), (1, 3)),
            WireField(2, WireType.FIXED64, (3, 12), (4, 12)),
            WireField(3, WireType.BYTES, (12, 17), (14, 17)),
            WireField(4, WireType.FIXED32, (17, 22), (18, 22)),
        ])

    def test_spans_partition_frame(self):
        fields = scan_fields(self.MSG)
        self.assertEqual(b"".join(self.MSG[f.span[0]:f.span[1]] for f in fields),
                         self.MSG)

    def test_accessors(self):
        s = Scanner(self.MSG)
        self.assertTrue(s.next())
        self.assertEqual(s.tag, 1)
        self.assertEqual(s.wire_type, WireType.VARINT)
        self.assertEqual(s.field(), b"\x08\x96\x01")
        self.assertEqual(s.value(), b"\x96\x01")
        self.assertTrue(s.next())
        self.assertTrue(s.next())
        self.assertEqual(s.value(), b"abc")
        self.assertEqual(s.field_span(), (12, 17))
        self.assertEqual(s.value_span(), (14, 17))
        self.assertTrue(s.next())
        self.assertFalse(s.next())
        self.assertIsNone(s.err)

    def test_empty_is_clean_end(self):
        s = Scanner(b"")
        self.assertFalse(s.next())
        self.assertIsNone(s.err)

    def test_memoryview_input(self):
        view = memoryview(self.MSG)[12:17]
        self.assertEqual(scan_fields(view), [WireField(3, WireType.BYTES, (0, 5), (2, 5))])

    def test_empty_bytes_field(self):
        self.assertEqual(scan_fields(b"\x0a\x00"),
                         [WireField(1, WireType.BYTES, (0, 2), (2, 2))])

    def test_tag_zero_allowed(self):
        """The scanner lexes; it does not validate field numbers."""
        self.assertEqual(scan_fields(b"\x00\x01")[0].tag, 0)


class TestScannerErrors(unittest.TestCase):
    def _error(self, raw: bytes) -> ScanError:
        with self.assertRaises(ScanError) as ctx:
            scan_fields(raw)
        return ctx.exception

    def test_incomplete_key(self):
        e = self._error(b"\x80")
        self.assertEqual((e.code, e.offset), (ERR_BAD_VARINT, 0))

    def test_incomplete_varint_value(self):
        e = self._error(b"\x08\x01\x08\xff")
        self.assertEqual((e.code, e.offset), (ERR_BAD_VARINT, 3))

    def test_incomplete_length(self):
        e = self._error(b"\x0a\x80")
        self.assertEqual((e.code, e.offset), (ERR_BAD_VARINT, 1))

    def test_invalid_wire_types(self):
        for key in [0x0b, 0x0c, 0x0e, 0x0f]:  # 3, 4, 6, 7
            with self.subTest(wire_type=key & 7):
                e = self._error(b"\x08\x01" + bytes([key]))
                self.assertEqual((e.code, e.offset), (ERR_WIRE_TYPE, 2))

    def test_truncated_bytes(self):
        e = self._error(b"\x0a\x05abc")
        self.assertEqual((e.code, e.offset), (ERR_SHORT_VALUE, 2))

    def test_truncated_fixed64(self):
        e = self._error(b"\x09" + b"\x00" * 7)
        self.assertEqual((e.code, e.offset), (ERR_SHORT_VALUE, 1))

    def test_truncated_fixed32(self):
        e = self._error(b"\x0d\x00\x00\x00")
        self.assertEqual((e.code, e.offset), (ERR_SHORT_VALUE, 1))

    def test_error_kept_on_scanner(self):
        s = Scanner(b"\x08\x01\x0b")
        self.assertTrue(s.next())
        with self.assertRaises(ScanError):
            s.next()
        self.assertIsNotNone(s.err)
        self.assertEqual(s.err.code, ERR_WIRE_TYPE)

    def test_error_message_has_offset(self):
        e = self._error(b"\x08\x01\x0b")
        self.assertTrue(str(e).startswith("offset 2: "))

    def test_iteration_propagates_error(self):
        seen = []
        with self.assertRaises(ScanError):
            for field in Scanner(b"\x08\x01\x10\x02\x0f"):
                seen.append(field.tag)
        self.assertEqual(seen, [1, 2])

    def test_cursor_ordered_after_value_error(self):
        """A key that decodes followed by a bad value leaves no stale spans."""
        for raw in [b"\x10\x02\x08\xff", b"\x10\x02\x0a\x05ab", b"\x10\x02\x0d\x00"]:
            with self.subTest(raw=raw.hex()):
                s = Scanner(raw)
                self.assertTrue(s.next())
                with self.assertRaises(ScanError):
                    s.next()
                self.assertTrue(s.pos <= s.dpos <= s.end)
                start, end = s.value_span()
                self.assertLessEqual(start, end)
                self.assertEqual(s.wire_type, None)


if __name__ == "__main__":
    unittest.main()
