"""Wire-format constants: wire types, varint limits, and traversal limits.

Only the four basic wire types are recognized.  Groups (3, 4) and the
unassigned codes (6, 7) are rejected by the scanner.
"""

from __future__ import annotations

import enum


class WireType(enum.IntEnum):
    """The low 3 bits of a field key."""

    VARINT = 0
    FIXED64 = 1
    BYTES = 2  # length-delimited: strings, bytes, embedded messages
    FIXED32 = 5


TVARINT: int = WireType.VARINT
TFIXED64: int = WireType.FIXED64
TBYTES: int = WireType.BYTES
TFIXED32: int = WireType.FIXED32

# ── Varint limits ────────────────────────────────────────────
# A uint64 needs at most 10 groups of 7 bits, and the 10th group may only
# carry the single top bit.
MAX_VARINT_LEN: int = 10
UINT64_MAX: int = 2**64 - 1
INT64_MIN: int = -(2**63)
INT64_MAX: int = 2**63 - 1

# (tag << 3) | wire_type must fit in a uint64.
MAX_TAG: int = 2**61 - 1

# ── Traversal limit ──────────────────────────────────────────
# Same default as the protobuf runtimes' recursion limit.  Frames nested
# deeper than this are sorted but their length-delimited values are left
# as opaque bytes.
MAX_DEPTH: int = 100

# Prefix of content addresses produced by digest().
DIGEST_PREFIX = "wpb1:"
