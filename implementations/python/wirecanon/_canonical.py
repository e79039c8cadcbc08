"""Canonical form for wire-format messages, and content addresses over it.

canonical() reorders the fields of every frame it can parse, bottom-up, so
that any two encodings of the same field multiset produce the same bytes.
Field order, repeated-field order and the order of fields inside embedded
messages all stop mattering.  Nothing is added, dropped or re-encoded: the
output is a permutation of byte spans of the input, so its length always
equals the input length.

Known limitations, kept deliberately:

  - Default (zero) valued fields are not filtered.  Encoders that emit
    them and encoders that omit them produce different canonical bytes.
  - An opaque string or bytes field whose contents happen to parse as a
    message is permuted as if it were one.  Without a schema there is no
    way to tell the two apart.
"""

from __future__ import annotations

import hashlib
import logging
from typing import List, NamedTuple

from ._constants import DIGEST_PREFIX, MAX_DEPTH, WireType
from ._errors import ERR_FRAME_LENGTH, CanonicalError, ScanError
from ._scanner import Scanner

log = logging.getLogger(__name__)


class _Entry(NamedTuple):
    tag: int
    is_bytes: bool
    start: int  # full field: key + length prefix + value
    dpos: int   # value only
    end: int


def canonical(msg) -> bytes:
    """Return the canonical form of msg.

    If msg is not a valid wire-format message (including empty input), the
    result equals msg.  This function never raises for bad input.
    """
    # memoryview() rejects ints, which bytearray() would take as a size.
    cp = bytearray(memoryview(msg))  # permuted in place
    scratch = bytearray(len(cp))   # shared working storage for every frame
    _traverse(memoryview(scratch), memoryview(cp), 0)
    return bytes(cp)


def digest(msg) -> str:
    """Content address of msg: SHA-256 over its canonical form."""
    return DIGEST_PREFIX + hashlib.sha256(canonical(msg)).hexdigest()


def _traverse(scratch: memoryview, msg: memoryview, depth: int) -> None:
    """Rewrite msg into canonical form in place.

    Precondition: len(scratch) >= len(msg).  The contents of scratch are
    garbage afterwards.
    """
    fields: List[_Entry] = []
    scanner = Scanner(msg)
    try:
        while scanner.next():
            fields.append(_Entry(scanner.tag,
                                 scanner.wire_type == WireType.BYTES,
                                 scanner.pos, scanner.dpos, scanner.end))
    except ScanError as exc:
        log.debug("opaque frame at depth %d (%d bytes): %s", depth, len(msg), exc)
        return
    if not fields:
        return

    # Only descend once the whole frame has parsed.  Descending earlier
    # would permute values of a frame that later turns out to be opaque.
    if depth < MAX_DEPTH:
        for e in fields:
            if e.is_bytes:
                _traverse(scratch, msg[e.dpos:e.end], depth + 1)
    else:
        log.debug("depth limit %d reached; nested values left opaque", MAX_DEPTH)

    # Keys read the values after their own canonicalization.  The full field
    # bytes only break exact (tag, value) ties between different wire types.
    fields.sort(key=lambda e: (e.tag,
                               msg[e.dpos:e.end].tobytes(),
                               msg[e.start:e.end].tobytes()))

    total = sum(e.end - e.start for e in fields)
    if total != len(msg):
        raise CanonicalError(
            ERR_FRAME_LENGTH,
            "invalid message length: fields cover {} of {} bytes".format(total, len(msg)))

    pos = 0
    for e in fields:
        n = e.end - e.start
        scratch[pos:pos + n] = msg[e.start:e.end]
        pos += n
    msg[:] = scratch[:pos]
