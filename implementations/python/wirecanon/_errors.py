"""Error codes and exception classes.

Scan errors are ordinary input conditions: canonical() absorbs them at each
frame boundary.  CanonicalError and EncoderError report defects in the
caller or in this package and are never absorbed.
"""

from __future__ import annotations

# ── Error codes ──────────────────────────────────────────────
# Grep-friendly strings, compared by the tests and printed by the CLI.

ERR_BAD_VARINT: str = "ERR_BAD_VARINT"      # varint runs off the buffer or overflows 64 bits
ERR_WIRE_TYPE: str = "ERR_WIRE_TYPE"        # key selects an unknown wire type
ERR_SHORT_VALUE: str = "ERR_SHORT_VALUE"    # value extends past the buffer end
ERR_FRAME_LENGTH: str = "ERR_FRAME_LENGTH"  # rewritten frame length mismatch
ERR_NO_PARENT: str = "ERR_NO_PARENT"        # Message.done() without a parent
ERR_RANGE: str = "ERR_RANGE"                # tag or value outside the encodable range

_MESSAGES = {
    ERR_BAD_VARINT: "invalid varint value",
    ERR_WIRE_TYPE: "invalid wire type",
    ERR_SHORT_VALUE: "truncated field value",
}


class WireError(Exception):
    """Base class for wirecanon errors.

    The `.code` attribute is one of the ERR_* strings above.
    """

    def __init__(self, code: str, msg: str = "") -> None:
        super().__init__(msg or _MESSAGES.get(code, code))
        self.code = code


class ScanError(WireError):
    """A wire-format parse failure at a byte offset of the scanned buffer."""

    def __init__(self, code: str, offset: int, msg: str = "") -> None:
        super().__init__(code, msg)
        self.offset = offset

    def __str__(self) -> str:
        return "offset {}: {}".format(self.offset, super().__str__())


class CanonicalError(WireError):
    """Internal consistency failure while rewriting a frame."""


class EncoderError(WireError):
    """Misuse of the Encoder: bad tag, out-of-range value, orphan Message."""
