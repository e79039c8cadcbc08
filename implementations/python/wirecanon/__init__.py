"""wirecanon — schema-less canonical form for protobuf wire messages.

Two encodings of the same protobuf message can differ byte-for-byte:
encoders order fields differently, and repeated fields and embedded
messages may be written in any order.  canonical() maps every such
encoding to one representative, without a .proto schema, so payloads can
be deduplicated or content-addressed by their bytes.

Quick start:
    >>> from wirecanon import canonical
    >>> canonical(b"\\x10\\x02\\x08\\x01")
    b'\\x08\\x01\\x10\\x02'

Bytes that do not parse as a message come back unchanged:
    >>> canonical(b"hello")
    b'hello'
"""

from __future__ import annotations

from ._canonical import canonical, digest
from ._constants import (
    DIGEST_PREFIX,
    MAX_DEPTH,
    TBYTES,
    TFIXED32,
    TFIXED64,
    TVARINT,
    WireType,
)
from ._encoder import Encoder, Message
from ._errors import (
    ERR_BAD_VARINT,
    ERR_FRAME_LENGTH,
    ERR_NO_PARENT,
    ERR_RANGE,
    ERR_SHORT_VALUE,
    ERR_WIRE_TYPE,
    CanonicalError,
    EncoderError,
    ScanError,
    WireError,
)
from ._scanner import (
    Scanner,
    WireField,
    encode_uvarint,
    read_uvarint,
    scan_fields,
    zigzag_decode,
    zigzag_encode,
)

__version__ = "0.1.0"

__all__ = [
    # Canonical form
    "canonical",
    "digest",
    # Lexing
    "Scanner",
    "WireField",
    "scan_fields",
    "read_uvarint",
    "encode_uvarint",
    "zigzag_encode",
    "zigzag_decode",
    # Building
    "Encoder",
    "Message",
    # Wire types and limits
    "WireType",
    "TVARINT",
    "TFIXED64",
    "TBYTES",
    "TFIXED32",
    "MAX_DEPTH",
    "DIGEST_PREFIX",
    # Exceptions
    "WireError",
    "ScanError",
    "CanonicalError",
    "EncoderError",
    # Error codes
    "ERR_BAD_VARINT",
    "ERR_WIRE_TYPE",
    "ERR_SHORT_VALUE",
    "ERR_FRAME_LENGTH",
    "ERR_NO_PARENT",
    "ERR_RANGE",
]
