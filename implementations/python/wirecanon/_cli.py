"""wirecanon command-line interface.

Usage:
    python3 -m wirecanon canon --input msg.bin
    xxd -p msg.bin | python3 -m wirecanon canon --input-format hex --output-format hex
    python3 -m wirecanon digest --input msg.bin
    python3 -m wirecanon scan --input msg.bin
    python3 -m wirecanon version
"""

from __future__ import annotations

import argparse
import base64
import logging
import sys
from typing import List, Optional

from . import (
    MAX_DEPTH,
    ScanError,
    WireError,
    WireType,
    __version__,
    canonical,
    digest,
    read_uvarint,
    scan_fields,
)

_FORMATS = ("raw", "hex", "base64")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wirecanon",
        description="wirecanon — canonical form for protobuf wire messages",
    )
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log debug details to stderr")
    sub = parser.add_subparsers(dest="command")

    def add_input_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--input", "-i", metavar="FILE",
                       help="Read the message from FILE instead of stdin")
        p.add_argument("--input-format", choices=_FORMATS, default="raw",
                       help="How the input bytes are written (default: raw)")

    # ── canon ──
    canon_p = sub.add_parser("canon", help="Emit the canonical bytes")
    add_input_args(canon_p)
    canon_p.add_argument("--output-format", choices=_FORMATS, default="base64",
                         help="How to write the result (default: base64)")

    # ── digest ──
    digest_p = sub.add_parser("digest", help="Print the content address")
    add_input_args(digest_p)

    # ── scan ──
    scan_p = sub.add_parser("scan", help="Print the field structure")
    add_input_args(scan_p)

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: Optional[str], fmt: str) -> bytes:
    """Read message bytes from a file or stdin and decode them per fmt."""
    if filepath:
        with open(filepath, "rb") as f:
            raw = f.read()
    else:
        if sys.stdin.isatty():
            print("wirecanon: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
        raw = sys.stdin.buffer.read()

    if fmt == "hex":
        return bytes.fromhex(raw.decode("ascii"))
    if fmt == "base64":
        return base64.b64decode(b"".join(raw.split()), validate=True)
    return raw


def _write_output(data: bytes, fmt: str) -> None:
    if fmt == "raw":
        sys.stdout.buffer.write(data)
        sys.stdout.flush()
    elif fmt == "hex":
        print(data.hex())
    else:
        # base64 for safe terminal display
        print(base64.b64encode(data).decode("ascii"))


def _cmd_canon(args: argparse.Namespace) -> None:
    msg = _read_input(args.input, args.input_format)
    _write_output(canonical(msg), args.output_format)


def _cmd_digest(args: argparse.Namespace) -> None:
    msg = _read_input(args.input, args.input_format)
    print(digest(msg))


def _format_value(wire_type: WireType, value: bytes) -> str:
    if wire_type == WireType.VARINT:
        n, _ = read_uvarint(value)
        return str(n)
    return "{!r}".format(value)


def _dump(msg: bytes, depth: int, out: List[str]) -> None:
    indent = "  " * depth
    for field in scan_fields(msg):
        start, end = field.value_span
        value = msg[start:end]
        out.append("{}field tag={} type={} value={}".format(
            indent, field.tag, field.wire_type.name, _format_value(field.wire_type, value)))
        # Past MAX_DEPTH values are printed as opaque bytes, as canonical()
        # leaves them.
        if field.wire_type == WireType.BYTES and value and depth < MAX_DEPTH:
            nested: List[str] = []
            try:
                _dump(value, depth + 1, nested)
            except ScanError:
                continue  # opaque bytes, not a message
            out.extend(nested)


def _cmd_scan(args: argparse.Namespace) -> None:
    msg = _read_input(args.input, args.input_format)
    lines: List[str] = []
    _dump(msg, 0, lines)
    for line in lines:
        print(line)


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"wirecanon {__version__}")
        return

    try:
        if args.command == "canon":
            _cmd_canon(args)
        elif args.command == "digest":
            _cmd_digest(args)
        elif args.command == "scan":
            _cmd_scan(args)
    except WireError as e:
        print(f"wirecanon: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except ValueError as e:
        print(f"wirecanon: cannot decode {args.input_format} input: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
