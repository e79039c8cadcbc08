#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Canonical-form invariants (property tests) over randomly generated messages.
#
# This runner:
# - generates random wire messages with the Encoder (nested messages,
#   repeated fields, all four wire types)
# - shuffles field order at every nesting level to get alternative encodings
# - checks idempotence, confluence, length preservation and field-count
#   preservation of canonical()
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import os, sys, random
from typing import Any, List, Tuple

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(ROOT, "implementations", "python"))

from wirecanon import Encoder, ScanError, canonical, encode_uvarint, scan_fields

SEED = int(os.environ.get("WIRECANON_SEED", "1337"))
TRIALS = int(os.environ.get("WIRECANON_TRIALS", "2000"))
MAX_GEN_DEPTH = int(os.environ.get("WIRECANON_GEN_MAX_DEPTH", "5"))
MAX_FIELDS = int(os.environ.get("WIRECANON_GEN_MAX_FIELDS", "6"))
MAX_TAG = int(os.environ.get("WIRECANON_GEN_MAX_TAG", "20"))
MAX_BYTES = int(os.environ.get("WIRECANON_GEN_MAX_BYTES", "24"))

random.seed(SEED)

# A generated message is a list of (tag, kind, value) fields; a "message"
# value is itself such a list.
Field = Tuple[int, str, Any]


def rand_bytes() -> bytes:
    return bytes(random.getrandbits(8) for _ in range(random.randint(1, MAX_BYTES)))


def gen_message(depth: int) -> List[Field]:
    fields: List[Field] = []
    for _ in range(random.randint(1, MAX_FIELDS)):
        tag = random.randint(1, MAX_TAG)
        r = random.random()
        if r < 0.2 and depth < MAX_GEN_DEPTH:
            fields.append((tag, "message", gen_message(depth + 1)))
        elif r < 0.4:
            fields.append((tag, "uint64", random.getrandbits(random.choice([7, 14, 32, 64]))))
        elif r < 0.55:
            fields.append((tag, "int64", random.randint(-(2**63), 2**63 - 1)))
        elif r < 0.65:
            fields.append((tag, "float32", random.uniform(-1e6, 1e6)))
        elif r < 0.75:
            fields.append((tag, "float64", random.uniform(-1e12, 1e12)))
        elif r < 0.85:
            fields.append((tag, "bool", random.random() < 0.5))
        else:
            fields.append((tag, "bytes", rand_bytes()))
    return fields


def shuffled(fields: List[Field]) -> List[Field]:
    out = []
    for tag, kind, value in fields:
        if kind == "message":
            value = shuffled(value)
        out.append((tag, kind, value))
    random.shuffle(out)
    return out


def encode(fields: List[Field]) -> bytes:
    enc = Encoder(keep_zeroes=True)

    def fill(e: Encoder, fs: List[Field]) -> None:
        for tag, kind, value in fs:
            if kind == "message":
                e.add_message(tag, lambda child, v=value: fill(child, v))
            else:
                getattr(e, "add_" + kind)(tag, value)

    fill(enc, fields)
    return enc.encoding()


def count_fields(msg: bytes) -> int:
    try:
        return len(scan_fields(msg))
    except ScanError:
        return -1


def fail(label: str, trial: int, msg: bytes) -> int:
    print("INVARIANT FAIL:", label)
    print("CTX: trial={} input_hex={}".format(trial, msg.hex()[:4000]))
    return 1


def main() -> int:
    for t in range(TRIALS):
        fields = gen_message(0)
        a = encode(fields)
        b = encode(shuffled(fields))

        ca = canonical(a)

        # (1) length preservation
        if len(ca) != len(a):
            return fail("length preservation", t, a)

        # (2) idempotence
        if canonical(ca) != ca:
            return fail("idempotence", t, a)

        # (3) confluence across field orderings
        if canonical(b) != ca:
            return fail("confluence", t, a)

        # (4) cardinality: top-level field count unchanged
        if count_fields(ca) != count_fields(a):
            return fail("field count", t, a)

        # (5) canonical output is a permutation of the input's fields
        if sorted(ca[f.span[0]:f.span[1]] for f in scan_fields(ca)) != \
                sorted(canonical(a[f.span[0]:f.span[1]]) for f in scan_fields(a)):
            return fail("field permutation", t, a)

        # (6) a message wrapped as a bytes field canonicalizes the same inside
        wrapped = b"\x0a" + encode_uvarint(len(a)) + a
        if canonical(wrapped) != b"\x0a" + encode_uvarint(len(a)) + ca:
            return fail("nesting", t, a)

    print(f"OK: invariants passed for TRIALS={TRIALS} seed={SEED}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
