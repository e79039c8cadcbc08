#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Fuzzing canonical() with hostile input.
#
# Generates three fuzz categories:
#   A) random byte strings (mostly not messages at all)
#   B) valid generated messages with random byte flips, truncations and
#      appended junk
#   C) deeply nested length-delimited chains
#
# For every input, canonical() must not raise, must preserve length and must
# be idempotent; inputs whose top-level frame does not scan must come back
# unchanged.  Any violation prints a minimal repro payload and exits non-zero.

import os, sys, random
from typing import Any, Dict

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(ROOT, "implementations", "python"))

from wirecanon import Encoder, ScanError, canonical, encode_uvarint, scan_fields

SEED = int(os.environ.get("WIRECANON_SEED", "4242"))
ROUNDS = int(os.environ.get("WIRECANON_FUZZ_ROUNDS", "5000"))

random.seed(SEED)


def violation(label: str, ctx: Dict[str, Any]) -> None:
    print("VIOLATION:", label)
    print("CTX:", {k: (v.hex() if isinstance(v, bytes) else v) for k, v in ctx.items()})
    raise SystemExit(1)

# --- generators ---

def rand_bytes(nmax: int) -> bytes:
    return bytes(random.getrandbits(8) for _ in range(random.randint(0, nmax)))

def rand_message(depth: int = 0) -> bytes:
    enc = Encoder()
    for _ in range(random.randint(1, 6)):
        tag = random.randint(1, 30)
        r = random.random()
        if r < 0.25 and depth < 4:
            inner = rand_message(depth + 1)
            enc.add_message(tag, lambda e, m=inner: e.add_bytes(1, m))
        elif r < 0.5:
            enc.add_uint64(tag, random.getrandbits(40))
        elif r < 0.65:
            enc.add_int64(tag, random.randint(-10**9, 10**9))
        elif r < 0.75:
            enc.add_float64(tag, random.random())
        elif r < 0.85:
            enc.add_float32(tag, random.random())
        else:
            enc.add_bytes(tag, rand_bytes(16))
    return enc.encoding()

def mutate(msg: bytes) -> bytes:
    buf = bytearray(msg)
    r = random.random()
    if r < 0.4 and buf:
        for _ in range(random.randint(1, 3)):
            buf[random.randrange(len(buf))] = random.getrandbits(8)
    elif r < 0.7 and buf:
        del buf[random.randrange(len(buf)):]
    else:
        buf += rand_bytes(4)
    return bytes(buf)

def deep_chain() -> bytes:
    inner = rand_message(3)
    for _ in range(random.randint(50, 400)):
        inner = b"\x0a" + encode_uvarint(len(inner)) + inner
    return inner

def scans(msg: bytes) -> bool:
    try:
        return len(scan_fields(msg)) > 0
    except ScanError:
        return False

def check(label: str, msg: bytes, i: int) -> None:
    try:
        out = canonical(msg)
    except Exception as e:
        violation(label + ": raised " + repr(e), {"round": i, "input": msg})
    if len(out) != len(msg):
        violation(label + ": length changed", {"round": i, "input": msg})
    if canonical(out) != out:
        violation(label + ": not idempotent", {"round": i, "input": msg})
    if not scans(msg) and out != msg:
        violation(label + ": opaque input modified", {"round": i, "input": msg})

def main() -> int:
    for i in range(ROUNDS):
        r = random.random()

        # A) random bytes
        if r < 0.35:
            check("A random", rand_bytes(64), i)
            continue

        # B) mutated messages
        if r < 0.9:
            check("B mutated", mutate(rand_message()), i)
            continue

        # C) deep nesting
        check("C deep", deep_chain(), i)

    print(f"OK: fuzz rounds={ROUNDS} seed={SEED} (no violations)")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
