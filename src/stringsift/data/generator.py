"""Synthetic strings and binaries for fixtures, training and benchmarks.

Labelled strings mix two populations:
- interesting: slices of identifiers, API names, paths and messages that
  commonly show up in executables
- gibberish: printable byte noise, the kind a naive scan pulls out of code
  and compressed sections, with occasional high bytes

Synthetic binaries embed narrow and UTF-16-LE strings between filler bytes
that can never extend a printable run, so recorded offsets are exact.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass

from stringsift.model import MAX_MODEL_LENGTH, MIN_MODEL_LENGTH

INTERESTING_VOCAB: Sequence[str] = (
    "GetProcAddress",
    "LoadLibraryA",
    "CreateFileW",
    "VirtualAlloc",
    "kernel32.dll",
    "user32.dll",
    "advapi32.dll",
    "RegOpenKeyExW",
    "WriteFile",
    "CloseHandle",
    "ExitProcess",
    "malloc",
    "memcpy",
    "strncpy",
    "printf",
    "config.ini",
    "settings.json",
    "C:\\Windows\\Temp",
    "/usr/lib/",
    "/etc/passwd",
    "http://",
    "https://",
    "localhost",
    "Invalid parameter",
    "Access denied",
    "File not found",
    "out of memory",
    "Error: %s",
    "%d bytes read",
    "username",
    "password",
    "version",
    "Copyright",
    "Microsoft",
    "SOFTWARE\\Classes",
    "update",
    "connect",
    "session",
    "timeout",
    "debug",
)

_NOISE_ALPHABET = bytes(range(0x21, 0x7F))
_HIGH_BYTES = bytes(range(0x80, 0x100))
# filler never forms part of a narrow or wide printable run
FILLER_BYTES = bytes(b for b in range(256) if not (0x20 <= b <= 0x7E or b == 0x09))


@dataclass
class LabelledString:
    text: bytes
    label: int  # 1 interesting, 0 gibberish


def _interesting_sample(rng: random.Random) -> bytes:
    word = rng.choice(INTERESTING_VOCAB)
    length = rng.randint(MIN_MODEL_LENGTH, min(len(word), MAX_MODEL_LENGTH))
    start = rng.randint(0, len(word) - length)
    return word[start : start + length].encode("utf-8")


def _gibberish_sample(rng: random.Random) -> bytes:
    length = rng.randint(MIN_MODEL_LENGTH, MAX_MODEL_LENGTH)
    out = bytearray()
    for _ in range(length):
        if rng.random() < 0.1:
            out.append(rng.choice(_HIGH_BYTES))
        else:
            out.append(rng.choice(_NOISE_ALPHABET))
    return bytes(out)


def generate_labelled_strings(count: int = 64, *, seed: int = 1234) -> list[LabelledString]:
    """Alternate interesting and gibberish samples, all within the model's length window."""
    rng = random.Random(seed)
    samples: list[LabelledString] = []
    for i in range(count):
        if i % 2 == 0:
            samples.append(LabelledString(_interesting_sample(rng), 1))
        else:
            samples.append(LabelledString(_gibberish_sample(rng), 0))
    return samples


def _filler(rng: random.Random, low: int = 2, high: int = 24) -> bytes:
    return bytes(rng.choice(FILLER_BYTES) for _ in range(rng.randint(low, high)))


def generate_synthetic_binary(count: int = 8, *, seed: int = 1234) -> tuple[bytes, list[dict]]:
    """Build a buffer with *count* embedded strings plus metadata locating each one."""
    rng = random.Random(seed)
    chunks: list[bytes] = [_filler(rng)]
    pos = len(chunks[0])
    metadata: list[dict] = []

    for i in range(count):
        word = rng.choice(INTERESTING_VOCAB)
        if i % 2 == 0:
            encoded = word.encode("ascii")
            kind = "UTF8"
        else:
            encoded = word.encode("utf-16-le")
            kind = "WIDE_STRING"
        chunks.append(encoded)
        metadata.append(
            {
                "text": word,
                "string_type": kind,
                "offset_start": pos,
                "offset_end": pos + len(encoded),
                "size_in_bytes": len(encoded),
            }
        )
        pos += len(encoded)
        gap = _filler(rng)
        chunks.append(gap)
        pos += len(gap)

    return b"".join(chunks), metadata
