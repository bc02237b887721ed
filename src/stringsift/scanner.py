"""Carve candidate strings out of raw binary content.

Two passes run over the buffer:

- narrow runs of printable ASCII bytes (plus tab), emitted as ``UTF8``
- UTF-16-LE runs where every unit is a printable ASCII byte followed by 0x00,
  emitted as ``WIDE_STRING``

Offsets are half-open ``[start, end)`` positions in the scanned buffer.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from stringsift.extracted import ExtractedString, StringType

logger = logging.getLogger(__name__)

_PRINTABLE = rb"\t\x20-\x7e"


@dataclass
class ScanConfig:
    min_length: int = 4  # bytes for narrow runs, code units for wide runs
    narrow: bool = True
    wide: bool = True


@lru_cache(maxsize=32)
def _narrow_pattern(min_length: int) -> re.Pattern[bytes]:
    return re.compile(b"[" + _PRINTABLE + b"]{%d,}" % min_length)


@lru_cache(maxsize=32)
def _wide_pattern(min_length: int) -> re.Pattern[bytes]:
    return re.compile(b"(?:[" + _PRINTABLE + b"]\\x00){%d,}" % min_length)


def scan_bytes(data: bytes, config: ScanConfig | None = None) -> list[ExtractedString]:
    """Return narrow and wide strings found in *data*, ordered by offset."""
    cfg = config or ScanConfig()
    if cfg.min_length < 1:
        raise ValueError("min_length must be at least 1")

    found: list[ExtractedString] = []
    if cfg.narrow:
        for match in _narrow_pattern(cfg.min_length).finditer(data):
            found.append(
                ExtractedString.from_narrow(
                    match.group(),
                    StringType.UTF8,
                    offset_start=match.start(),
                    offset_end=match.end(),
                )
            )
    if cfg.wide:
        for match in _wide_pattern(cfg.min_length).finditer(data):
            found.append(
                ExtractedString.from_wide(
                    match.group(),
                    StringType.WIDE_STRING,
                    offset_start=match.start(),
                    offset_end=match.end(),
                )
            )

    # stable sort keeps narrow ahead of wide at equal offsets
    found.sort(key=lambda s: s.offset_start)
    logger.debug("Scanned %d bytes: %d candidate strings", len(data), len(found))
    return found


def scan_file(path: Path, config: ScanConfig | None = None) -> list[ExtractedString]:
    return scan_bytes(path.read_bytes(), config)
