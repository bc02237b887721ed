"""Helpers for consuming labelled string samples from disk."""

from __future__ import annotations

import csv
from collections.abc import Iterable
from pathlib import Path

import orjson

from stringsift.data.generator import LabelledString

INTERESTING_FILE = "interesting.txt"
GIBBERISH_FILE = "gibberish.txt"


def _parse_label(value: object) -> int:
    label = int(str(value).strip())
    if label not in (0, 1):
        raise ValueError(f"Label must be 0 or 1, got {value!r}")
    return label


def _iter_csv(path: Path) -> Iterable[LabelledString]:
    with path.open(newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            yield LabelledString(row["text"].encode("utf-8"), _parse_label(row["label"]))


def _iter_jsonl(path: Path) -> Iterable[LabelledString]:
    with path.open("rb") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            entry = orjson.loads(line)
            if entry.get("hex") is not None:
                raw = bytes.fromhex(entry["hex"])
            else:
                raw = str(entry["text"]).encode("utf-8")
            yield LabelledString(raw, _parse_label(entry["label"]))


def _iter_lines(path: Path, label: int) -> Iterable[LabelledString]:
    if not path.exists():
        return
    with path.open("rb") as f:
        for line in f:
            text = line.rstrip(b"\r\n")
            if text:
                yield LabelledString(text, label)


def load_labelled(path: Path) -> list[LabelledString]:
    """Load samples from CSV (text,label), JSONL, or a directory of line files.

    A directory holds ``interesting.txt`` and/or ``gibberish.txt`` with one
    raw string per line.
    """
    if path.is_dir():
        samples = list(_iter_lines(path / INTERESTING_FILE, 1))
        samples.extend(_iter_lines(path / GIBBERISH_FILE, 0))
        return samples
    if path.suffix.lower() == ".csv":
        return list(_iter_csv(path))
    return list(_iter_jsonl(path))


def write_labelled_jsonl(samples: list[LabelledString], path: Path) -> None:
    """Write samples as JSONL; ``hex`` keeps the exact bytes, ``text`` is for reading."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        for s in samples:
            payload = {
                "text": s.text.decode("utf-8", errors="replace"),
                "hex": s.text.hex(),
                "label": s.label,
            }
            f.write(orjson.dumps(payload) + b"\n")
