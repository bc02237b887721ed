"""Summaries over eval logs (CSV or JSONL)."""

from __future__ import annotations

import csv
import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any


def _iter_csv(path: Path) -> Iterator[dict[str, str]]:
    with path.open(newline="") as f:
        reader = csv.DictReader(f)
        yield from reader


def _iter_jsonl(path: Path) -> Iterator[dict[str, Any]]:
    with path.open() as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            yield json.loads(line)


def _flatten(entry: dict[str, Any]) -> dict[str, Any]:
    # Full JSONL payloads nest the summary under "evaluation".
    nested = entry.get("evaluation")
    if isinstance(nested, dict):
        return nested
    return entry


def summarize_log(path: Path) -> dict[str, object]:
    """Compute simple aggregates from a CSV/JSONL log."""
    accuracies: list[float] = []
    precisions: list[float] = []
    recalls: list[float] = []
    samples_total = 0
    tags: dict[str, int] = {}

    iterator = _iter_csv(path) if path.suffix.lower() == ".csv" else _iter_jsonl(path)

    for raw in iterator:
        entry = _flatten(raw)
        if "accuracy" in entry:
            accuracies.append(float(entry["accuracy"]))
        if "precision" in entry:
            precisions.append(float(entry["precision"]))
        if "recall" in entry:
            recalls.append(float(entry["recall"]))
        if "samples" in entry:
            samples_total += int(entry["samples"])
        tag = raw.get("tag")
        if tag:
            tags[str(tag)] = tags.get(str(tag), 0) + 1

    def _mean(values: list[float]) -> float:
        return round(sum(values) / len(values), 4) if values else 0.0

    return {
        "entries": len(accuracies),
        "samples_total": samples_total,
        "average_accuracy": _mean(accuracies),
        "average_precision": _mean(precisions),
        "average_recall": _mean(recalls),
        "tags": tags,
    }
