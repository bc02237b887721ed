"""Helpers to log evaluation summaries for trend tracking."""

from __future__ import annotations

import csv
import json
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import orjson

from stringsift.eval.harness import EvalSummary


def summary_to_row(
    summary: EvalSummary | Mapping[str, Any], source: str, tag: str | None = None
) -> dict:
    """Flatten EvalSummary into a CSV/JSONL-friendly row."""
    if isinstance(summary, Mapping):
        samples = int(summary.get("samples", 0) or 0)
        accuracy = float(summary.get("accuracy", 0.0) or 0.0)
        precision = float(summary.get("precision", 0.0) or 0.0)
        recall = float(summary.get("recall", 0.0) or 0.0)
        average_probability = float(summary.get("average_probability", 0.0) or 0.0)
        confusion_obj = summary.get("confusion", {})
        confusion = dict(confusion_obj) if isinstance(confusion_obj, Mapping) else {}
        notes = str(summary.get("notes", ""))
    else:
        samples = summary.samples
        accuracy = summary.accuracy
        precision = summary.precision
        recall = summary.recall
        average_probability = summary.average_probability
        confusion = summary.confusion
        notes = summary.notes
    return {
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "source": source,
        "tag": tag or "",
        "samples": samples,
        "accuracy": accuracy,
        "precision": precision,
        "recall": recall,
        "average_probability": average_probability,
        "confusion": json.dumps(confusion),
        "notes": notes,
    }


def append_csv(path: Path, row: dict) -> None:
    """Append a row to a CSV file, writing headers when the file is new."""
    path.parent.mkdir(parents=True, exist_ok=True)
    is_new = not path.exists()
    with path.open("a", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(row.keys()))
        if is_new:
            writer.writeheader()
        writer.writerow(row)


def append_jsonl(path: Path, payload: dict) -> None:
    """Append a JSON line (UTF-8) to a log file; dataclasses serialize natively."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("ab") as f:
        f.write(orjson.dumps(payload) + b"\n")
