"""Quick viewer for eval logs (CSV or JSONL).

Shows aggregate accuracy/precision/recall and per-tag averages in Rich tables.
"""

from __future__ import annotations

import argparse
import csv
import json
from collections import Counter
from collections.abc import Iterable
from pathlib import Path

from rich.console import Console
from rich.table import Table

from stringsift.eval.summarize import summarize_log


def _iter_entries(path: Path) -> Iterable[dict[str, object]]:
    if path.suffix.lower() == ".csv":
        with path.open(newline="") as f:
            yield from csv.DictReader(f)
    else:
        with path.open() as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                yield json.loads(line)


def _tag_from_entry(entry: dict[str, object]) -> tuple[str, float]:
    tag = str(entry.get("tag") or "")
    accuracy = 0.0
    if "accuracy" in entry:
        accuracy = float(entry["accuracy"])  # type: ignore[arg-type]
    elif isinstance(entry.get("evaluation"), dict):
        accuracy = float(entry["evaluation"].get("accuracy", 0.0))  # type: ignore[union-attr]
    return tag, accuracy


def main() -> None:
    parser = argparse.ArgumentParser(description="View eval logs.")
    parser.add_argument("log", type=Path, help="CSV or JSONL log file.")
    args = parser.parse_args()

    console = Console()
    summary = summarize_log(args.log)

    console.print("[bold]Aggregate[/]")
    console.print(
        f"- entries: {summary['entries']}, samples: {summary['samples_total']}, "
        f"accuracy: {summary['average_accuracy']}, precision: {summary['average_precision']}, "
        f"recall: {summary['average_recall']}"
    )

    tag_counts: Counter[str] = Counter()
    tag_acc_sum: Counter[str] = Counter()
    for entry in _iter_entries(args.log):
        tag, accuracy = _tag_from_entry(entry)
        if tag:
            tag_counts[tag] += 1
            tag_acc_sum[tag] += accuracy
    if tag_counts:
        tag_table = Table(title="Tags")
        tag_table.add_column("Tag")
        tag_table.add_column("Entries", justify="right")
        tag_table.add_column("Avg Accuracy", justify="right")
        for tag, count in tag_counts.most_common():
            avg = tag_acc_sum[tag] / count if count else 0.0
            tag_table.add_row(tag, str(count), f"{avg:.4f}")
        console.print(tag_table)


if __name__ == "__main__":
    main()
