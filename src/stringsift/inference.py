"""Batch classification of scanned strings plus result writers."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import orjson
import pyarrow as pa

from stringsift.extracted import INTERESTING_THRESHOLD, ExtractedString
from stringsift.model import StringModel
from stringsift.scanner import ScanConfig, scan_bytes

logger = logging.getLogger(__name__)


@dataclass
class ScoredString:
    offset_start: int
    offset_end: int
    string_type: str
    size_in_bytes: int
    text: str
    probability: float
    interesting: bool

    def to_mapping(self) -> dict[str, Any]:
        return {
            "offset_start": self.offset_start,
            "offset_end": self.offset_end,
            "string_type": self.string_type,
            "size_in_bytes": self.size_in_bytes,
            "text": self.text,
            "probability": self.probability,
            "interesting": self.interesting,
        }


def classify_strings(
    strings: Iterable[ExtractedString],
    model: StringModel,
    threshold: float = INTERESTING_THRESHOLD,
) -> list[ScoredString]:
    """Score every record; ``interesting`` means probability strictly above *threshold*."""
    model.validate()
    results: list[ScoredString] = []
    for item in strings:
        proba = item.proba_interesting(model)
        results.append(
            ScoredString(
                offset_start=item.offset_start,
                offset_end=item.offset_end,
                string_type=item.type_string,
                size_in_bytes=item.size_in_bytes,
                text=item.text,
                probability=proba,
                interesting=proba > threshold,
            )
        )
    return results


def classify_bytes(
    data: bytes,
    model: StringModel,
    config: ScanConfig | None = None,
    threshold: float = INTERESTING_THRESHOLD,
    only_interesting: bool = False,
) -> list[ScoredString]:
    results = classify_strings(scan_bytes(data, config), model, threshold=threshold)
    kept = sum(1 for r in results if r.interesting)
    logger.info("Classified %d strings, %d interesting", len(results), kept)
    if only_interesting:
        return [r for r in results if r.interesting]
    return results


def results_to_jsonl(results: list[ScoredString], path: Path, gzip_output: bool = False) -> None:
    """Write classification results as JSONL for downstream consumption."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if gzip_output:
        import gzip as gzip_lib

        handle = gzip_lib.open(path, "wb")
    else:
        handle = path.open("wb")

    with handle as f:
        for r in results:
            f.write(orjson.dumps(r.to_mapping()) + b"\n")


def results_to_arrow(results: list[ScoredString], path: Path) -> None:
    """Write classification results to Arrow IPC for analytics-friendly consumption."""
    path.parent.mkdir(parents=True, exist_ok=True)
    table = pa.table(
        {
            "offset_start": pa.array([r.offset_start for r in results], type=pa.int64()),
            "offset_end": pa.array([r.offset_end for r in results], type=pa.int64()),
            "string_type": pa.array([r.string_type for r in results], type=pa.string()),
            "size_in_bytes": pa.array([r.size_in_bytes for r in results], type=pa.int64()),
            "text": pa.array([r.text for r in results], type=pa.string()),
            "probability": pa.array([r.probability for r in results], type=pa.float64()),
            "interesting": pa.array([r.interesting for r in results], type=pa.bool_()),
        }
    )
    with pa.OSFile(str(path), "wb") as sink:
        with pa.ipc.new_file(sink, table.schema) as writer:
            writer.write_table(table)
