"""Micro-benchmarks for scanning + scoring on synthetic binaries."""

from __future__ import annotations

import time

from stringsift.data.generator import generate_synthetic_binary
from stringsift.inference import classify_bytes
from stringsift.model import StringModel


def benchmark_classify(strings: int = 5000, runs: int = 3) -> dict[str, float]:
    data, _ = generate_synthetic_binary(count=strings)
    model = StringModel.zeros()
    total_bytes = len(data)
    best = None
    found = 0
    for _ in range(runs):
        start = time.perf_counter()
        found = len(classify_bytes(data, model))
        elapsed = time.perf_counter() - start
        best = elapsed if best is None or elapsed < best else best
    mbps = (total_bytes / 1_000_000) / best if best else 0.0
    return {
        "strings": strings,
        "found": found,
        "bytes": total_bytes,
        "best_seconds": best or 0.0,
        "mbps": mbps,
    }


if __name__ == "__main__":
    result = benchmark_classify()
    print(result)
