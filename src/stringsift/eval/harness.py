"""Evaluation harness for string models.

Purpose:
- Measure a weight table against labelled samples (real or synthetic).
- Produce a compact summary that the report helpers can log for trend tracking.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from stringsift.data.generator import LabelledString, generate_labelled_strings
from stringsift.model import StringModel, score_bytes


@dataclass
class SampleEval:
    text: str
    label: int
    probability: float


@dataclass
class EvalSummary:
    samples: int
    accuracy: float
    precision: float
    recall: float
    average_probability: float
    confusion: dict[str, int]
    mistakes: list[SampleEval]
    notes: str


def _ratio(num: float, denom: int) -> float:
    return num / denom if denom else 0.0


def evaluate_samples(
    samples: Sequence[LabelledString],
    model: StringModel,
    threshold: float = 0.5,
    sample_limit: int = 3,
) -> EvalSummary:
    """Score every sample and summarize classification quality."""
    model.validate()
    tp = fp = tn = fn = 0
    probs: list[float] = []
    mistakes: list[SampleEval] = []

    for sample in samples:
        proba = score_bytes(model, sample.text)
        probs.append(proba)
        predicted = 1 if proba > threshold else 0
        if predicted == 1 and sample.label == 1:
            tp += 1
        elif predicted == 1:
            fp += 1
        elif sample.label == 0:
            tn += 1
        else:
            fn += 1
        if predicted != sample.label and len(mistakes) < sample_limit:
            mistakes.append(
                SampleEval(
                    text=sample.text.decode("utf-8", errors="replace"),
                    label=sample.label,
                    probability=round(proba, 4),
                )
            )

    total = len(probs)
    return EvalSummary(
        samples=total,
        accuracy=round(_ratio(tp + tn, total), 4),
        precision=round(_ratio(tp, tp + fp), 4),
        recall=round(_ratio(tp, tp + fn), 4),
        average_probability=round(_ratio(sum(probs), total), 4),
        confusion={"tp": tp, "fp": fp, "tn": tn, "fn": fn},
        mistakes=mistakes,
        notes=f"threshold={threshold}",
    )


def evaluate_synthetic(
    model: StringModel, count: int = 64, seed: int = 1234, threshold: float = 0.5
) -> dict[str, object]:
    """Generate labelled samples and return evaluation plus generator settings."""
    samples = generate_labelled_strings(count=count, seed=seed)
    return {
        "generator": {"count": count, "seed": seed},
        "model": {"name": model.name, "version": model.version},
        "evaluation": evaluate_samples(samples, model, threshold=threshold),
    }
