"""Logistic-regression string model: feature layout, scoring, artifact IO.

The weight table is indexed by a fixed feature layout shared with the offline
trainer:

- 118 byte unigrams for 0x09..0x7E
- 118 * 118 ordered bigrams of those bytes (first byte varies fastest)
- 1 string length weight
- 1 weight added per byte outside 0x09..0x7E
- 1 distinct byte count weight

Features are computed over the UTF-8 bytes of a string, not over decoded
characters. Multi-byte sequences contribute one non-latin hit per byte.
"""

from __future__ import annotations

import logging
import math
import pickle
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import orjson
import yaml

logger = logging.getLogger(__name__)

RANGE_LOW = 0x09
RANGE_HIGH = 0x7E
UNIGRAM_COUNT = RANGE_HIGH - RANGE_LOW + 1  # 118
BIGRAM_OFFSET = UNIGRAM_COUNT
LENGTH_INDEX = UNIGRAM_COUNT + UNIGRAM_COUNT * UNIGRAM_COUNT
NON_LATIN_INDEX = LENGTH_INDEX + 1
DISTINCT_INDEX = LENGTH_INDEX + 2
FEATURE_COUNT = LENGTH_INDEX + 3

# The trained model only covers this length window; outside it a fixed answer is returned.
MIN_MODEL_LENGTH = 4
MAX_MODEL_LENGTH = 16


class InvalidModelError(ValueError):
    """Raised when a weight table cannot serve the feature layout."""


@dataclass(frozen=True)
class StringModel:
    bias: float
    weights: tuple[float, ...] = field(repr=False)
    name: str | None = None
    version: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "bias", float(self.bias))
        object.__setattr__(self, "weights", tuple(float(w) for w in self.weights))
        if not math.isfinite(self.bias) or not all(math.isfinite(w) for w in self.weights):
            raise InvalidModelError("Model contains non-finite bias or weights")

    @classmethod
    def zeros(cls, bias: float = 0.0, name: str | None = None) -> StringModel:
        return cls(bias=bias, weights=(0.0,) * FEATURE_COUNT, name=name)

    @staticmethod
    def from_mapping(payload: dict[str, Any]) -> StringModel:
        if "bias" not in payload or "weights" not in payload:
            raise InvalidModelError("Model payload needs 'bias' and 'weights' keys")
        try:
            return StringModel(
                bias=payload["bias"],
                weights=payload["weights"],
                name=payload.get("name"),
                version=str(payload["version"]) if payload.get("version") is not None else None,
            )
        except (TypeError, ValueError) as exc:
            raise InvalidModelError(f"Malformed model payload: {exc}") from exc

    def to_mapping(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "feature_count": len(self.weights),
            "bias": self.bias,
            "weights": list(self.weights),
        }

    def validate(self) -> None:
        """Check the table covers every feature index."""
        if len(self.weights) < FEATURE_COUNT:
            raise InvalidModelError(
                f"Weight table has {len(self.weights)} entries, expected {FEATURE_COUNT}"
            )


def _in_range(byte: int) -> bool:
    return RANGE_LOW <= byte <= RANGE_HIGH


def bigram_index(first: int, second: int) -> int:
    return BIGRAM_OFFSET + (first - RANGE_LOW) + UNIGRAM_COUNT * (second - RANGE_LOW)


def string_features(data: bytes) -> dict[int, float]:
    """Sparse feature vector (index -> value) for the UTF-8 bytes *data*."""
    features: dict[int, float] = {}
    seen = bytearray(256)
    distinct = 0
    length = len(data)
    for i, byte in enumerate(data):
        if not seen[byte]:
            seen[byte] = 1
            distinct += 1
        if _in_range(byte):
            idx = byte - RANGE_LOW
            features[idx] = features.get(idx, 0.0) + 1.0
            if i + 1 < length and _in_range(data[i + 1]):
                pair = bigram_index(byte, data[i + 1])
                features[pair] = features.get(pair, 0.0) + 1.0
        else:
            features[NON_LATIN_INDEX] = features.get(NON_LATIN_INDEX, 0.0) + 1.0
    features[LENGTH_INDEX] = float(length)
    features[DISTINCT_INDEX] = float(distinct)
    return features


def logistic(x: float) -> float:
    # Split on sign so exp() never overflows.
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def linear_score(model: StringModel, data: bytes) -> float:
    """Bias plus weighted features, before the logistic link."""
    if len(model.weights) < FEATURE_COUNT:
        raise InvalidModelError(
            f"Weight table has {len(model.weights)} entries, expected {FEATURE_COUNT}"
        )
    weights = model.weights
    score = model.bias
    for idx, value in string_features(data).items():
        score += weights[idx] * value
    return score


def score_bytes(model: StringModel, data: bytes) -> float:
    """Probability in [0, 1] that *data* is meaningful text rather than gibberish."""
    length = len(data)
    if length > MAX_MODEL_LENGTH:
        return 1.0
    if length < MIN_MODEL_LENGTH:
        return 0.0
    return logistic(linear_score(model, data))


def load_model(path: Path) -> StringModel:
    """Load a weight table from JSON, YAML or a trainer checkpoint (.pt)."""
    suffix = path.suffix.lower()
    if suffix == ".json":
        try:
            payload = orjson.loads(path.read_bytes())
        except orjson.JSONDecodeError as exc:
            raise InvalidModelError(f"Model file {path} is not valid JSON: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, UnicodeDecodeError) as exc:
            raise InvalidModelError(f"Model file {path} is not valid YAML: {exc}") from exc
    elif suffix == ".pt":
        import torch

        try:
            ckpt = torch.load(path, map_location="cpu", weights_only=False)
        except (pickle.UnpicklingError, RuntimeError, EOFError, ValueError) as exc:
            raise InvalidModelError(f"Checkpoint {path} cannot be loaded: {exc}") from exc
        if not isinstance(ckpt, dict):
            raise InvalidModelError(f"Checkpoint {path} must contain a mapping")
        weights = ckpt.get("weights")
        if isinstance(weights, torch.Tensor):
            weights = weights.flatten().tolist()
        payload = {
            "bias": ckpt.get("bias"),
            "weights": weights,
            "name": ckpt.get("name"),
            "version": ckpt.get("version"),
        }
        if payload["bias"] is None or payload["weights"] is None:
            raise InvalidModelError(f"Checkpoint {path} has no bias/weights entries")
    else:
        raise InvalidModelError(f"Unsupported model format '{path.suffix}' for {path}")

    if not isinstance(payload, dict):
        raise InvalidModelError(f"Model file {path} must contain a mapping")
    model = StringModel.from_mapping(payload)
    logger.debug("Loaded model %s (%d weights) from %s", model.name, len(model.weights), path)
    return model


def save_model(model: StringModel, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(orjson.dumps(model.to_mapping()))
