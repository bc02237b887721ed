"""Offline trainer for the string model weight table.

The model is a logistic regression over the sparse layout produced by
``string_features``. An ``EmbeddingBag`` in sum mode holds one weight per
feature index, so a forward pass is exactly ``bias + sum(w[i] * x[i])`` and
the learned table can be exported one-to-one as a ``StringModel``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path

import torch
from torch import nn
from torch.utils.data import DataLoader, Dataset

from stringsift.data.generator import LabelledString, generate_labelled_strings
from stringsift.data.loader import load_labelled
from stringsift.model import (
    FEATURE_COUNT,
    MAX_MODEL_LENGTH,
    MIN_MODEL_LENGTH,
    StringModel,
    save_model,
    string_features,
)

logger = logging.getLogger(__name__)

Sample = tuple[torch.Tensor, torch.Tensor, float]


@dataclass
class LogisticTrainingConfig:
    output_dir: Path
    samples: int = 512
    seed: int = 1234
    epochs: int = 20
    batch_size: int = 64
    learning_rate: float = 0.05
    weight_decay: float = 0.0
    device: str = "cpu"
    dataset_path: Path | None = None  # optional labelled file/dir instead of synthetic data
    name: str = "strings"
    version: str = "1"


class StringFeatureDataset(Dataset[Sample]):
    """Sparse (indices, values, label) triples for strings inside the model's length window."""

    def __init__(self, samples: list[LabelledString]) -> None:
        self.samples: list[Sample] = []
        self.skipped = 0
        for sample in samples:
            if not MIN_MODEL_LENGTH <= len(sample.text) <= MAX_MODEL_LENGTH:
                self.skipped += 1
                continue
            features = string_features(sample.text)
            indices = torch.tensor(list(features.keys()), dtype=torch.long)
            values = torch.tensor(list(features.values()), dtype=torch.float)
            self.samples.append((indices, values, float(sample.label)))

    def __len__(self) -> int:
        return len(self.samples)

    def __getitem__(self, idx: int) -> Sample:
        return self.samples[idx]


def _collate(batch: list[Sample]) -> dict[str, torch.Tensor]:
    lengths = [indices.numel() for indices, _values, _label in batch]
    offsets = torch.tensor([0] + lengths[:-1], dtype=torch.long).cumsum(dim=0)
    return {
        "indices": torch.cat([indices for indices, _values, _label in batch]),
        "values": torch.cat([values for _indices, values, _label in batch]),
        "offsets": offsets,
        "labels": torch.tensor([label for _indices, _values, label in batch], dtype=torch.float),
    }


class LogisticStringModel(nn.Module):
    """Sparse logistic regression with one weight per feature index."""

    def __init__(self, num_features: int = FEATURE_COUNT) -> None:
        super().__init__()
        self.weights = nn.EmbeddingBag(num_features, 1, mode="sum")
        nn.init.zeros_(self.weights.weight)
        self.bias = nn.Parameter(torch.zeros(1))

    def forward(
        self, indices: torch.Tensor, offsets: torch.Tensor, values: torch.Tensor
    ) -> torch.Tensor:
        summed = self.weights(indices, offsets, per_sample_weights=values)  # (batch, 1)
        return summed.squeeze(-1) + self.bias

    def to_string_model(self, name: str | None = None, version: str | None = None) -> StringModel:
        weights = self.weights.weight.detach().cpu().flatten().tolist()
        return StringModel(
            bias=float(self.bias.detach().cpu().item()),
            weights=weights,
            name=name,
            version=version,
        )


def _load_samples(config: LogisticTrainingConfig) -> list[LabelledString]:
    if config.dataset_path is not None:
        return load_labelled(config.dataset_path)
    return generate_labelled_strings(count=config.samples, seed=config.seed)


def train_logistic(config: LogisticTrainingConfig) -> dict:
    """Fit the weight table, save checkpoint + JSON model, and return metrics."""
    torch.manual_seed(config.seed)
    device = torch.device(config.device)
    ds = StringFeatureDataset(_load_samples(config))
    if len(ds) == 0:
        raise ValueError("No training samples inside the model's length window")
    logger.info("Training on %d samples (%d skipped by length)", len(ds), ds.skipped)

    loader = DataLoader(ds, batch_size=config.batch_size, shuffle=True, collate_fn=_collate)
    model = LogisticStringModel()
    model.to(device)
    optimizer = torch.optim.Adam(
        model.parameters(), lr=config.learning_rate, weight_decay=config.weight_decay
    )
    criterion = nn.BCEWithLogitsLoss()

    losses: list[float] = []
    epoch_acc = 0.0
    model.train()
    for epoch in range(config.epochs):
        correct = 0
        seen = 0
        for batch in loader:
            indices = batch["indices"].to(device)
            offsets = batch["offsets"].to(device)
            values = batch["values"].to(device)
            labels = batch["labels"].to(device)

            optimizer.zero_grad()
            logits = model(indices, offsets, values)
            loss = criterion(logits, labels)
            loss.backward()
            optimizer.step()

            losses.append(loss.item())
            with torch.no_grad():
                correct += int(((logits > 0).float() == labels).sum().item())
                seen += labels.numel()
        epoch_acc = correct / seen if seen else 0.0
        logger.debug("epoch %d: accuracy %.4f", epoch, epoch_acc)

    avg_loss = sum(losses) / len(losses) if losses else 0.0

    config.output_dir.mkdir(parents=True, exist_ok=True)
    string_model = model.to_string_model(name=config.name, version=config.version)
    ckpt_path = config.output_dir / "string_model.pt"
    config_payload = asdict(config)
    config_payload["output_dir"] = str(config.output_dir)
    config_payload["dataset_path"] = str(config.dataset_path) if config.dataset_path else None
    torch.save(
        {
            "model_state": model.state_dict(),
            "bias": string_model.bias,
            "weights": torch.tensor(string_model.weights),
            "name": string_model.name,
            "version": string_model.version,
            "feature_count": FEATURE_COUNT,
            "config": config_payload,
        },
        ckpt_path,
    )
    json_path = config.output_dir / "string_model.json"
    save_model(string_model, json_path)

    metrics = {
        "average_loss": round(avg_loss, 6),
        "final_epoch_accuracy": round(epoch_acc, 4),
        "samples": len(ds),
        "skipped": ds.skipped,
        "epochs": config.epochs,
        "checkpoint": str(ckpt_path),
        "model_json": str(json_path),
    }
    metrics_path = config.output_dir / "string_model_metrics.json"
    metrics_path.write_text(json.dumps(metrics, indent=2))
    return metrics
