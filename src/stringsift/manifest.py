"""Manifests describing versioned model artifacts (YAML or JSON)."""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from stringsift.model import FEATURE_COUNT, InvalidModelError, load_model

logger = logging.getLogger(__name__)


@dataclass
class ModelManifest:
    name: str
    path: Path
    version: str | None = None
    hash: str | None = None
    notes: str | None = None

    @staticmethod
    def from_mapping(payload: dict[str, Any], base_dir: Path | None = None) -> ModelManifest:
        path = Path(payload["path"])
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        version = payload.get("version")
        return ModelManifest(
            name=str(payload["name"]),
            path=path,
            version=str(version) if version is not None else None,
            hash=payload.get("hash"),
            notes=payload.get("notes"),
        )


def _hash_file(path: Path, algo: str = "sha256") -> str:
    h = hashlib.new(algo)
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return f"{algo}:{h.hexdigest()}"


def validate_manifest(manifest: ModelManifest) -> dict[str, Any]:
    path = manifest.path
    result: dict[str, Any] = {
        "name": manifest.name,
        "version": manifest.version,
        "path": str(path),
        "exists": path.exists(),
        "size_bytes": path.stat().st_size if path.exists() else 0,
        "hash_expected": manifest.hash,
        "hash_actual": None,
        "hash_match": None,
        "feature_count": None,
        "expected_feature_count": FEATURE_COUNT,
        "bias": None,
        "warnings": [],
    }
    if not path.exists():
        result["warnings"].append("file_missing")
        return result

    if manifest.hash:
        algo, _hex = (
            manifest.hash.split(":", 1) if ":" in manifest.hash else ("sha256", manifest.hash)
        )
        actual = _hash_file(path, algo=algo)
        result["hash_actual"] = actual
        expected = manifest.hash if ":" in manifest.hash else f"sha256:{manifest.hash}"
        result["hash_match"] = actual == expected
        if not result["hash_match"]:
            result["warnings"].append("hash_mismatch")

    try:
        model = load_model(path)
        result["feature_count"] = len(model.weights)
        result["bias"] = model.bias
        model.validate()
    except InvalidModelError as exc:
        logger.warning("Model %s failed validation: %s", manifest.name, exc)
        result["warnings"].append("invalid_model")
        result["error"] = str(exc)
    return result


def load_manifest(path: Path) -> ModelManifest:
    if path.suffix.lower() in {".yml", ".yaml"}:
        payload = yaml.safe_load(path.read_text())
    else:
        payload = json.loads(path.read_text())
    return ModelManifest.from_mapping(payload, base_dir=path.parent)


def sample_manifest() -> dict[str, Any]:
    return {
        "name": "strings_default",
        "version": "1",
        "path": "models/string_model.json",
        "hash": "sha256:<hex>",
        "notes": "edit with real details",
    }
