import hashlib
from pathlib import Path

import yaml

from stringsift.manifest import ModelManifest, load_manifest, sample_manifest, validate_manifest
from stringsift.model import FEATURE_COUNT, StringModel, save_model


def _write_model(path: Path, weights: int = FEATURE_COUNT) -> str:
    save_model(StringModel(bias=0.0, weights=[0.0] * weights), path)
    return "sha256:" + hashlib.sha256(path.read_bytes()).hexdigest()


def test_manifest_validation_with_missing_file(tmp_path: Path) -> None:
    mf = ModelManifest(name="missing", path=tmp_path / "missing.json")
    result = validate_manifest(mf)
    assert result["warnings"] == ["file_missing"]


def test_manifest_validation_hash(tmp_path: Path) -> None:
    model_path = tmp_path / "model.json"
    digest = _write_model(model_path)
    result = validate_manifest(ModelManifest(name="ok", path=model_path, hash=digest))
    assert result["hash_match"] is True
    assert result["feature_count"] == FEATURE_COUNT
    assert result["warnings"] == []

    bad = validate_manifest(ModelManifest(name="bad", path=model_path, hash="sha256:00"))
    assert bad["hash_match"] is False
    assert "hash_mismatch" in bad["warnings"]


def test_manifest_flags_undersized_model(tmp_path: Path) -> None:
    model_path = tmp_path / "small.json"
    _write_model(model_path, weights=12)
    result = validate_manifest(ModelManifest(name="small", path=model_path))
    assert result["feature_count"] == 12
    assert "invalid_model" in result["warnings"]


def test_load_yaml_manifest_resolves_relative_path(tmp_path: Path) -> None:
    (tmp_path / "models").mkdir()
    _write_model(tmp_path / "models" / "m.json")
    manifest_path = tmp_path / "manifest.yaml"
    manifest_path.write_text(yaml.safe_dump({"name": "m", "version": 4, "path": "models/m.json"}))
    mf = load_manifest(manifest_path)
    assert mf.path == tmp_path / "models" / "m.json"
    assert mf.version == "4"
    assert validate_manifest(mf)["exists"] is True


def test_sample_manifest_has_required_keys():
    payload = sample_manifest()
    assert {"name", "path", "hash"} <= payload.keys()


def test_manifest_flags_corrupt_checkpoint(tmp_path: Path) -> None:
    model_path = tmp_path / "model.pt"
    model_path.write_bytes(b"not a checkpoint")
    result = validate_manifest(ModelManifest(name="corrupt", path=model_path))
    assert result["warnings"] == ["invalid_model"]
    assert result["feature_count"] is None
    assert "error" in result
