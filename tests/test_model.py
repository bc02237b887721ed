import math
from pathlib import Path

import pytest
import yaml

from stringsift.model import (
    DISTINCT_INDEX,
    FEATURE_COUNT,
    LENGTH_INDEX,
    NON_LATIN_INDEX,
    InvalidModelError,
    StringModel,
    bigram_index,
    linear_score,
    load_model,
    logistic,
    save_model,
    score_bytes,
    string_features,
)


def test_feature_layout_constants():
    assert LENGTH_INDEX == 118 + 118 * 118
    assert NON_LATIN_INDEX == LENGTH_INDEX + 1
    assert DISTINCT_INDEX == LENGTH_INDEX + 2
    assert FEATURE_COUNT == 118 + 118 * 118 + 3
    assert bigram_index(0x09, 0x09) == 118
    assert bigram_index(0x7E, 0x7E) == LENGTH_INDEX - 1


def test_string_features_unigrams_bigrams_and_counts():
    feats = string_features(b"abca")
    a, b, c = 0x61 - 9, 0x62 - 9, 0x63 - 9
    assert feats[a] == 2.0
    assert feats[b] == 1.0
    assert feats[c] == 1.0
    assert feats[118 + a + 118 * b] == 1.0
    assert feats[118 + b + 118 * c] == 1.0
    assert feats[118 + c + 118 * a] == 1.0
    assert feats[LENGTH_INDEX] == 4.0
    assert feats[DISTINCT_INDEX] == 3.0
    assert NON_LATIN_INDEX not in feats


def test_bigrams_skip_out_of_range_neighbours():
    feats = string_features(b"a\x80b")
    assert feats[NON_LATIN_INDEX] == 1.0
    assert not any(118 <= idx < LENGTH_INDEX for idx in feats)


def test_range_boundaries_are_inclusive():
    feats = string_features(b"\x09\x7e\x08\x7f")
    assert feats[0] == 1.0
    assert feats[117] == 1.0
    assert feats[bigram_index(0x09, 0x7E)] == 1.0
    assert feats[NON_LATIN_INDEX] == 2.0


def test_linear_score_adds_bias_length_and_distinct_terms():
    weights = [0.0] * FEATURE_COUNT
    weights[LENGTH_INDEX] = 0.5
    weights[DISTINCT_INDEX] = -0.25
    model = StringModel(bias=1.0, weights=weights)
    # 5 bytes, 3 distinct
    assert linear_score(model, b"aabbc") == pytest.approx(1.0 + 2.5 - 0.75)


def test_unigram_weight_probability():
    weights = [0.0] * FEATURE_COUNT
    weights[ord("a") - 9] = 1.0
    model = StringModel(bias=0.0, weights=weights)
    assert score_bytes(model, b"aaaa") == pytest.approx(1 / (1 + math.exp(-4.0)))


def test_undersized_table_raises_on_scoring():
    model = StringModel(bias=0.0, weights=[0.0] * (FEATURE_COUNT - 1))
    with pytest.raises(InvalidModelError):
        score_bytes(model, b"abcd")
    with pytest.raises(InvalidModelError):
        model.validate()


def test_model_rejects_non_finite_values():
    weights = [0.0] * FEATURE_COUNT
    weights[5] = float("nan")
    with pytest.raises(InvalidModelError):
        StringModel(bias=0.0, weights=weights)
    with pytest.raises(InvalidModelError):
        StringModel(bias=float("inf"), weights=[0.0] * FEATURE_COUNT)
    StringModel.zeros().validate()


def test_load_yaml_rejects_nan_bias(tmp_path: Path):
    path = tmp_path / "model.yaml"
    path.write_text("bias: .nan\nweights: [0.0, 0.0]\n")
    with pytest.raises(InvalidModelError):
        load_model(path)


def test_load_yaml_rejects_non_utf8(tmp_path: Path):
    path = tmp_path / "model.yaml"
    path.write_bytes(b"bias: \xff\xfe\n")
    with pytest.raises(InvalidModelError):
        load_model(path)


def test_load_rejects_corrupt_checkpoint(tmp_path: Path):
    path = tmp_path / "model.pt"
    path.write_bytes(b"not a checkpoint")
    with pytest.raises(InvalidModelError):
        load_model(path)


def test_load_rejects_checkpoint_without_mapping(tmp_path: Path):
    torch = pytest.importorskip("torch")
    path = tmp_path / "model.pt"
    torch.save([1.0, 2.0], path)
    with pytest.raises(InvalidModelError):
        load_model(path)


def test_logistic_saturates_without_overflow():
    assert logistic(0.0) == 0.5
    assert logistic(1000.0) == 1.0
    assert logistic(-1000.0) == 0.0


def test_save_and_load_json(tmp_path: Path):
    model = StringModel(bias=0.25, weights=[0.5] * FEATURE_COUNT, name="t", version="3")
    path = tmp_path / "model.json"
    save_model(model, path)
    loaded = load_model(path)
    assert loaded.bias == 0.25
    assert loaded.name == "t"
    assert loaded.version == "3"
    assert len(loaded.weights) == FEATURE_COUNT
    assert loaded.weights[10] == 0.5


def test_load_yaml(tmp_path: Path):
    path = tmp_path / "model.yaml"
    path.write_text(yaml.safe_dump({"bias": -1.0, "weights": [0.0] * FEATURE_COUNT, "version": 2}))
    loaded = load_model(path)
    assert loaded.bias == -1.0
    assert loaded.version == "2"


def test_load_rejects_missing_keys_and_unknown_suffix(tmp_path: Path):
    path = tmp_path / "model.json"
    path.write_text('{"bias": 0.0}')
    with pytest.raises(InvalidModelError):
        load_model(path)
    other = tmp_path / "model.bin"
    other.write_bytes(b"")
    with pytest.raises(InvalidModelError):
        load_model(other)
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(InvalidModelError):
        load_model(broken)
