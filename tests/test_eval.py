import pytest

from stringsift.data.generator import LabelledString
from stringsift.eval.harness import evaluate_samples, evaluate_synthetic
from stringsift.model import InvalidModelError, StringModel


def _a_lover() -> StringModel:
    weights = [0.0] * len(StringModel.zeros().weights)
    weights[ord("a") - 9] = 5.0
    return StringModel(bias=-1.0, weights=weights, name="a-lover", version="1")


def test_evaluate_samples_confusion_and_ratios():
    samples = [
        LabelledString(b"aaaa", 1),
        LabelledString(b"\x01\x01\x01\x01", 0),
        LabelledString(b"bbbb", 0),
        LabelledString(b"abab", 1),
        LabelledString(b"zzzz", 1),
    ]
    summary = evaluate_samples(samples, _a_lover())
    assert summary.samples == 5
    assert summary.confusion == {"tp": 2, "fp": 0, "tn": 2, "fn": 1}
    assert summary.accuracy == 0.8
    assert summary.precision == 1.0
    assert summary.recall == 0.6667
    assert [m.text for m in summary.mistakes] == ["zzzz"]
    assert summary.notes == "threshold=0.5"


def test_evaluate_samples_empty_is_all_zero():
    summary = evaluate_samples([], StringModel.zeros())
    assert summary.samples == 0
    assert summary.accuracy == 0.0
    assert summary.mistakes == []


def test_evaluate_samples_rejects_bad_model():
    with pytest.raises(InvalidModelError):
        evaluate_samples([LabelledString(b"abcd", 1)], StringModel(bias=0.0, weights=[1.0]))


def test_evaluate_synthetic_produces_summary():
    payload = evaluate_synthetic(StringModel.zeros(name="blank"), count=20, seed=42)
    summary = payload["evaluation"]
    assert summary.samples == 20
    # a blank table sits exactly on the threshold, so everything is predicted gibberish
    assert summary.accuracy == 0.5
    assert summary.average_probability == 0.5
    assert payload["generator"] == {"count": 20, "seed": 42}
    assert payload["model"]["name"] == "blank"
