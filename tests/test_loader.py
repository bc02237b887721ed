from pathlib import Path

from stringsift.data.generator import LabelledString
from stringsift.data.loader import load_labelled, write_labelled_jsonl


def test_load_csv(tmp_path: Path):
    path = tmp_path / "samples.csv"
    path.write_text("text,label\nGetProcAddress,1\nx#Q!,0\n")
    samples = load_labelled(path)
    assert samples == [LabelledString(b"GetProcAddress", 1), LabelledString(b"x#Q!", 0)]


def test_jsonl_round_trip_keeps_raw_bytes(tmp_path: Path):
    path = tmp_path / "samples.jsonl"
    original = [LabelledString(b"abcd", 1), LabelledString(b"\x91\xfe!k", 0)]
    write_labelled_jsonl(original, path)
    assert load_labelled(path) == original


def test_jsonl_without_hex_uses_text(tmp_path: Path):
    path = tmp_path / "samples.jsonl"
    path.write_text('{"text": "hello", "label": 1}\n\n')
    assert load_labelled(path) == [LabelledString(b"hello", 1)]


def test_directory_of_line_files(tmp_path: Path):
    (tmp_path / "interesting.txt").write_text("kernel32.dll\nusername\n")
    (tmp_path / "gibberish.txt").write_text("Q#z!\n")
    samples = load_labelled(tmp_path)
    assert [s.label for s in samples] == [1, 1, 0]
    assert samples[0].text == b"kernel32.dll"
