import pytest

from stringsift.data.generator import generate_synthetic_binary
from stringsift.extracted import StringType
from stringsift.scanner import ScanConfig, scan_bytes, scan_file


def _sample() -> bytes:
    return b"\x01\x02hello world\x00\x00" + "Wide".encode("utf-16-le") + b"\x01ab\x02"


def test_scan_finds_narrow_and_wide_with_offsets():
    found = scan_bytes(_sample())
    assert len(found) == 2
    narrow, wide = found
    assert narrow.text == "hello world"
    assert narrow.source_type is StringType.UTF8
    assert (narrow.offset_start, narrow.offset_end) == (2, 13)
    assert narrow.size_in_bytes == 11
    assert wide.text == "Wide"
    assert wide.source_type is StringType.WIDE_STRING
    assert (wide.offset_start, wide.offset_end) == (15, 23)
    assert wide.size_in_bytes == 8


def test_scan_config_toggles_and_min_length():
    only_wide = scan_bytes(_sample(), ScanConfig(narrow=False))
    assert [s.text for s in only_wide] == ["Wide"]
    only_narrow = scan_bytes(_sample(), ScanConfig(wide=False, min_length=2))
    assert [s.text for s in only_narrow] == ["hello world", "ab"]
    with pytest.raises(ValueError):
        scan_bytes(_sample(), ScanConfig(min_length=0))


def test_scan_recovers_synthetic_binary_metadata():
    data, meta = generate_synthetic_binary(count=12, seed=7)
    found = scan_bytes(data)
    assert [(s.text, s.type_string, s.offset_start, s.offset_end) for s in found] == [
        (m["text"], m["string_type"], m["offset_start"], m["offset_end"]) for m in meta
    ]


def test_scan_file_reads_from_disk(tmp_path):
    path = tmp_path / "sample.bin"
    path.write_bytes(_sample())
    assert len(scan_file(path)) == 2


def test_scan_empty_buffer():
    assert scan_bytes(b"") == []


def test_tab_is_part_of_narrow_and_wide_runs():
    data = b"\x01key\tvalue\x02\x03" + "a\tbc".encode("utf-16-le") + b"\x01"
    narrow, wide = scan_bytes(data)
    assert narrow.text == "key\tvalue"
    assert (narrow.offset_start, narrow.offset_end) == (1, 10)
    assert wide.text == "a\tbc"
    assert (wide.offset_start, wide.offset_end) == (12, 20)
