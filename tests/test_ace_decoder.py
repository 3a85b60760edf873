import pytest

from ace.ace_datatypes import SourceError
from ace.ace_decoder import SourceMetadata, decode


def _decode(raw):
    metadata = SourceMetadata(raw)
    return decode(raw, metadata), metadata


DECODE_CASES = [
    ("plain", "x = 1", "x = 1"),
    ("empty", "", ""),
    ("escape", "'\\u0041'", "'A'"),
    ("repeated_u", "\\uuu0042", "B"),
    ("escaped_backslash", "'\\\\u0041'", "'\\\\u0041'"),
    ("odd_run", "\\\\\\u0043", "\\\\C"),
    ("lone_backslash", "'a\\nb'", "'a\\nb'"),
]


@pytest.mark.parametrize("test_id, raw, expected", DECODE_CASES, ids=[c[0] for c in DECODE_CASES])
def test_decode(test_id, raw, expected):
    decoded, _ = _decode(raw)
    assert decoded == expected


def test_invalid_escape_spans_the_escape():
    raw = "x = '\\u12'"
    with pytest.raises(SourceError) as info:
        _decode(raw)
    err = info.value
    assert err.message == "Invalid unicode escape"
    assert raw[err.start:err.end + 1] == "\\u12"


def test_error_positions_map_back_to_raw_text():
    raw = "a\\u0062c"
    decoded, metadata = _decode(raw)
    assert decoded == "abc"

    info = metadata.generate_error_information(SourceError("bad", 1, 1))
    assert info.line == raw
    assert raw[info.start:info.end + 1] == "\\u0062"

    info = metadata.generate_error_information(SourceError("bad", 2, 2))
    assert raw[info.start:info.end + 1] == "c"


def test_error_information_picks_the_failing_line():
    raw = "x = 1\ny = $"
    _, metadata = _decode(raw)
    info = metadata.generate_error_information(SourceError("Unexpected character", 10, 10))
    assert info.message == "Unexpected character"
    assert info.line == "y = $"
    assert (info.start, info.end) == (4, 4)


def test_error_past_end_points_just_after_the_line():
    raw = "foo("
    _, metadata = _decode(raw)
    info = metadata.generate_error_information(SourceError("unexpected EOF", 4, 4))
    assert info.line == "foo("
    assert (info.start, info.end) == (4, 4)


def test_error_before_decoding_uses_raw_positions():
    metadata = SourceMetadata("ab\\u")
    info = metadata.generate_error_information(SourceError("Invalid unicode escape", 2, 3))
    assert (info.start, info.end) == (2, 3)
