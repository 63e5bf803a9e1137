"""
Chunk boundary tests.

Validates that the root value never depends on where the input was split:
inside multi-byte characters, numbers, literals, escapes, and comments.
"""

import pytest

import jzstream

from .conftest import PASS1
from .conftest import parse_chunks
from .conftest import split_at

MIXED = (
    '{"name": "café € \U0001f600", "esc": "a\\u00e9\\ud83d\\ude00\\n",'
    ' "nums": [0, -12, 3.25, -1.5e-3, 9223372036854775807, 1E+2],'
    ' "lits": [true, false, null], "nested": {"deep": [[{}], []]}}'
)

COMMENTED = """// header
{"a": /* one */ 1, "b": [2, // two
3] /* tail * with star **/}"""


def test_two_chunk_map() -> None:
    """
    Validates a map split after its first member.
    """
    chunked = parse_chunks(['{"a":1', ',"b":2}'])
    assert chunked == jzstream.loads('{"a":1,"b":2}')
    assert chunked == {"a": 1, "b": 2}


def test_multibyte_split_across_chunks() -> None:
    """
    Validates a two-byte character split between byte chunks.
    """
    data = '{"x": "café"}'.encode()
    cut = data.index(b"\xc3") + 1
    assert parse_chunks(split_at(data, cut)) == {"x": "café"}


@pytest.mark.parametrize("text", [MIXED, PASS1])
def test_every_byte_split(text: str) -> None:
    """
    Validates every two-way split of a UTF-8 document.
    """
    data = text.encode("utf-8")
    expected = jzstream.loads(data)
    for cut in range(len(data) + 1):
        assert parse_chunks(split_at(data, cut)) == expected, cut


def test_every_three_way_split() -> None:
    """
    Validates every three-way split of a short document.
    """
    data = '["é€\U0001f600", 12.5e1, "\\u00e9", true]'.encode()
    expected = jzstream.loads(data)
    for first in range(len(data) + 1):
        for second in range(first, len(data) + 1):
            chunks = split_at(data, first, second)
            assert parse_chunks(chunks) == expected, (first, second)


def test_byte_at_a_time() -> None:
    """
    Validates feeding one byte per call.
    """
    data = MIXED.encode("utf-8")
    chunks = [data[i : i + 1] for i in range(len(data))]
    assert parse_chunks(chunks) == jzstream.loads(MIXED)


def test_text_chunks_at_every_offset() -> None:
    """
    Validates every split of already decoded text.
    """
    expected = jzstream.loads(MIXED)
    for cut in range(len(MIXED) + 1):
        assert parse_chunks([MIXED[:cut], MIXED[cut:]]) == expected, cut


def test_mixed_bytes_and_text_chunks() -> None:
    """
    Validates alternating bytes and text submissions in one session.
    """
    chunks: list[bytes | str] = ['{"a": [1', b", 2", "], ", b'"b": "\xc3\xa9"}']
    assert parse_chunks(chunks) == {"a": [1, 2], "b": "é"}


def test_comments_at_every_split() -> None:
    """
    Validates comment scanning across chunk boundaries.
    """
    expected = {"a": 1, "b": [2, 3]}
    data = COMMENTED.encode()
    for cut in range(len(data) + 1):
        rval = parse_chunks(split_at(data, cut), allow_comments=True)
        assert rval == expected, cut


def test_number_completed_by_finalization() -> None:
    """
    Validates a root number that only ends with the input.
    """
    assert parse_chunks(["12", "34"]) == 1234
    assert parse_chunks(["-", "0.5", "e1"]) == -5.0
    assert parse_chunks(["tr", "u", "e"]) is True


def test_empty_chunks_are_ignored() -> None:
    """
    Validates that empty submissions change nothing.
    """
    assert parse_chunks([b"", "[", b"", "1", "", "]", b""]) == [1]


def test_surrogate_pair_split_between_escapes() -> None:
    """
    Validates a surrogate pair whose halves arrive in different chunks.
    """
    chunks = ['"\\ud8', '3d', "\\", "ude", '00"']
    assert parse_chunks(chunks) == "\U0001f600"


def test_error_position_across_chunks() -> None:
    """
    Validates that error offsets are absolute, not per chunk.
    """
    parser = jzstream.Parser()
    parser.parse_string('{"a": ')
    parser.parse_string("tru")
    with pytest.raises(jzstream.JSONSyntaxError, match="Invalid literal") as e:
        parser.parse_string("x}")
    assert e.value.pos == 6
    assert e.value.colno == 7


def test_invalid_utf8_position_across_chunks() -> None:
    """
    Validates the byte offset of a malformed sequence split over chunks.
    """
    parser = jzstream.Parser()
    parser.parse_data(b'["\xe2\x82')
    with pytest.raises(jzstream.EncodingError) as e:
        parser.parse_data(b'x"]')
    assert e.value.byte_pos == 2
    assert e.value.pos == 2


def test_invalid_utf8_after_multibyte_prefix() -> None:
    """
    Validates character and byte offsets diverge after valid multi-byte text.
    """
    parser = jzstream.Parser()
    parser.parse_data('["é€", "'.encode())
    with pytest.raises(jzstream.EncodingError) as e:
        parser.parse_data(b'ok\xc0"]')
    assert e.value.pos == 10
    assert e.value.byte_pos == 13


def test_partial_state_reported_between_chunks() -> None:
    """
    Validates depth and state between submissions.
    """
    parser = jzstream.Parser()
    parser.parse_string('{"a": [1, ')
    assert parser.depth == 2
    assert parser.state is jzstream.ParseState.EXPECT_ARRAY_VALUE
    parser.parse_string("2]")
    assert parser.depth == 1
    assert parser.state is jzstream.ParseState.EXPECT_COMMA_OR_MAP_END
    parser.parse_string("}")
    assert parser.state is jzstream.ParseState.COMPLETE
    assert parser.parse_complete() == {"a": [1, 2]}
