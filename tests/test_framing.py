"""Tests for FrameReassembler and its interplay with RecordDecoder."""

import pytest

from backend.statements.decode import RecordDecoder
from backend.statements.framing import FrameReassembler

from conftest import SPLIT_CHUNKS


def frame_all(chunks):
    framer = FrameReassembler()
    records = []
    for chunk in chunks:
        records.extend(framer.feed(chunk))
    tail = framer.finish()
    if tail is not None:
        records.append(tail)
    return records


def decode_all(chunks):
    decoder = RecordDecoder()
    events = [decoder.decode(r) for r in frame_all(chunks)]
    return [(e.kind, e.payload) for e in events if e is not None]


STREAM = (
    '{"type":"metadata","documentmetadata":{"page_count":1,"bank_name":"Café Bank"}}\n'
    '{"type":"page_data","transactions":[{"date":"01-01-2024","description":"line\\nbreak \\"quoted\\"","amount":"1,000","balance":"10"}]}\n'
    'not json at all\n'
    '{"type":"progress","p":50}\n'
    '{"type":"page_data","transactions":[]}'
).encode("utf-8")


class TestFeed:

    def test_complete_lines_are_released(self):
        framer = FrameReassembler()
        assert list(framer.feed(b'{"a":1}\n{"b":2}\n')) == ['{"a":1}', '{"b":2}']
        assert framer.buffer == ""

    def test_partial_line_is_held_back(self):
        framer = FrameReassembler()
        assert list(framer.feed(b'{"a":')) == []
        assert framer.buffer == '{"a":'
        assert list(framer.feed(b'1}\n')) == ['{"a":1}']

    def test_records_never_contain_newlines(self):
        for record in frame_all([STREAM[i:i + 7] for i in range(0, len(STREAM), 7)]):
            assert "\n" not in record

    def test_multibyte_character_split_across_chunks(self):
        data = '{"bank":"Café"}\n'.encode("utf-8")
        cut = data.index(b"\xc3") + 1
        assert frame_all([data[:cut], data[cut:]]) == ['{"bank":"Café"}']

    def test_empty_chunk_is_harmless(self):
        framer = FrameReassembler()
        assert list(framer.feed(b"")) == []
        assert framer.finish() is None

    def test_long_record_in_many_small_chunks(self):
        description = "x" * 5000
        data = ('{"type":"page_data","transactions":[{"description":"%s"}]}\n' % description).encode("utf-8")
        framer = FrameReassembler()

        released = []
        for i in range(0, len(data) - 1, 3):
            released.extend(framer.feed(data[i:min(i + 3, len(data) - 1)]))
        assert released == []
        assert framer.buffer == data[:-1].decode("utf-8")

        assert list(framer.feed(b"\n{")) == [data[:-1].decode("utf-8")]
        assert framer.buffer == "{"

    def test_invalid_utf8_is_replaced_with_a_warning(self, caplog):
        framer = FrameReassembler()
        records = list(framer.feed(b'{"description":"caf\xff"}\n'))

        assert records == ['{"description":"caf\ufffd"}']
        assert "Invalid utf-8 bytes" in caplog.text
        assert "\\xff" in caplog.text

    def test_valid_utf8_logs_nothing(self, caplog):
        framer = FrameReassembler()
        list(framer.feed('{"bank":"Café"}\n'.encode("utf-8")))
        assert "Invalid" not in caplog.text


class TestFinish:

    def test_trailing_record_without_newline_is_flushed(self):
        framer = FrameReassembler()
        list(framer.feed(b'{"a":1}\n{"b":2}'))
        assert framer.finish() == '{"b":2}'
        assert framer.buffer == ""

    def test_blank_tail_is_dropped(self):
        framer = FrameReassembler()
        list(framer.feed(b'{"a":1}\n  '))
        assert framer.finish() is None


class TestChunkIndependence:

    def test_every_single_split_point_decodes_identically(self):
        expected = decode_all([STREAM])
        for cut in range(len(STREAM) + 1):
            assert decode_all([STREAM[:cut], STREAM[cut:]]) == expected, f"split at {cut}"

    def test_byte_by_byte_feed_decodes_identically(self):
        expected = decode_all([STREAM])
        assert decode_all([STREAM[i:i + 1] for i in range(len(STREAM))]) == expected

    @pytest.mark.parametrize("size", [2, 3, 5, 16, 64])
    def test_fixed_size_chunks_decode_identically(self, size):
        expected = decode_all([STREAM])
        assert decode_all([STREAM[i:i + size] for i in range(0, len(STREAM), size)]) == expected

    def test_known_two_chunk_split(self):
        kinds = [kind for kind, _ in decode_all(SPLIT_CHUNKS)]
        assert kinds == ["metadata", "page_data"]

    def test_malformed_and_unknown_records(self):
        kinds = [kind for kind, _ in decode_all([STREAM])]
        # 'not json at all' is dropped, 'progress' passes through
        assert kinds == ["metadata", "page_data", "unrecognized", "page_data"]
