import io

import pytest

from wpm.app.errors import MissingNotes, MissingWpm, StorageError, TypeMismatchError
from wpm.app.state import TypingResult
from wpm.utils import codec
from wpm.utils.archive import (
    CURRENT_VERSION,
    V1,
    V2,
    V3,
    ResultArchive,
    append_result,
    encode_record,
    read_all,
    read_records,
    upgrade,
)

V2_RESULT = TypingResult(correct_words=87, incorrect_words=3, backspaces=2, wpm=87, timestamp=1556223259)


def read_bytes(data: bytes):
    return read_records(io.BytesIO(data))


def test_read_an_empty_set_of_results() -> None:
    contents = read_bytes(b"")
    assert contents.results == []
    assert contents.needs_upgrade is False


def test_v2_byte_layout() -> None:
    expected = bytes.fromhex(
        "d402"
        "d200000057"
        "d200000003"
        "d200000002"
        "d200000057"
        "cf000000005cc2151b"
    )
    assert encode_record(V2_RESULT, V2) == expected


def test_v3_notes_layout() -> None:
    data = encode_record(V2_RESULT.with_notes("hi"), V3)
    assert data[:2] == bytes([0xD4, 0x03])
    # length header, then the string itself (header + bytes)
    assert data.endswith(bytes([0xA2, 0xA2]) + b"hi")


def test_write_then_read_back_v1_records_only() -> None:
    result = TypingResult(correct_words=87, incorrect_words=3, backspaces=2, wpm=87)
    contents = read_bytes(encode_record(result, V1))
    assert contents.results == [result]
    assert contents.needs_upgrade is True


def test_v1_drops_timestamp_and_notes() -> None:
    result = TypingResult(1, 2, 3, 4, timestamp=99, notes="gone")
    contents = read_bytes(encode_record(result, V1))
    assert contents.results == [TypingResult(1, 2, 3, 4)]


def test_write_then_read_back_v2_records_only() -> None:
    contents = read_bytes(encode_record(V2_RESULT, V2))
    assert contents.results == [V2_RESULT]
    assert contents.results[0].notes == ""
    assert contents.needs_upgrade is True


@pytest.mark.parametrize("notes", ["", "This is a typing result.", "x" * 40, "é" * 200, "n" * 70_000])
def test_current_version_round_trip(notes) -> None:
    result = V2_RESULT.with_notes(notes)
    contents = read_bytes(encode_record(result))
    assert contents.results == [result]
    assert contents.needs_upgrade is False


def test_write_a_future_version_which_will_be_ignored_when_read_back() -> None:
    buf = io.BytesIO()
    codec.write_ext_meta(buf, 127)
    codec.write_i32(buf, 1)
    codec.write_u64(buf, 2)
    buf.write(encode_record(V2_RESULT.with_notes("after")))

    contents = read_bytes(buf.getvalue())
    assert contents.results == [V2_RESULT.with_notes("after")]
    assert contents.needs_upgrade is False
    assert contents.skipped_records == 1


def future_record(*counts: int, timestamp: int = 0) -> bytes:
    buf = io.BytesIO()
    codec.write_ext_meta(buf, CURRENT_VERSION + 1)
    for value in counts:
        codec.write_i32(buf, value)
    codec.write_u64(buf, timestamp)
    return buf.getvalue()


def test_future_record_ending_in_a_tag_byte_is_skipped() -> None:
    first = V2_RESULT.with_notes("first")
    second = V2_RESULT.with_notes("second")
    # wpm of 212 encodes as d2 000000d4
    data = encode_record(first) + future_record(212, 1, 0, 212) + encode_record(second)

    contents = read_bytes(data)
    assert contents.results == [first, second]
    assert contents.needs_upgrade is False
    assert contents.skipped_records == 1


def test_future_record_with_a_tag_inside_its_timestamp_is_skipped() -> None:
    first = V2_RESULT.with_notes("first")
    second = V2_RESULT.with_notes("second")
    # 0x6ad4023c: looks like a v2 tag followed by garbage
    data = encode_record(first) + future_record(1, 2, 3, 4, timestamp=1792279100) + encode_record(second)

    contents = read_bytes(data)
    assert contents.results == [first, second]
    assert contents.needs_upgrade is False
    assert contents.skipped_records == 1


@pytest.mark.parametrize("version", [0, -1, -128])
def test_versions_below_one_are_skipped(version) -> None:
    result = V2_RESULT.with_notes("kept")
    buf = io.BytesIO()
    codec.write_ext_meta(buf, version)
    codec.write_i32(buf, 5)
    buf.write(encode_record(result))

    contents = read_bytes(buf.getvalue())
    assert contents.results == [result]
    assert contents.needs_upgrade is True
    assert contents.skipped_records == 1


@pytest.mark.parametrize("tail", [b"\xd4", b"\xd4\x03"])
def test_tail_holding_only_a_tag_is_dropped(tail) -> None:
    result = V2_RESULT.with_notes("whole")
    contents = read_bytes(encode_record(result) + tail)
    assert contents.results == [result]
    assert contents.skipped_records == 0


def test_interrupted_write_followed_by_an_append() -> None:
    first = V2_RESULT.with_notes("first")
    second = V2_RESULT.with_notes("second")
    # the process died after writing correct and incorrect words
    partial = encode_record(first)[:12]
    data = encode_record(first) + partial + encode_record(second)

    contents = read_bytes(data)
    assert contents.results == [first, second]
    assert contents.needs_upgrade is False
    assert contents.skipped_records == 0


def test_interrupted_write_inside_the_notes_header() -> None:
    first = V2_RESULT.with_notes("first")
    # everything up to and including the timestamp
    partial = encode_record(first)[:31]
    data = partial + encode_record(first)

    contents = read_bytes(data)
    assert contents.results == [first]

def test_write_some_v1s_and_v2s_and_read_them_back() -> None:
    r1 = TypingResult(1, 2, 3, 1)
    r2 = TypingResult(2, 2, 3, 2)
    r3 = TypingResult(3, 2, 3, 3, timestamp=1556223259)
    r4 = TypingResult(4, 2, 3, 4, timestamp=1556223265, notes="latest")
    data = encode_record(r1, V1) + encode_record(r2, V1) + encode_record(r3, V2) + encode_record(r4)

    contents = read_bytes(data)
    assert contents.results == [r1, r2, r3, r4]
    assert contents.needs_upgrade is True


@pytest.mark.parametrize("cut", [1, 2, 5, 12, 23, 30])
def test_truncated_tail_is_dropped(cut) -> None:
    first = V2_RESULT.with_notes("first")
    second = encode_record(V2_RESULT.with_notes("second"))
    data = encode_record(first) + second[:-cut]

    contents = read_bytes(data)
    assert contents.results == [first]


def test_truncated_notes_body_is_dropped() -> None:
    data = encode_record(V2_RESULT.with_notes("a longer note"))
    contents = read_bytes(data[:-3])
    assert contents.results == []


def test_wrong_field_type_is_reported() -> None:
    buf = io.BytesIO()
    codec.write_ext_meta(buf, CURRENT_VERSION)
    codec.write_i32(buf, 1)
    codec.write_i32(buf, 2)
    codec.write_i32(buf, 3)
    codec.write_u64(buf, 4)  # wpm should be an i32

    with pytest.raises(MissingWpm) as excinfo:
        read_bytes(buf.getvalue())
    err = excinfo.value
    assert err.field == "wpm"
    assert not err.truncated
    assert isinstance(err.__cause__, TypeMismatchError)


def test_oversized_notes_are_reported() -> None:
    buf = io.BytesIO()
    codec.write_ext_meta(buf, V3)
    for value in (1, 2, 3, 4):
        codec.write_i32(buf, value)
    codec.write_u64(buf, 5)
    codec.write_str_len(buf, 2)
    codec.write_str(buf, "too long")

    with pytest.raises(MissingNotes):
        read_bytes(buf.getvalue())


def test_invalid_utf8_notes_are_reported() -> None:
    data = encode_record(V2_RESULT.with_notes("ab"))
    data = data[:-2] + b"\xff\xfe"
    with pytest.raises(StorageError):
        read_bytes(data)


def test_missing_file_reads_as_empty(tmp_path) -> None:
    contents = read_all(tmp_path / "nope" / "typing_results.wpm")
    assert contents.results == []
    assert contents.needs_upgrade is False


def test_unreadable_path_raises(tmp_path) -> None:
    with pytest.raises(OSError):
        read_all(tmp_path)


def test_append_creates_directories_and_only_appends(tmp_path) -> None:
    path = tmp_path / "wpm" / "typing_results.wpm"
    first = V2_RESULT.with_notes("one")
    second = TypingResult(10, 0, 1, 10, timestamp=1700000000, notes="two")

    append_result(path, first)
    before = path.read_bytes()
    append_result(path, second)

    assert path.read_bytes().startswith(before)
    assert read_all(path).results == [first, second]


def test_upgrade_rewrites_old_records(tmp_path) -> None:
    path = tmp_path / "typing_results.wpm"
    old = TypingResult(5, 1, 0, 5)
    path.write_bytes(encode_record(old, V1) + encode_record(V2_RESULT, V2))

    archive = ResultArchive(path)
    assert archive.read_all().needs_upgrade is True

    upgraded = archive.upgrade()
    assert upgraded.needs_upgrade is False
    assert upgraded.results == [old, V2_RESULT]

    again = archive.read_all()
    assert again.needs_upgrade is False
    assert again.results == [old, V2_RESULT]
    assert path.read_bytes() == encode_record(old) + encode_record(V2_RESULT)


def test_upgrade_keeps_archives_with_newer_records(tmp_path) -> None:
    path = tmp_path / "typing_results.wpm"
    buf = io.BytesIO()
    codec.write_ext_meta(buf, 9)
    codec.write_i32(buf, 1)
    data = encode_record(V2_RESULT, V1) + buf.getvalue()
    path.write_bytes(data)

    contents = upgrade(path)
    assert contents.needs_upgrade is True
    assert path.read_bytes() == data


def test_out_of_range_values_are_rejected() -> None:
    with pytest.raises(ValueError):
        encode_record(TypingResult(correct_words=2**31))
    with pytest.raises(ValueError):
        encode_record(V2_RESULT, version=4)
