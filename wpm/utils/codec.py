# utils/codec.py
"""
The handful of MessagePack encodings the results archive uses, always at
fixed width (an i32 is always 0xd2 + 4 bytes, never a compacted fixint).
"""
from __future__ import annotations
from typing import BinaryIO
import struct

from wpm.app.errors import (
    InvalidUtf8Error,
    TypeMismatchError,
    UnexpectedEofError,
    ValueReadError,
)

FIXSTR_MASK = 0xE0
FIXSTR = 0xA0
FIXEXT1 = 0xD4
I32 = 0xD2
U64 = 0xCF
STR8 = 0xD9
STR16 = 0xDA
STR32 = 0xDB


def _read_exact(rd: BinaryIO, n: int) -> bytes:
    data = rd.read(n)
    if data is None or len(data) < n:
        got = 0 if data is None else len(data)
        raise UnexpectedEofError(f"needed {n} bytes, got {got}")
    return data


def _pack(fmt: str, *values) -> bytes:
    try:
        return struct.pack(fmt, *values)
    except struct.error as e:
        raise ValueError(f"value out of range for {fmt!r}: {values!r}") from e


# -------- read --------
def read_marker(rd: BinaryIO) -> int:
    return _read_exact(rd, 1)[0]


def read_data_i8(rd: BinaryIO) -> int:
    return struct.unpack(">b", _read_exact(rd, 1))[0]


def read_i32(rd: BinaryIO) -> int:
    marker = read_marker(rd)
    if marker != I32:
        raise TypeMismatchError("i32", marker)
    return struct.unpack(">i", _read_exact(rd, 4))[0]


def read_u64(rd: BinaryIO) -> int:
    marker = read_marker(rd)
    if marker != U64:
        raise TypeMismatchError("u64", marker)
    return struct.unpack(">Q", _read_exact(rd, 8))[0]


def read_str_len(rd: BinaryIO) -> int:
    marker = read_marker(rd)
    if marker & FIXSTR_MASK == FIXSTR:
        return marker & 0x1F
    if marker == STR8:
        return _read_exact(rd, 1)[0]
    if marker == STR16:
        return struct.unpack(">H", _read_exact(rd, 2))[0]
    if marker == STR32:
        return struct.unpack(">I", _read_exact(rd, 4))[0]
    raise TypeMismatchError("str", marker)


def read_str(rd: BinaryIO, max_len: int) -> str:
    """Read a str header plus its bytes; the body may not exceed ``max_len`` bytes."""
    length = read_str_len(rd)
    if length > max_len:
        raise ValueReadError(f"string of {length} bytes does not fit in {max_len}")
    raw = _read_exact(rd, length)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidUtf8Error(str(e)) from e


# -------- write --------
def write_ext_meta(wr: BinaryIO, type_id: int):
    """fixext1 marker and its signed type byte (the archive's version tag)."""
    wr.write(_pack(">Bb", FIXEXT1, type_id))


def write_i32(wr: BinaryIO, value: int):
    wr.write(_pack(">Bi", I32, value))


def write_u64(wr: BinaryIO, value: int):
    wr.write(_pack(">BQ", U64, value))


def write_str_len(wr: BinaryIO, length: int):
    if length < 32:
        wr.write(_pack(">B", FIXSTR | length))
    elif length < 0x100:
        wr.write(_pack(">BB", STR8, length))
    elif length < 0x10000:
        wr.write(_pack(">BH", STR16, length))
    else:
        wr.write(_pack(">BI", STR32, length))


def write_str(wr: BinaryIO, value: str):
    raw = value.encode("utf-8")
    write_str_len(wr, len(raw))
    wr.write(raw)
