# utils/archive.py
"""
Append-only results archive.

The file is a plain concatenation of records, with no header. Each record is
a fixext1 marker whose type byte is the record's format version, followed by
that version's fields:

    v1  correct_words:i32 incorrect_words:i32 backspaces:i32 wpm:i32
    v2  v1 + timestamp:u64
    v3  v2 + notes length (str header) + notes (str)

Readers stop quietly at a truncated final record, skip records from newer
versions, and report whether any record predates CURRENT_VERSION.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Iterable, List, Union
import io
import logging
import os
import tempfile

from wpm.app.errors import (
    MissingBackspaces,
    MissingCorrectWords,
    MissingIncorrectWords,
    MissingNotes,
    MissingNotesLength,
    MissingTime,
    MissingWpm,
    StorageError,
    TypeMismatchError,
    UnexpectedEofError,
    ValueReadError,
)
from wpm.app.state import TypingResult
from wpm.utils import codec

V1 = 1
V2 = 2
V3 = 3
CURRENT_VERSION = V3

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class ArchiveContents:
    results: List[TypingResult] = field(default_factory=list)
    needs_upgrade: bool = False  # older records present; rewrite() would modernise them
    skipped_records: int = 0     # records from a newer format that this reader cannot decode


def _field(error_cls, read: Callable, rd: BinaryIO, *args):
    try:
        return read(rd, *args)
    except ValueReadError as err:
        raise error_cls(err) from err


# -------- per-version layouts --------
def _write_v1(wr: BinaryIO, result: TypingResult):
    codec.write_i32(wr, result.correct_words)
    codec.write_i32(wr, result.incorrect_words)
    codec.write_i32(wr, result.backspaces)
    codec.write_i32(wr, result.wpm)


def _write_v2(wr: BinaryIO, result: TypingResult):
    _write_v1(wr, result)
    codec.write_u64(wr, result.timestamp)


def _write_v3(wr: BinaryIO, result: TypingResult):
    _write_v2(wr, result)
    codec.write_str_len(wr, len(result.notes.encode("utf-8")))
    codec.write_str(wr, result.notes)


def _read_counts(rd: BinaryIO) -> dict:
    return dict(
        correct_words=_field(MissingCorrectWords, codec.read_i32, rd),
        incorrect_words=_field(MissingIncorrectWords, codec.read_i32, rd),
        backspaces=_field(MissingBackspaces, codec.read_i32, rd),
        wpm=_field(MissingWpm, codec.read_i32, rd),
    )


def _read_v1(rd: BinaryIO) -> TypingResult:
    return TypingResult(**_read_counts(rd))


def _read_v2(rd: BinaryIO) -> TypingResult:
    counts = _read_counts(rd)
    return TypingResult(timestamp=_field(MissingTime, codec.read_u64, rd), **counts)


def _read_v3(rd: BinaryIO) -> TypingResult:
    counts = _read_counts(rd)
    timestamp = _field(MissingTime, codec.read_u64, rd)
    notes_len = _field(MissingNotesLength, codec.read_str_len, rd)
    notes = _field(MissingNotes, codec.read_str, rd, notes_len)
    return TypingResult(timestamp=timestamp, notes=notes, **counts)


_WRITERS: Dict[int, Callable[[BinaryIO, TypingResult], None]] = {
    V1: _write_v1,
    V2: _write_v2,
    V3: _write_v3,
}

_READERS: Dict[int, Callable[[BinaryIO], TypingResult]] = {
    V1: _read_v1,
    V2: _read_v2,
    V3: _read_v3,
}


# -------- streams --------
def write_record(wr: BinaryIO, result: TypingResult, version: int = CURRENT_VERSION):
    try:
        writer = _WRITERS[version]
    except KeyError:
        raise ValueError(f"cannot write archive format version {version}") from None
    codec.write_ext_meta(wr, version)
    writer(wr, result)


def encode_record(result: TypingResult, version: int = CURRENT_VERSION) -> bytes:
    buf = io.BytesIO()
    write_record(buf, result, version)
    return buf.getvalue()


def read_records(rd: BinaryIO) -> ArchiveContents:
    """Decode every record in ``rd``.

    Raises a StorageError subclass when a record of a known version holds
    bytes of the wrong type; running out of bytes mid-record is not an error.

    After a record that cannot be framed (unknown version, stray bytes) the
    reader is out of step with the record boundaries. It then scans forward,
    and a 0xd4 byte only counts as the next record when its tag is a known
    version and the whole record decodes; otherwise it resumes one byte later.
    """
    buf = io.BytesIO(rd.read())
    contents = ArchiveContents()
    scanning = False
    while True:
        start = buf.tell()
        try:
            marker = codec.read_marker(buf)
        except UnexpectedEofError:
            break
        if marker != codec.FIXEXT1:
            scanning = True
            continue
        try:
            version = codec.read_data_i8(buf)
        except UnexpectedEofError:
            break
        reader = _READERS.get(version)

        if scanning:
            if reader is None:
                buf.seek(start + 1)
                continue
            try:
                result = reader(buf)
            except StorageError:
                buf.seek(start + 1)
                continue
            scanning = False
            if version < CURRENT_VERSION:
                contents.needs_upgrade = True
        else:
            if version < CURRENT_VERSION:
                contents.needs_upgrade = True
            if reader is None:
                logging.info("Skipping results record with unknown format version %d", version)
                contents.skipped_records += 1
                scanning = True
                continue
            try:
                result = reader(buf)
            except StorageError as err:
                if err.truncated:
                    logging.warning("Discarding truncated results record (%s)", err)
                    break
                if isinstance(err.cause, TypeMismatchError) and err.cause.marker == codec.FIXEXT1:
                    # an interrupted write with a later record appended after it
                    logging.warning("Discarding incomplete results record at offset %d (%s)", start, err)
                    buf.seek(buf.tell() - 1)
                    continue
                raise

        contents.results.append(result)
    return contents


# -------- files --------
def append_result(path: PathLike, result: TypingResult):
    """Append one CURRENT_VERSION record, creating the file (and its directory) if needed."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = encode_record(result)
    with open(path, "ab") as f:
        f.write(data)
    logging.info("Saved typing result (%d wpm) to %s", result.wpm, path)


def read_all(path: PathLike) -> ArchiveContents:
    try:
        f = open(path, "rb")
    except FileNotFoundError:
        return ArchiveContents()
    with f:
        return read_records(f)


def rewrite(path: PathLike, results: Iterable[TypingResult]):
    """Replace the archive with ``results``, all in the current format."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=path.name, suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            for result in results:
                write_record(f, result)
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
        raise


def upgrade(path: PathLike) -> ArchiveContents:
    """Rewrite older records in the current format when ``read_all`` flags them.

    Archives that also hold records from a newer format are left alone, since
    rewriting would drop those records.
    """
    contents = read_all(path)
    if not contents.needs_upgrade:
        return contents
    if contents.skipped_records:
        logging.warning(
            "Not upgrading %s: it holds %d record(s) from a newer format",
            path,
            contents.skipped_records,
        )
        return contents
    rewrite(path, contents.results)
    logging.info("Upgraded %d result(s) in %s to format version %d", len(contents.results), path, CURRENT_VERSION)
    return ArchiveContents(results=list(contents.results), needs_upgrade=False)


class ResultArchive:
    """The archive at one path."""

    def __init__(self, path: PathLike):
        self.path = Path(path)

    def append(self, result: TypingResult):
        append_result(self.path, result)

    def read_all(self) -> ArchiveContents:
        return read_all(self.path)

    def upgrade(self) -> ArchiveContents:
        return upgrade(self.path)
